from flask import request
from werkzeug.datastructures import MultiDict

from ..exceptions import ValidationError


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def first_error(form) -> str:
    for field, errors in form.errors.items():
        if errors:
            label = getattr(getattr(form, field, None), "label", None)
            name = label.text if label else field
            return f"{name}: {errors[0]}"
    return "Invalid request."


def validated(form_cls, **kwargs):
    """Build ``form_cls`` from the JSON body and raise if it does not validate.

    Only scalar values reach the form; nulls count as missing and nested
    arrays or objects are left for the view to read from ``json_body()``.
    """
    scalars = {k: str(v) for k, v in json_body().items() if v is not None and not isinstance(v, (list, dict))}
    form = form_cls(formdata=MultiDict(scalars), **kwargs)
    if not form.validate_on_submit():
        raise ValidationError(first_error(form))
    return form


def page_args(default_limit: int = 20, max_limit: int = 100):
    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", default_limit, type=int), 1), max_limit)
    return page, limit
