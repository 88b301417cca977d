import os

from nexus import create_app
from werkzeug.middleware.proxy_fix import ProxyFix

app = create_app()

# reverse proxies in front of the API (0 disables the fix)
hops = int(os.getenv("PROXY_HOPS", "1"))
if hops:
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=hops, x_for=hops, x_host=hops, x_port=hops, x_prefix=hops)

if __name__ == "__main__":
    app.run(debug=os.getenv("FLASK_DEBUG") == "1")
