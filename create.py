# create.py: interactive first-admin setup
from getpass import getpass
from nexus import create_app
from nexus.extensions import db
from nexus.models.user import User


def main():
    app = create_app()
    with app.app_context():
        # first run on a fresh database without migrations
        db.create_all()

        email = input("Admin email: ").strip().lower()
        first_name = input("First name: ").strip() or "Admin"
        last_name = input("Last name: ").strip() or "User"
        phone = input("Phone (optional): ").strip()
        password = getpass("Password: ")

        # Check existing
        if User.query.filter_by(email=email).first():
            print("User with that email already exists. Use `flask create-admin` to promote it.")
            return

        user = User(
            first_name=first_name,
            last_name=last_name,
            username=email.split("@")[0],
            email=email,
            phone_number=phone,
            role="Admin",
            status="Accepted",
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"Admin user {email} created successfully.")

if __name__ == "__main__":
    main()
