"""
Create the initial SUPER_ADMIN account (skipped if one already exists).
Usage: python scripts/create_super_admin.py [email] [password]
Without arguments, SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD from .env are used.
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from mcan_api.database import Base, SessionLocal, engine
from mcan_api.models import User, EIDCard, Property, AuditLog  # noqa: F401
from mcan_api.seed import seed_super_admin


def main():
    email = sys.argv[1].strip().lower() if len(sys.argv) > 1 else None
    password = sys.argv[2] if len(sys.argv) > 2 else None

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = seed_super_admin(db, email=email, password=password)
        if user:
            print(f"Super admin created: {user.email} (id={user.id})")
        else:
            print("Super admin not created: one already exists, or the email is taken.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
