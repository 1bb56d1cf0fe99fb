"""Create (or reactivate) an admin account.

Usage:
  python scripts/create_admin.py <username> <email>
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import Base, SessionLocal, engine
import app.models  # noqa: F401
from app.models.admin_user import AdminUser


def create_admin(username: str, email: str) -> AdminUser:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = db.query(AdminUser).filter(AdminUser.username == username).first()
        if admin:
            admin.email = email
            admin.is_active = True
            print(f"Admin '{username}' already exists; reactivated.")
        else:
            admin = AdminUser(username=username, email=email, is_active=True)
            db.add(admin)
            print(f"Admin '{username}' created.")
        db.commit()
        db.refresh(admin)
        return admin
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("username")
    parser.add_argument("email")
    args = parser.parse_args()
    create_admin(args.username.strip(), args.email.strip())


if __name__ == "__main__":
    main()
