#!/usr/bin/env python3
"""
Create (or reset) an owner account for the pricing API.
Usage: python create_owner.py owner@shop.in 'a-strong-password'
"""
import sys
import os

# Add the app directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.core.database import SessionLocal, init_db
from app.core.roles import Role
from app.core.security import hash_password
from app.models.user import User


def create_owner(email: str, password: str) -> User:
    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = Role.owner.value
            user.hashed_password = hash_password(password)
            user.is_active = True
            print(f"User '{email}' updated to owner role")
        else:
            user = User(email=email, hashed_password=hash_password(password), role=Role.owner.value)
            db.add(user)
            print(f"Owner '{email}' created")
        db.commit()
        db.refresh(user)
        return user
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    create_owner(sys.argv[1], sys.argv[2])
