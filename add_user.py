#!/usr/bin/env python
"""Create a user account from the command line.

Usage: python add_user.py EMAIL PASSWORD [NAME]
"""
import sys

from studium.database import create_tables, get_session
from studium.models import User
from studium.routers.auth import get_password_hash


def main(argv):
    if len(argv) < 2:
        print(__doc__.strip())
        return 1

    email, password = argv[0], argv[1]
    name = argv[2] if len(argv) > 2 else None

    # Create tables if not exist
    create_tables()

    with get_session() as db:
        if db.query(User).filter(User.email == email).first():
            print("User already exists")
            return 1
        db.add(User(email=email, hashed_password=get_password_hash(password), name=name))
        db.commit()
    print(f"User created: {email}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
