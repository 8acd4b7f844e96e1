# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import argparse
import sys

from volunteerhub.crud import crud_user
from volunteerhub.db import database
from volunteerhub.db.models import Role


def main(argv=None) -> int:
    """
    Assigns a role to an existing account. Registration only ever creates
    volunteers, so organizers and admins are promoted from here.
    """
    parser = argparse.ArgumentParser(description="Change the role of a VolunteerHub user.")
    parser.add_argument("email", help="email address of the account")
    parser.add_argument("role", choices=[role.value for role in Role], help="role to assign")
    args = parser.parse_args(argv)

    db = database.SessionLocal()
    try:
        db_user = crud_user.get_user_by_email(db, args.email)
        if db_user is None:
            print(f"ERROR: User {args.email} not found", file=sys.stderr)
            return 1
        crud_user.promote_user(db, db_user.id, Role(args.role))
        print(f"SUCCESS: Promoted {db_user.email} to {args.role}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
