"""
Promote an existing user to admin (or demote with --role user).

    python scripts/promote_admin.py someone@example.com
"""

import argparse
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gestao_financeira.db.session import SessionLocal
from gestao_financeira.models.user import User, RoleEnum


def main(argv=None):
    parser = argparse.ArgumentParser(description="Altera o papel de um usuário")
    parser.add_argument("email")
    parser.add_argument("--role", choices=[r.value for r in RoleEnum], default=RoleEnum.admin.value)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email.strip().lower()).first()
        if not user:
            print("USER_NOT_FOUND", args.email)
            return 1
        user.papel = RoleEnum(args.role)
        db.add(user)
        db.commit()
        print("ROLE_UPDATED", user.email, args.role)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
