"""
Create an account (e.g. the first admin). Run from project root:
  python -m cashflowops.scripts.create_account USERNAME EMAIL PASSWORD [role]
Example:
  python -m cashflowops.scripts.create_account admin admin@example.com your-secure-password ADMIN
"""
import argparse
import sys

from cashflowops.core.database import SessionLocal
from cashflowops.core.errors import AppError
from cashflowops.services.identity import register
from cashflowops.stores.sql import SqlAccountStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Cashflowops account.")
    parser.add_argument("username", help="Username (3-64 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (minimum length from PASSWORD_MIN_LENGTH)")
    parser.add_argument("role", nargs="?", default="STANDARD", choices=["STANDARD", "ADMIN"])
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        store = SqlAccountStore(db)
        try:
            account, _token = register(store, args.username, args.email, args.password)
        except AppError as e:
            print(e.message, file=sys.stderr)
            return 1
        if args.role != account.role:
            account = store.update_fields(account.id, role=args.role)
        print(f"Created account '{account.username}' ({account.id}) with role '{account.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
