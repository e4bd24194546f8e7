"""CLI script to grant or revoke the admin flag on a user record."""
from __future__ import annotations

import argparse

from app.config import settings
from app.services.container import build_container
from app.services.registry import USERS


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Set users/{uid}.isAdmin in the configured document store",
    )
    parser.add_argument("user_id", help="User id to update")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Clear the admin flag instead of setting it",
    )

    args = parser.parse_args()

    store = build_container(settings).store
    store.set(USERS, args.user_id, {"isAdmin": not args.revoke}, merge=True)
    print(f"{args.user_id}: isAdmin={not args.revoke}")


if __name__ == "__main__":
    main()
