"""CLI script to mint an access token for the jwt auth backend."""
from __future__ import annotations

import argparse

from app.config import settings
from app.core.security import create_access_token


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Issue an HS256 access token for local testing",
    )
    parser.add_argument("user_id", help="Caller id to put in the token subject")
    parser.add_argument(
        "--minutes",
        type=int,
        default=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        help="Token lifetime in minutes",
    )

    args = parser.parse_args()

    if not settings.SECRET_KEY:
        parser.error("SECRET_KEY is not set")
    print(create_access_token(args.user_id, settings.SECRET_KEY, expires_minutes=args.minutes))


if __name__ == "__main__":
    main()
