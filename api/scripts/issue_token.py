"""Mint a bearer token for a directory user, for local development."""

from __future__ import annotations

import argparse
import sys
from uuid import UUID

from campus_feed.auth.jwt import create_access_token
from campus_feed.models.enums import Role


def main() -> int:
    parser = argparse.ArgumentParser(description="Print a signed access token")
    parser.add_argument("user_id", help="UUID of the user the token represents")
    parser.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.STUDENT.value,
        help="Role claim carried by the token (default: student)",
    )
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args()

    try:
        user_id = UUID(args.user_id)
    except ValueError:
        print(f"Not a UUID: {args.user_id}", file=sys.stderr)
        return 1

    print(create_access_token(str(user_id), args.role, expires_minutes=args.minutes))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
