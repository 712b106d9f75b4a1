# src/pinloop/scripts/tokens.py
"""
Mint bearer tokens for local development.

Production tokens come from the identity provider; this helper signs tokens
with the same secret and claims so that the API and the realtime socket can be
exercised by hand, e.g.::

    python -m pinloop.scripts.tokens alice --username "Alice" --avatar https://...
"""

from __future__ import annotations

import argparse

from pinloop.core.security import create_access_token
from pinloop.core.settings import settings
from pinloop.db.session import SessionLocal
from pinloop.repositories import ProfileRepository


def mint_token(
    user_id: str,
    username: str | None = None,
    avatar: str | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Return a signed token for ``user_id``; the username defaults to the id."""
    return create_access_token(
        user_id,
        username or user_id,
        avatar=avatar,
        expires_minutes=expires_minutes,
    )


def register_profile(user_id: str, username: str, avatar: str | None) -> None:
    """Store the profile so other users can open a conversation with it."""
    db = SessionLocal()
    try:
        ProfileRepository(db).upsert(user_id, username, avatar)
        db.commit()
    finally:
        db.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Mint a development bearer token")
    parser.add_argument("user_id", help="Value of the `sub` claim")
    parser.add_argument("--username", default=None, help="Display name (defaults to the user id)")
    parser.add_argument("--avatar", default=None, help="Avatar URL")
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=settings.access_token_expire_minutes,
        help="Token lifetime in minutes",
    )
    parser.add_argument(
        "--register",
        action="store_true",
        help="Also store the profile in the configured database.",
    )
    args = parser.parse_args(argv)

    username = args.username or args.user_id
    if args.register:
        register_profile(args.user_id, username, args.avatar)
        print(f"Registered profile {args.user_id}")
    print(mint_token(args.user_id, username, args.avatar, args.expires_minutes))


if __name__ == "__main__":
    main()
