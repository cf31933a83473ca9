"""
search6.cli — ``search6-lookup`` command
==========================================

Asks a running search6 instance about one member::

    $ search6-lookup 123456789012345678
    Someone#1234 (123456789012345678) is level 7
    https://search6.example.com/card?id=123456789012345678 <@123456789012345678>

Exit codes: 1 bad id, 2 request failed, 3 lookup rejected, 4 bad response.
"""

from __future__ import annotations

import argparse
import os
import sys

import httpx

from search6.constants import is_snowflake

DEFAULT_BASE_URL = "http://localhost:8080"
CARD_LEVEL = 5


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="search6-lookup",
        description="Look up a member's MEE6 level on a search6 instance.",
    )
    parser.add_argument("id", help="Discord user id")
    parser.add_argument(
        "--base-url",
        default=os.getenv("SEARCH6_URL", DEFAULT_BASE_URL),
        help="search6 instance to query (default: $SEARCH6_URL or %(default)s)",
    )
    args = parser.parse_args(argv)

    if not is_snowflake(args.id):
        print(f"invalid id: {args.id!r}")
        return 1

    base_url = args.base_url.rstrip("/")
    try:
        resp = httpx.get(f"{base_url}/api", params={"id": args.id}, timeout=10)
    except httpx.HTTPError as exc:
        print(exc)
        return 2

    if resp.status_code != 200:
        try:
            print(resp.json().get("detail", resp.text))
        except ValueError:
            print(resp.text)
        return 3

    try:
        user = resp.json()
        name = f"{user['username']}#{user['discriminator']}"
        user_id = int(user["id"])
        level = int(user["level"])
    except (ValueError, KeyError, TypeError) as exc:
        print(f"unexpected response: {exc}")
        return 4

    print(f"{name} ({user_id}) is level {level}")
    if level >= CARD_LEVEL:
        print(f"{base_url}/card?id={user_id} <@{user_id}>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
