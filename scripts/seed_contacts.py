#!/usr/bin/env python3
"""Load the sample contacts into the configured Redis.

Each contact gets a new id from the repository's counter, so running the
script twice adds the contacts twice. Pass --if-empty to skip seeding when
contacts already exist. Run from repo root with .env (REDIS_URL).
"""
import argparse
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))

from dotenv import load_dotenv  # noqa: E402

from rolodex.application import ContactRepository, StoreUnavailable  # noqa: E402
from rolodex.domain import ContactPatch  # noqa: E402
from rolodex.infrastructure import RedisKeyValueStore  # noqa: E402

load_dotenv(REPO_ROOT / ".env")

SAMPLE_CONTACTS = [
    ContactPatch(
        first_name="Anakin",
        last_name="Skywalker",
        job="Jedi Knight",
        description="The Chosen one",
    ),
    ContactPatch(
        first_name="Boba",
        last_name="Fett",
        job="Bounty Hunter",
        description="Son of Jango Fett",
    ),
]


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--if-empty",
        action="store_true",
        help="do nothing if the store already holds contacts",
    )
    args = parser.parse_args()

    url = os.environ.get("REDIS_URL", "redis://localhost:6379/0").strip()
    store = RedisKeyValueStore.from_url(url)
    try:
        repo = ContactRepository(store)
        existing = repo.list_ids()
        if args.if_empty and existing:
            print(f"Store already holds {len(existing)} contact(s); nothing to do.")
            return 0

        for fields in SAMPLE_CONTACTS:
            contact = repo.create(fields)
            print(f"Added contact {contact.id}: {contact.first_name} {contact.last_name}")

        print("Seeding complete!")
        return 0
    except StoreUnavailable as e:
        print(f"Seeding failed: {e}", file=sys.stderr)
        return 1
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
