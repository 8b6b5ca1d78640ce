"""Create the demo accounts and characters in the SQLite credential store.

Usage: uv run python bin/seed-demo-data.py

Existing demo accounts are left untouched; running it twice is harmless.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.auth.password import get_hasher
from shared.auth.settings import AuthSettings
from shared.db import Database, SqliteCredentialStore, seed_demo_data


async def main() -> None:
    # Only the store and hasher settings are needed; supply a placeholder
    # session secret so the script works without AUTH_SESSION_SECRET being set.
    auth_settings = AuthSettings(session_secret="unused-placeholder-secret-for-seeding")

    db = Database(auth_settings.database_path)
    db.connect()
    try:
        store = SqliteCredentialStore(db)
        hasher = get_hasher(auth_settings.password_hasher, default_rounds=auth_settings.default_hash_rounds)
        created = await seed_demo_data(store, hasher)
    finally:
        db.close()

    if created:
        print(f"Seeded {created} demo account(s) into {auth_settings.database_path}")
    else:
        print("Demo accounts already present; nothing to do.")


if __name__ == "__main__":
    asyncio.run(main())
