"""
Create the admin account and repair legacy data.

    python -m expense_tracker.scripts.init_admin --password ...
    python -m expense_tracker.scripts.init_admin --backfill --migrate-admin-flags

The password comes from --password or the ADMIN_PASSWORD environment
variable. It is only needed when the admin account does not exist yet.
"""

import argparse
import asyncio
import os
from typing import Optional

from expense_tracker.auth import LEGACY_ADMIN_EMAIL
from expense_tracker.config import validate_all_settings
from expense_tracker.orchestrator import AppComponents, create_app_components
from expense_tracker.services.storage import InMemoryUserStorage
from expense_tracker.validation import ValidationFailedError


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--email", default=LEGACY_ADMIN_EMAIL, help="Admin account email")
    parser.add_argument("--name", default="Admin User", help="Admin display name")
    parser.add_argument("--password", default=None, help="Admin password (or ADMIN_PASSWORD)")
    parser.add_argument(
        "--backfill",
        action="store_true",
        help="Create missing Budget/Settings records for every user",
    )
    parser.add_argument(
        "--migrate-admin-flags",
        action="store_true",
        help="Set is_admin on accounts that are admin only by the reserved email",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Report which integrations are configured, then exit",
    )
    parser.add_argument("--backend", choices=["memory", "google_sheets"], default=None)
    return parser.parse_args(argv)


def check_config() -> int:
    status = validate_all_settings()
    for name in ("app", "auth", "google_sheets", "google_oauth", "cloudinary"):
        if status.get(name):
            print(f"✅ {name}")
        else:
            print(f"❌ {name}: {status.get(f'{name}_error', 'not configured')}")
    return 0 if status.get("app") and status.get("auth") else 1


async def run(args: argparse.Namespace, components: AppComponents) -> int:
    accounts = components.accounts
    password = args.password or os.environ.get("ADMIN_PASSWORD")

    if password:
        try:
            user, created = await accounts.ensure_admin_account(
                password, name=args.name, email=args.email
            )
        except ValidationFailedError as e:
            print(f"❌ Cannot create admin account: {e}")
            return 1
        if created:
            print(f"✅ Admin account created: {user.email}")
        else:
            print(f"✅ Admin account already exists: {user.email}")
    elif not (args.backfill or args.migrate_admin_flags):
        print("Nothing to do. Pass --password (or set ADMIN_PASSWORD), --backfill or --migrate-admin-flags.")
        return 1

    if args.backfill:
        counts = await accounts.backfill_defaults()
        print(
            f"✅ Checked {counts['users_checked']} users: "
            f"{counts['budgets_created']} budgets and "
            f"{counts['settings_created']} settings created"
        )

    if args.migrate_admin_flags:
        migrated = await accounts.migrate_admin_flags()
        print(f"✅ Admin flag set on {len(migrated)} accounts")
        for user in migrated:
            print(f"   {user.email}")

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    if args.check_config:
        return check_config()

    components = create_app_components(args.backend)
    if isinstance(components.storages.users, InMemoryUserStorage):
        print("⚠️  Using in-memory storage: changes are lost when this command exits.")
    return asyncio.run(run(args, components))


if __name__ == "__main__":
    raise SystemExit(main())
