import argparse
import getpass
import logging
import sys
from pathlib import Path

from src.adapters.local_storage import LocalObjectStorage
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteResourceUrlRepo
from src.api.auth_utils import get_password_hash
from src.api.deps import Settings
from src.core.services.signed_urls import SignedUrlConfig, SignedUrlService
from src.rules.loader import load_rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    migrator = SQLiteMigrator(settings.db_path)
    if args.dry_run:
        pending = migrator.pending()
        print("Pending migrations:" if pending else "Database is up to date.")
        for name in pending:
            print(f" - {name}")
        return

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migrations to {settings.db_path}.")


def handle_hash_password(args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass("Admin password: ")
    if not password:
        logger.error("Password cannot be empty.")
        sys.exit(1)
    print(get_password_hash(password))


def handle_cleanup_signed_urls(settings: Settings) -> None:
    if not Path(settings.rules_path).exists():
        logger.error(f"Rules file {settings.rules_path} not found.")
        sys.exit(1)

    rules = load_rules(Path(settings.rules_path))
    storage = LocalObjectStorage(
        settings.storage_dir, secret_key=settings.secret_key, base_url=settings.base_url
    )
    service = SignedUrlService(
        storage,
        SQLiteResourceUrlRepo(settings.db_path),
        config=SignedUrlConfig(
            default_expiration=rules.storage.default_signed_url_expiration,
            max_expiration=rules.storage.max_signed_url_expiration,
            revalidate_seconds=rules.storage.revalidate_seconds,
            batch_size=rules.storage.batch_size,
        ),
    )
    removed = service.cleanup_expired()
    print(f"Removed {removed} expired signed URLs.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="EXOCORPSE CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--dry-run", action="store_true", help="List pending migrations without applying"
    )

    # hash-password
    hash_parser = subparsers.add_parser(
        "hash-password", help="Print an argon2 hash for EXO_ADMIN_PASSWORD_HASH"
    )
    hash_parser.add_argument("password", nargs="?", help="Prompted for when omitted")

    # cleanup-signed-urls
    subparsers.add_parser("cleanup-signed-urls", help="Delete expired signed URL cache rows")

    args = parser.parse_args(argv)
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "hash-password":
        handle_hash_password(args)
    elif args.command == "cleanup-signed-urls":
        handle_cleanup_signed_urls(settings)


if __name__ == "__main__":
    main()
