#!/usr/bin/env python3
"""
Import a scraper dump of session snapshots into the history table.

Reads a JSON array of session objects (the same shape POST /api/sessions
accepts) and inserts it in batches no larger than the API's batch limit.

Usage:
    python scripts/import_sessions.py sessions.json
    python scripts/import_sessions.py sessions.json --dry-run
    python scripts/import_sessions.py sessions.json --chunk-size 500

Requires:
    - .env file with Snowflake credentials (or SNOWFLAKE_MOCK_MODE=true
      with SQLITE_PATH pointing at a local database file)
"""

import json
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def load_records(filepath: str) -> list:
    """
    Parse the dump into SessionRecords.

    Exits on the first invalid entry, naming its index, so a bad dump never
    gets partially imported.
    """
    from pydantic import ValidationError

    from src.core.schedule.payloads import SessionPayload

    with open(filepath, 'r', encoding='utf-8') as f:
        payload = json.load(f)

    if not isinstance(payload, list):
        print("ERROR: File must contain a JSON array of sessions")
        sys.exit(1)

    records = []
    for index, item in enumerate(payload):
        try:
            records.append(SessionPayload.model_validate(item).to_record())
        except (ValidationError, ValueError) as e:
            print(f"ERROR: Entry {index} is invalid: {e}")
            sys.exit(1)

    return records


def chunked(items: list, size: int) -> list[list]:
    return [items[start:start + size] for start in range(0, len(items), size)]


def import_records(records: list, chunk_size: int, dry_run: bool = False) -> bool:
    """Insert records chunk by chunk. Each chunk is its own batch."""
    from src.config.settings import get_settings
    from src.infrastructure.database.client import SnowflakeConfig, create_database_connection
    from src.infrastructure.database.gateway import DatabaseGateway
    from src.infrastructure.database.repositories import SessionScheduleRepository

    chunks = chunked(records, chunk_size)

    if dry_run:
        print("\n=== DRY RUN - No data will be inserted ===\n")
        for number, chunk in enumerate(chunks, start=1):
            pools = sorted({record.pool_id or "-" for record in chunk})
            print(f"Would insert chunk {number}: {len(chunk)} sessions (pools: {', '.join(pools)})")
        print(f"\nTotal: {len(records)} sessions")
        return True

    settings = get_settings()
    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        return False

    config = None
    if not settings.snowflake_mock_mode:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

    inserted = 0
    errors = 0

    with create_database_connection(
        config=config,
        mock_mode=settings.snowflake_mock_mode,
        sqlite_path=settings.sqlite_path,
    ) as conn:
        repository = SessionScheduleRepository(DatabaseGateway(conn))

        for number, chunk in enumerate(chunks, start=1):
            try:
                repository.insert_many(chunk)
                inserted += len(chunk)
                print(f"[OK] Chunk {number}: {len(chunk)} sessions")
            except Exception as e:
                errors += 1
                print(f"[ERR] Chunk {number} rolled back: {e}")

    print(f"\n=== Import Complete ===")
    print(f"Inserted: {inserted}")
    print(f"Failed chunks: {errors}")

    return errors == 0


def main():
    import argparse

    from src.config.settings import get_settings

    max_batch_size = get_settings().max_batch_size

    parser = argparse.ArgumentParser(description='Import session snapshots into the history table')
    parser.add_argument('file', help='JSON file with an array of session objects')
    parser.add_argument('--dry-run', action='store_true', help='Parse only, don\'t insert')
    parser.add_argument(
        '--chunk-size',
        type=int,
        default=max_batch_size,
        help=f'Sessions per batch (max {max_batch_size})',
    )
    args = parser.parse_args()

    if not 1 <= args.chunk_size <= max_batch_size:
        print(f"ERROR: --chunk-size must be between 1 and {max_batch_size}")
        sys.exit(1)

    if not Path(args.file).exists():
        print(f"ERROR: Cannot find {args.file}")
        sys.exit(1)

    print(f"Parsing sessions from: {args.file}")
    records = load_records(args.file)
    print(f"Found {len(records)} sessions")

    if not records:
        print("ERROR: No sessions found in file")
        sys.exit(1)

    success = import_records(records, chunk_size=args.chunk_size, dry_run=args.dry_run)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
