"""Run or author Alembic migrations.

Usage:
    python scripts/migrate.py                    upgrade to head
    python scripts/migrate.py down <revision>    downgrade to a revision
    python scripts/migrate.py create <message>   autogenerate a revision
"""

import argparse
import sys

from alembic import command
from alembic.config import Config


def main() -> int:
    parser = argparse.ArgumentParser(description="Database migrations")
    sub = parser.add_subparsers(dest="action")
    down = sub.add_parser("down", help="Downgrade to a revision")
    down.add_argument("revision")
    create = sub.add_parser("create", help="Autogenerate a new revision")
    create.add_argument("message", nargs="+")
    args = parser.parse_args()

    cfg = Config("alembic.ini")
    try:
        if args.action == "down":
            command.downgrade(cfg, args.revision)
        elif args.action == "create":
            command.revision(cfg, message=" ".join(args.message), autogenerate=True)
        else:
            command.upgrade(cfg, "head")
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        return 1

    print("✓ Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
