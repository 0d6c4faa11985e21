"""
Run the chat message retention sweep once, for cron or an external scheduler.
"""

from __future__ import annotations

import argparse
import sys

from firebase_admin import firestore

from volunteerhub import create_app
from volunteerhub.triggers.retention import purge_stale_messages


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Retention window in days (defaults to MESSAGE_RETENTION_DAYS).",
    )
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        summary = purge_stale_messages(
            firestore.client(),
            retention_days=args.days or app.config["MESSAGE_RETENTION_DAYS"],
        )

    print(
        f"Deleted {summary['deleted']} messages in {summary['batches']} batches "
        f"across {summary['rooms']} rooms."
    )
    for error in summary["errors"]:
        print(f"  {error['chatRoomId']}: {error['error']}", file=sys.stderr)
    return 1 if summary["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
