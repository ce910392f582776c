"""Seed demo clinicians, patients and conversations.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Make `app` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal, engine
from app.models.base import Base
from app.services.demo_data import DEMO_PARTICIPANTS, seed_demo_data


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed demo clinical conversations.")
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete existing messaging records before seeding.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from ORM metadata instead of relying on Alembic migrations.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        summary = seed_demo_data(db, reset=not args.no_reset)

    print("Seed complete")
    for key, value in summary.items():
        print(f"{key}={value}")
    print()
    print("Inspect (send the viewer id as X-Viewer-Id):")
    for participant in DEMO_PARTICIPANTS:
        print(f"  {participant['id']:<9} {participant['role']:<10} {participant['display_name']}")
    print("  GET  /conversations")
    print("  POST /conversations/CONV-8041/select")
    print("  POST /conversations/CONV-8041/messages")


if __name__ == "__main__":
    main()
