#!/usr/bin/env python3
"""
Tracker - Sample Data CLI

Load the demo records into the local database.

Usage:
    python scripts/seed_sample_data.py           # add sample records
    python scripts/seed_sample_data.py --reset   # clear everything first
"""
import sys
import os

# Add project root to path so we can import tracker modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tracker.database import SessionLocal, StoreError, setup_database
from tracker.services.sample_data import seed_sample_data
from tracker.store import RecordStore


def seed(reset: bool = False):
    os.makedirs("data", exist_ok=True)
    setup_database()
    db = SessionLocal()

    try:
        created = seed_sample_data(RecordStore(db), reset=reset)
    except StoreError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    if reset:
        print("Cleared existing records.")
    print(
        f"Created {created['jobs']} job applications, "
        f"{created['research']} research applications and {created['skills']} skills."
    )


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    flags = [a for a in sys.argv[1:] if a.startswith("--")]

    if args or any(f != "--reset" for f in flags):
        print("Usage: python scripts/seed_sample_data.py [--reset]")
        sys.exit(1)

    seed(reset="--reset" in flags)
