#!/usr/bin/env python3
"""
Validate that the database contains the same dealers as a JSON dataset.

Usage:
    python scripts/validate_migration.py --json data/dealers.json --db data/dealers.db
"""

import argparse
from pathlib import Path
import sys

from dealersplus.database import DealerRow, get_session
from dealersplus.storage import load_dealers

FIELDS_TO_CHECK = ["name", "city", "state", "zip", "phone", "is_new", "is_used"]


def validate(json_path: Path, db_path: Path) -> bool:
    """
    Compare JSON dataset and database contents.

    Returns True if they match, False otherwise.
    """
    print(f"Loading JSON from {json_path}...")
    json_dealers = {d.id: d for d in load_dealers(json_path)}
    print(f"  JSON: {len(json_dealers)} dealers")

    print(f"\nQuerying database at {db_path}...")
    session = get_session(db_path)
    try:
        db_dealers = {row.id: row.to_dealer() for row in session.query(DealerRow).all()}
    finally:
        session.close()
    print(f"  DB:   {len(db_dealers)} dealers")

    if len(json_dealers) != len(db_dealers):
        print(f"\n❌ COUNT MISMATCH: JSON has {len(json_dealers)}, DB has {len(db_dealers)}")
        return False

    print(f"\n✅ Counts match: {len(json_dealers)} dealers in both stores")

    print("\nValidating dealer data...")
    missing = []
    mismatches = []
    for dealer_id, dealer in json_dealers.items():
        db_dealer = db_dealers.get(dealer_id)
        if db_dealer is None:
            missing.append(dealer_id)
            continue
        for field in FIELDS_TO_CHECK:
            if getattr(dealer, field) != getattr(db_dealer, field):
                mismatches.append((dealer_id, field, getattr(dealer, field), getattr(db_dealer, field)))
        if sorted(dealer.brands) != sorted(db_dealer.brands):
            mismatches.append((dealer_id, "brands", dealer.brands, db_dealer.brands))

    if missing:
        print(f"\n❌ MISSING from DB: {len(missing)} dealers")
        for dealer_id in missing[:5]:
            print(f"   - {dealer_id}")
        if len(missing) > 5:
            print(f"   ... and {len(missing) - 5} more")

    if mismatches:
        print(f"\n❌ DATA MISMATCHES: {len(mismatches)} field differences")
        for dealer_id, field, json_value, db_value in mismatches[:5]:
            print(f"   - {dealer_id}")
            print(f"     {field}: JSON='{json_value}' vs DB='{db_value}'")
        if len(mismatches) > 5:
            print(f"   ... and {len(mismatches) - 5} more")

    if missing or mismatches:
        return False

    print("✅ All dealers validated successfully!")
    return True


def main():
    parser = argparse.ArgumentParser(description="Validate migration from JSON to database")
    parser.add_argument("--json", type=Path, default=Path("data/dealers.json"),
                        help="Path to dealers JSON file")
    parser.add_argument("--db", type=Path, default=Path("data/dealers.db"),
                        help="Path to SQLite database file")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    if not args.db.exists():
        print(f"❌ Database file not found: {args.db}")
        sys.exit(1)

    success = validate(args.json, args.db)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
