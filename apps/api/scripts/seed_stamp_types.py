from __future__ import annotations

from stampbook.db.session import SessionLocal
from stampbook.services.stamp_types import SYSTEM_DEFAULT_STAMP_TYPES, seed_system_defaults


def run_seed() -> None:
    with SessionLocal() as db:
        inserted = seed_system_defaults(db)
        db.commit()

    print("=== STAMP TYPES SEED RESULT ===")
    print(f"inserted: {inserted}")
    print(f"skipped: {len(SYSTEM_DEFAULT_STAMP_TYPES) - inserted}")


def main() -> None:
    run_seed()


if __name__ == "__main__":
    main()
