from __future__ import annotations

import argparse
from pathlib import Path

from stampbook.db.session import SessionLocal
from stampbook.services.pokemon_catalog import load_catalog_csv

DEFAULT_CSV = Path(__file__).resolve().parent.parent / "data" / "pokemon_sample.csv"


def run_seed(csv_path: Path) -> None:
    with SessionLocal() as db:
        result = load_catalog_csv(db, csv_path)
        db.commit()

    print("=== POKEMON SEED RESULT ===")
    print(f"source: {csv_path}")
    print(f"inserted: {result['inserted']}")
    print(f"updated: {result['updated']}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Load the Pokémon catalog from a CSV file")
    parser.add_argument(
        "csv_path",
        nargs="?",
        type=Path,
        default=DEFAULT_CSV,
        help="CSV with id,name,is_legendary,is_mythical,types,genus columns",
    )
    args = parser.parse_args()
    run_seed(args.csv_path)


if __name__ == "__main__":
    main()
