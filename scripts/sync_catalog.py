"""Synchronize rentable machines into the SQLite catalog.

Expects a local JSON array of records with ``model_name``, ``description``
and ``weekly_price`` keys.
"""

from __future__ import annotations

import argparse
import json
from decimal import Decimal
from pathlib import Path

from rentbot.integrations.catalog import upsert_machines
from rentbot.quoting.models import CatalogEntry
from rentbot.quoting.pricing import compute_quote


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync machine catalog into SQLite database")
    parser.add_argument(
        "--input-file",
        type=Path,
        required=True,
        help="Path to local JSON file containing machine records.",
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=Path("../db/catalog.db"),
        help="Path to the SQLite database that stores the catalog.",
    )
    return parser.parse_args()


def load_machines(path: Path) -> list[CatalogEntry]:
    if not path.exists():
        raise FileNotFoundError(f"{path} does not exist")

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    if not isinstance(data, list):
        raise ValueError("Expected top-level JSON array of machine records")

    entries = []
    for record in data:
        price = Decimal(str(record["weekly_price"]))
        # Reject prices the quote calculator would refuse later.
        compute_quote(price)
        entries.append(
            CatalogEntry(
                model_name=record["model_name"].strip(),
                description=(record.get("description") or "").strip(),
                weekly_price=price,
            )
        )
    return entries


def main() -> None:
    args = parse_args()
    machines = load_machines(args.input_file)
    count = upsert_machines(args.database, machines)
    print(f"Imported {count} machines into {args.database}")


if __name__ == "__main__":
    main()
