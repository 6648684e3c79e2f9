from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.orm import Session

from stampbook.core.errors import DomainValidationError, NotFoundError
from stampbook.models import Pokemon, PokemonRarity

logger = logging.getLogger("stampbook.api.pokemon")

ARTWORK_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/other/official-artwork/{id}.png"
)
CRY_URL_TEMPLATE = "https://raw.githubusercontent.com/PokeAPI/cries/main/cries/pokemon/latest/{id}.ogg"


@dataclass(frozen=True, slots=True)
class PokemonSeedRow:
    id: int
    name: str
    is_legendary: bool
    is_mythical: bool
    type1: str | None
    type2: str | None
    genus: str | None


def artwork_url(pokemon_id: int) -> str:
    return ARTWORK_URL_TEMPLATE.format(id=pokemon_id)


def cry_url(pokemon_id: int) -> str:
    return CRY_URL_TEMPLATE.format(id=pokemon_id)


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in {"true", "1", "yes"}


def parse_seed_rows(lines: Iterable[str]) -> list[PokemonSeedRow]:
    """Parse ``id,name,is_legendary,is_mythical,types,genus`` rows (header included)."""
    reader = csv.reader(lines)
    next(reader, None)
    rows: list[PokemonSeedRow] = []
    for line_number, record in enumerate(reader, start=2):
        if not record or not any(cell.strip() for cell in record):
            continue
        if len(record) < 6:
            logger.warning("pokemon.seed.short_row", extra={"result": {"line": line_number}})
            continue

        is_legendary = _parse_flag(record[2])
        is_mythical = _parse_flag(record[3])
        if is_legendary and is_mythical:
            raise DomainValidationError(
                "A Pokémon cannot be both legendary and mythical",
                details={"line": line_number, "id": record[0]},
            )

        types = [item.strip() for item in record[4].split(",") if item.strip()]
        rows.append(
            PokemonSeedRow(
                id=int(record[0]),
                name=record[1].strip(),
                is_legendary=is_legendary,
                is_mythical=is_mythical,
                type1=types[0] if types else None,
                type2=types[1] if len(types) > 1 else None,
                genus=record[5].strip() or None,
            )
        )
    return rows


def upsert_catalog(db: Session, rows: Iterable[PokemonSeedRow]) -> dict[str, int]:
    inserted = 0
    updated = 0
    for row in rows:
        pokemon = db.get(Pokemon, row.id)
        if pokemon is None:
            pokemon = Pokemon(id=row.id)
            db.add(pokemon)
            inserted += 1
        else:
            updated += 1
        pokemon.name = row.name
        pokemon.is_legendary = row.is_legendary
        pokemon.is_mythical = row.is_mythical
        pokemon.type1 = row.type1
        pokemon.type2 = row.type2
        pokemon.genus = row.genus
    db.flush()
    return {"inserted": inserted, "updated": updated}


def load_catalog_csv(db: Session, path: Path) -> dict[str, int]:
    with path.open(encoding="utf-8", newline="") as handle:
        rows = parse_seed_rows(handle)
    return upsert_catalog(db, rows)


def list_pokemon(db: Session, *, rarity: PokemonRarity | None = None) -> list[Pokemon]:
    query = select(Pokemon).order_by(Pokemon.id.asc())
    if rarity == PokemonRarity.LEGENDARY:
        query = query.where(Pokemon.is_legendary.is_(True))
    elif rarity == PokemonRarity.MYTHICAL:
        query = query.where(Pokemon.is_mythical.is_(True))
    elif rarity == PokemonRarity.COMMON:
        query = query.where(Pokemon.is_legendary.is_(False), Pokemon.is_mythical.is_(False))
    return list(db.scalars(query).all())


def get_pokemon(db: Session, pokemon_id: int) -> Pokemon:
    pokemon = db.get(Pokemon, pokemon_id)
    if pokemon is None:
        raise NotFoundError("Pokémon not found")
    return pokemon

