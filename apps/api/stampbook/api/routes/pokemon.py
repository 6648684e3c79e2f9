from __future__ import annotations

from fastapi import APIRouter

from stampbook.api.deps import CurrentAdmin, DBSession
from stampbook.models import PokemonRarity
from stampbook.schemas.pokemon import PokemonOut, build_pokemon_out
from stampbook.services.pokemon_catalog import get_pokemon, list_pokemon

router = APIRouter(prefix="/pokemon", tags=["pokemon"])


@router.get("", response_model=list[PokemonOut])
def list_catalog(db: DBSession, _: CurrentAdmin, rarity: PokemonRarity | None = None) -> list[PokemonOut]:
    return [build_pokemon_out(pokemon) for pokemon in list_pokemon(db, rarity=rarity)]


@router.get("/{pokemon_id}", response_model=PokemonOut)
def get_catalog_entry(pokemon_id: int, db: DBSession, _: CurrentAdmin) -> PokemonOut:
    return build_pokemon_out(get_pokemon(db, pokemon_id))
