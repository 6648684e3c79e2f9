from __future__ import annotations

from pydantic import BaseModel

from stampbook.models import Pokemon, PokemonRarity
from stampbook.services.pokemon_catalog import artwork_url, cry_url
from stampbook.services.pokemon_selector import rarity_of


class PokemonOut(BaseModel):
    id: int
    name: str
    type1: str | None
    type2: str | None
    genus: str | None
    is_legendary: bool
    is_mythical: bool
    rarity: PokemonRarity
    artwork_url: str
    cry_url: str


def build_pokemon_out(pokemon: Pokemon) -> PokemonOut:
    return PokemonOut(
        id=pokemon.id,
        name=pokemon.name,
        type1=pokemon.type1,
        type2=pokemon.type2,
        genus=pokemon.genus,
        is_legendary=pokemon.is_legendary,
        is_mythical=pokemon.is_mythical,
        rarity=rarity_of(pokemon),
        artwork_url=artwork_url(pokemon.id),
        cry_url=cry_url(pokemon.id),
    )
