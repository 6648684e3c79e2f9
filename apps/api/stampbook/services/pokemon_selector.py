"""Weighted Pokémon draws for new stamps.

Every stamp gets one Pokémon. The rules, in order of precedence:

* a 1-in-N "mythical roll" is attempted on every stamp;
* the stamp that completes a card is guaranteed a legendary when the roll misses;
* any other stamp falls back to the base weighted draw, minus the legendary tier.

Tier weights are declared once in named tables and fed to ``weighted_choice``.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from stampbook.core.config import settings
from stampbook.core.errors import PokemonUnavailableError
from stampbook.models import Pokemon, PokemonRarity

T = TypeVar("T")

BASE_RARITY_WEIGHTS: dict[PokemonRarity, int] = {
    PokemonRarity.COMMON: settings.rarity_weight_common,
    PokemonRarity.LEGENDARY: settings.rarity_weight_legendary,
    PokemonRarity.MYTHICAL: settings.rarity_weight_mythical,
}

MYTHICAL_ROLL_ODDS = settings.mythical_roll_odds

REASON_MYTHICAL_ROLL = "mythical_roll"
REASON_CARD_COMPLETION = "card_completion"


@dataclass(frozen=True, slots=True)
class PokemonCatalog:
    common: tuple[Pokemon, ...]
    legendary: tuple[Pokemon, ...]
    mythical: tuple[Pokemon, ...]

    @classmethod
    def from_pokemons(cls, pokemons: Iterable[Pokemon]) -> PokemonCatalog:
        tiers: dict[PokemonRarity, list[Pokemon]] = {rarity: [] for rarity in PokemonRarity}
        for pokemon in pokemons:
            tiers[rarity_of(pokemon)].append(pokemon)
        return cls(
            common=tuple(tiers[PokemonRarity.COMMON]),
            legendary=tuple(tiers[PokemonRarity.LEGENDARY]),
            mythical=tuple(tiers[PokemonRarity.MYTHICAL]),
        )

    def tier(self, rarity: PokemonRarity) -> tuple[Pokemon, ...]:
        if rarity == PokemonRarity.LEGENDARY:
            return self.legendary
        if rarity == PokemonRarity.MYTHICAL:
            return self.mythical
        return self.common

    def __len__(self) -> int:
        return len(self.common) + len(self.legendary) + len(self.mythical)


@dataclass(frozen=True, slots=True)
class PokemonDraw:
    pokemon: Pokemon
    rarity: PokemonRarity
    reason: str | None

    @property
    def is_special(self) -> bool:
        return self.reason is not None


def rarity_of(pokemon: Pokemon) -> PokemonRarity:
    if pokemon.is_mythical:
        return PokemonRarity.MYTHICAL
    if pokemon.is_legendary:
        return PokemonRarity.LEGENDARY
    return PokemonRarity.COMMON


def load_catalog(db: Session) -> PokemonCatalog:
    return PokemonCatalog.from_pokemons(db.scalars(select(Pokemon).order_by(Pokemon.id.asc())).all())


def weighted_choice(weights: Mapping[T, int]) -> T:
    positive = [(key, weight) for key, weight in weights.items() if weight > 0]
    total = sum(weight for _key, weight in positive)
    if total <= 0:
        raise ValueError("weighted_choice needs at least one positive weight")

    threshold = random.random() * total
    cumulative = 0
    for key, weight in positive:
        cumulative += weight
        if threshold < cumulative:
            return key
    # Float rounding can leave threshold == total; the last positive key wins.
    return positive[-1][0]


def _pick_from_tier(catalog: PokemonCatalog, rarity: PokemonRarity) -> Pokemon:
    members = catalog.tier(rarity)
    if not members:
        raise PokemonUnavailableError(
            f"No {rarity.value} Pokémon in the catalog",
            details={"rarity": rarity.value},
        )
    return random.choice(members)


def select_random_pokemon(
    catalog: PokemonCatalog,
    weights: Mapping[PokemonRarity, int] | None = None,
) -> Pokemon:
    table = BASE_RARITY_WEIGHTS if weights is None else weights
    eligible = {rarity: weight for rarity, weight in table.items() if weight > 0 and catalog.tier(rarity)}
    if not eligible:
        raise PokemonUnavailableError("No Pokémon available")
    return _pick_from_tier(catalog, weighted_choice(eligible))


def routine_rarity_weights() -> dict[PokemonRarity, int]:
    """Base weights for a stamp that does not complete a card: legendaries are reserved for completion."""
    return {rarity: weight for rarity, weight in BASE_RARITY_WEIGHTS.items() if rarity != PokemonRarity.LEGENDARY}


def roll_mythical(odds: int = MYTHICAL_ROLL_ODDS) -> bool:
    return random.random() < 1 / odds


def select_mythical_by_probability(catalog: PokemonCatalog) -> Pokemon | None:
    if not roll_mythical():
        return None
    return _pick_from_tier(catalog, PokemonRarity.MYTHICAL)


def select_legendary_for_card_completion(catalog: PokemonCatalog) -> Pokemon:
    return _pick_from_tier(catalog, PokemonRarity.LEGENDARY)


def select_special_pokemon(catalog: PokemonCatalog, *, card_completed: bool) -> PokemonDraw:
    mythical = select_mythical_by_probability(catalog)
    if mythical is not None:
        return PokemonDraw(pokemon=mythical, rarity=PokemonRarity.MYTHICAL, reason=REASON_MYTHICAL_ROLL)

    if card_completed:
        legendary = select_legendary_for_card_completion(catalog)
        return PokemonDraw(pokemon=legendary, rarity=PokemonRarity.LEGENDARY, reason=REASON_CARD_COMPLETION)

    pokemon = select_random_pokemon(catalog, routine_rarity_weights())
    return PokemonDraw(pokemon=pokemon, rarity=rarity_of(pokemon), reason=None)
