from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import date, datetime

os.environ.setdefault("STAMPBOOK_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("STAMPBOOK_REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("STAMPBOOK_JWT_SECRET", "test-secret-with-enough-length-for-hs256")
os.environ.setdefault("STAMPBOOK_APP_ENV", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stampbook import models  # noqa: F401
from stampbook.db.base import Base
from stampbook.models import Child, Family, Pokemon, Stamp, StampCategory, StampType


@pytest.fixture()
def db() -> Iterator[Session]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def make_family(db: Session, name: str = "Tanaka") -> Family:
    family = Family(name=name)
    db.add(family)
    db.commit()
    return family


def make_child(
    db: Session,
    family: Family,
    *,
    name: str = "Haru",
    target_stamps: int = 10,
    birth_date: date | None = None,
) -> Child:
    child = Child(family_id=family.id, name=name, target_stamps=target_stamps, birth_date=birth_date)
    db.add(child)
    db.commit()
    return child


def make_stamp_type(
    db: Session,
    family: Family | None = None,
    *,
    name: str = "手伝い",
    color: str = "#10B981",
) -> StampType:
    stamp_type = StampType(
        name=name,
        icon="🤝",
        color=color,
        category=StampCategory.HELP if family is None else StampCategory.CUSTOM,
        is_custom=family is not None,
        is_system_default=family is None,
        family_id=family.id if family is not None else None,
    )
    db.add(stamp_type)
    db.commit()
    return stamp_type


def build_pokemons(*, common: int = 10, legendary: int = 1, mythical: int = 1) -> list[Pokemon]:
    pokemons: list[Pokemon] = []
    for index in range(common):
        pokemons.append(Pokemon(id=index + 1, name=f"common-{index + 1}", is_legendary=False, is_mythical=False))
    for index in range(legendary):
        pokemons.append(Pokemon(id=144 + index, name=f"legendary-{index + 1}", is_legendary=True, is_mythical=False))
    for index in range(mythical):
        pokemons.append(
            Pokemon(id=151 + index * 100, name=f"mythical-{index + 1}", is_legendary=False, is_mythical=True),
        )
    return pokemons


def make_catalog(db: Session, *, common: int = 10, legendary: int = 1, mythical: int = 1) -> list[Pokemon]:
    pokemons = build_pokemons(common=common, legendary=legendary, mythical=mythical)
    db.add_all(pokemons)
    db.commit()
    return pokemons


def add_stamp(
    db: Session,
    child: Child,
    stamp_type: StampType,
    pokemon: Pokemon,
    stamped_at: datetime,
    *,
    opened: bool = False,
) -> Stamp:
    stamp = Stamp(
        child_id=child.id,
        stamp_type_id=stamp_type.id,
        pokemon_id=pokemon.id,
        stamped_at=stamped_at,
        opened_at=stamped_at if opened else None,
    )
    db.add(stamp)
    db.commit()
    return stamp
