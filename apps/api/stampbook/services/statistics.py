"""Read-side aggregates over a child's stamp stream.

All functions take the reference clock explicitly and return plain
dataclasses. Empty input always produces zero/empty results.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from stampbook.core.errors import DomainValidationError
from stampbook.models import Pokemon, PokemonRarity, Stamp, StampType
from stampbook.services.periods import (
    DateWindow,
    month_window,
    shift_month,
    trailing_days,
    week_window,
    year_window,
)
from stampbook.services.pokemon_selector import rarity_of

RECENT_STAMPS_PER_TYPE = 5
MAX_PERIOD_BUCKETS = 366
MAX_GROWTH_DAYS = 366


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True, slots=True)
class StampRow:
    stamp: Stamp
    pokemon: Pokemon
    stamp_type: StampType

    @property
    def day(self) -> date:
        return self.stamp.stamped_at.date()

    @property
    def rarity(self) -> PokemonRarity:
        return rarity_of(self.pokemon)


@dataclass(frozen=True, slots=True)
class RarityCounts:
    total: int
    legendary: int
    mythical: int

    @property
    def special_rate(self) -> float:
        return percentage(self.legendary + self.mythical, self.total)


@dataclass(frozen=True, slots=True)
class BasicStatistics:
    total_stamps: int
    today_stamps: int
    this_month_stamps: int
    this_year_stamps: int
    legendary_count: int
    mythical_count: int
    special_pokemon_rate: float
    current_streak_days: int
    longest_streak_days: int


@dataclass(frozen=True, slots=True)
class PeriodBucket:
    label: str
    start_date: date
    end_date: date
    count: int


@dataclass(frozen=True, slots=True)
class PeriodStatistics:
    granularity: Granularity
    buckets: list[PeriodBucket]
    total: int
    average: float


@dataclass(frozen=True, slots=True)
class StampTypeStatistic:
    stamp_type: StampType
    count: int
    legendary_count: int
    mythical_count: int
    percentage: float
    recent_stamps: list[StampRow]


@dataclass(slots=True)
class PokemonEncounter:
    pokemon: Pokemon
    count: int
    first_encounter: datetime
    last_encounter: datetime

    @property
    def rarity(self) -> PokemonRarity:
        return rarity_of(self.pokemon)


@dataclass(frozen=True, slots=True)
class PokemonCollectionStatistics:
    total_unique_pokemons: int
    common_pokemons: int
    legendary_pokemons: int
    mythical_pokemons: int
    collection: list[PokemonEncounter]
    most_encountered: PokemonEncounter | None
    rarest_encounters: list[PokemonEncounter]


@dataclass(frozen=True, slots=True)
class GrowthPoint:
    date: date
    total_stamps: int
    legendary_stamps: int
    mythical_stamps: int
    cumulative_total: int


@dataclass(frozen=True, slots=True)
class GrowthChart:
    window: DateWindow
    points: list[GrowthPoint]
    total_stamps: int
    average_per_day: float
    max_daily_stamps: int
    active_days: int


@dataclass(frozen=True, slots=True)
class StreakSummary:
    current: int
    longest: int
    active_days: list[date] = field(default_factory=list)


def percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def safe_average(total: int, divisor: int) -> float:
    if divisor <= 0:
        return 0.0
    return round(total / divisor, 1)


def fetch_stamp_rows(db: Session, child_id: int, window: DateWindow | None = None) -> list[StampRow]:
    query = (
        select(Stamp, Pokemon, StampType)
        .join(Pokemon, Pokemon.id == Stamp.pokemon_id)
        .join(StampType, StampType.id == Stamp.stamp_type_id)
        .where(Stamp.child_id == child_id)
    )
    if window is not None:
        query = query.where(Stamp.stamped_at >= window.starts_at, Stamp.stamped_at <= window.ends_at)
    query = query.order_by(Stamp.stamped_at.asc(), Stamp.id.asc())
    return [
        StampRow(stamp=stamp, pokemon=pokemon, stamp_type=stamp_type)
        for stamp, pokemon, stamp_type in db.execute(query).all()
    ]


def count_rarities(rows: Iterable[StampRow]) -> RarityCounts:
    total = legendary = mythical = 0
    for row in rows:
        total += 1
        rarity = row.rarity
        if rarity == PokemonRarity.LEGENDARY:
            legendary += 1
        elif rarity == PokemonRarity.MYTHICAL:
            mythical += 1
    return RarityCounts(total=total, legendary=legendary, mythical=mythical)


def group_by_day(rows: Iterable[StampRow]) -> dict[date, list[StampRow]]:
    grouped: dict[date, list[StampRow]] = defaultdict(list)
    for row in rows:
        grouped[row.day].append(row)
    return dict(grouped)


def compute_streaks(days: Iterable[date], today: date) -> StreakSummary:
    """Current streak ends today, or yesterday while today has no stamp yet."""
    ordered = sorted(set(days))
    if not ordered:
        return StreakSummary(current=0, longest=0)

    longest = run = 1
    for previous, current in zip(ordered, ordered[1:]):
        run = run + 1 if current - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    active = set(ordered)
    cursor = today if today in active else today - timedelta(days=1)
    current = 0
    while cursor in active:
        current += 1
        cursor -= timedelta(days=1)
    return StreakSummary(current=current, longest=longest, active_days=ordered)


def basic_statistics_from_rows(rows: Sequence[StampRow], now: datetime) -> BasicStatistics:
    today = now.date()
    month = month_window(today.year, today.month)
    year = year_window(today.year)
    counts = count_rarities(rows)
    streaks = compute_streaks((row.day for row in rows), today)
    return BasicStatistics(
        total_stamps=counts.total,
        today_stamps=sum(1 for row in rows if row.day == today),
        this_month_stamps=sum(1 for row in rows if month.contains(row.day)),
        this_year_stamps=sum(1 for row in rows if year.contains(row.day)),
        legendary_count=counts.legendary,
        mythical_count=counts.mythical,
        special_pokemon_rate=counts.special_rate,
        current_streak_days=streaks.current,
        longest_streak_days=streaks.longest,
    )


def get_basic_statistics(db: Session, child_id: int, *, now: datetime) -> BasicStatistics:
    return basic_statistics_from_rows(fetch_stamp_rows(db, child_id), now)


def _validate_count(name: str, value: int, maximum: int) -> None:
    if not 1 <= value <= maximum:
        raise DomainValidationError(f"{name} must be between 1 and {maximum}", details={name: value})


def period_windows(granularity: Granularity, count: int, today: date) -> list[tuple[str, DateWindow]]:
    """The last ``count`` buckets ending with the one containing ``today``, oldest first."""
    windows: list[tuple[str, DateWindow]] = []
    if granularity == Granularity.DAILY:
        for offset in range(count - 1, -1, -1):
            day = today - timedelta(days=offset)
            windows.append((day.isoformat(), DateWindow(start=day, end=day)))
    elif granularity == Granularity.WEEKLY:
        current = week_window(today)
        for offset in range(count - 1, -1, -1):
            start = current.start - timedelta(weeks=offset)
            window = DateWindow(start=start, end=start + timedelta(days=6))
            windows.append((f"{start.isoformat()}/{window.end.isoformat()}", window))
    else:
        for offset in range(count - 1, -1, -1):
            year, month = shift_month(today.year, today.month, -offset)
            windows.append((f"{year:04d}-{month:02d}", month_window(year, month)))
    return windows


def get_period_statistics(
    db: Session,
    child_id: int,
    *,
    granularity: Granularity | str,
    count: int,
    today: date,
) -> PeriodStatistics:
    try:
        parsed = Granularity(granularity)
    except ValueError as exc:
        raise DomainValidationError(
            "Unknown granularity",
            details={"granularity": str(granularity), "allowed": [item.value for item in Granularity]},
        ) from exc
    _validate_count("count", count, MAX_PERIOD_BUCKETS)

    windows = period_windows(parsed, count, today)
    span = DateWindow(start=windows[0][1].start, end=windows[-1][1].end)
    per_day: dict[date, int] = defaultdict(int)
    for row in fetch_stamp_rows(db, child_id, span):
        per_day[row.day] += 1

    buckets = [
        PeriodBucket(
            label=label,
            start_date=window.start,
            end_date=window.end,
            count=sum(per_day.get(day, 0) for day in window.iter_days()),
        )
        for label, window in windows
    ]
    total = sum(bucket.count for bucket in buckets)
    return PeriodStatistics(granularity=parsed, buckets=buckets, total=total, average=safe_average(total, count))


def stamp_type_statistics_from_rows(rows: Sequence[StampRow]) -> list[StampTypeStatistic]:
    grouped: dict[int, list[StampRow]] = defaultdict(list)
    for row in rows:
        grouped[row.stamp_type.id].append(row)

    grand_total = len(rows)
    stats: list[StampTypeStatistic] = []
    for type_rows in grouped.values():
        counts = count_rarities(type_rows)
        newest_first = sorted(type_rows, key=lambda row: (row.stamp.stamped_at, row.stamp.id), reverse=True)
        stats.append(
            StampTypeStatistic(
                stamp_type=type_rows[0].stamp_type,
                count=counts.total,
                legendary_count=counts.legendary,
                mythical_count=counts.mythical,
                percentage=percentage(counts.total, grand_total),
                recent_stamps=newest_first[:RECENT_STAMPS_PER_TYPE],
            ),
        )
    stats.sort(key=lambda item: (-item.count, item.stamp_type.name))
    return stats


def get_stamp_type_statistics(
    db: Session,
    child_id: int,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[StampTypeStatistic]:
    window = None
    if start_date is not None or end_date is not None:
        if start_date is None or end_date is None:
            raise DomainValidationError("start_date and end_date must be given together")
        if end_date < start_date:
            raise DomainValidationError("end_date must not be before start_date")
        window = DateWindow(start=start_date, end=end_date)
    return stamp_type_statistics_from_rows(fetch_stamp_rows(db, child_id, window))


def pokemon_collection_from_rows(rows: Sequence[StampRow]) -> PokemonCollectionStatistics:
    encounters: dict[int, PokemonEncounter] = {}
    for row in rows:
        encounter = encounters.get(row.pokemon.id)
        if encounter is None:
            encounters[row.pokemon.id] = PokemonEncounter(
                pokemon=row.pokemon,
                count=1,
                first_encounter=row.stamp.stamped_at,
                last_encounter=row.stamp.stamped_at,
            )
            continue
        encounter.count += 1
        encounter.first_encounter = min(encounter.first_encounter, row.stamp.stamped_at)
        encounter.last_encounter = max(encounter.last_encounter, row.stamp.stamped_at)

    # Highest count first; ties go to the Pokémon met earliest.
    collection = sorted(encounters.values(), key=lambda item: (-item.count, item.first_encounter, item.pokemon.id))
    return PokemonCollectionStatistics(
        total_unique_pokemons=len(collection),
        common_pokemons=sum(1 for item in collection if item.rarity == PokemonRarity.COMMON),
        legendary_pokemons=sum(1 for item in collection if item.rarity == PokemonRarity.LEGENDARY),
        mythical_pokemons=sum(1 for item in collection if item.rarity == PokemonRarity.MYTHICAL),
        collection=collection,
        most_encountered=collection[0] if collection else None,
        rarest_encounters=[item for item in collection if item.rarity == PokemonRarity.MYTHICAL],
    )


def get_pokemon_collection_statistics(
    db: Session,
    child_id: int,
    *,
    window: DateWindow | None = None,
) -> PokemonCollectionStatistics:
    return pokemon_collection_from_rows(fetch_stamp_rows(db, child_id, window))


def growth_chart_from_rows(rows: Sequence[StampRow], window: DateWindow) -> GrowthChart:
    by_day = group_by_day(rows)
    points: list[GrowthPoint] = []
    cumulative = 0
    for day in window.iter_days():
        counts = count_rarities(by_day.get(day, []))
        cumulative += counts.total
        points.append(
            GrowthPoint(
                date=day,
                total_stamps=counts.total,
                legendary_stamps=counts.legendary,
                mythical_stamps=counts.mythical,
                cumulative_total=cumulative,
            ),
        )
    return GrowthChart(
        window=window,
        points=points,
        total_stamps=cumulative,
        average_per_day=safe_average(cumulative, window.days),
        max_daily_stamps=max((point.total_stamps for point in points), default=0),
        active_days=sum(1 for point in points if point.total_stamps > 0),
    )


def get_growth_chart_data(db: Session, child_id: int, *, days: int, today: date) -> GrowthChart:
    _validate_count("days", days, MAX_GROWTH_DAYS)
    window = trailing_days(today, days)
    return growth_chart_from_rows(fetch_stamp_rows(db, child_id, window), window)
