"""
Shared fixtures: in-memory database and a small league to record matches in.

Handicap table (recurve and compound): numbers 12-40, allowance = 6 * number - 70
    handicap 20 -> allowance 50
    handicap 25 -> allowance 80
"""
from datetime import date, datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from archery_league.orm import (
    Base, Competition, Stage, StageType, Round, Entry, Handicap, MatchResult, Score
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def allowance_for(number: int) -> int:
    return 6 * number - 70


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def handicaps(db: AsyncSession):
    for bow_style in ("recurve", "compound"):
        for number in range(12, 41):
            db.add(Handicap(bow_style=bow_style, number=number, match_allowance=allowance_for(number)))
    await db.commit()


@pytest_asyncio.fixture
async def competition(db: AsyncSession) -> Competition:
    competition = Competition(
        name="Winter League 2025",
        entries_open_on=date(2025, 1, 1),
        entries_close_on=date(2025, 2, 28),
        starts_on=date(2025, 3, 1),
        ends_on=date(2025, 6, 30),
    )
    db.add(competition)
    await db.commit()
    return competition


@pytest_asyncio.fixture
async def league_stage(db: AsyncSession, competition: Competition) -> Stage:
    stage = Stage(
        competition_id=competition.id,
        name="League",
        type=StageType.LEAGUE,
        capacity=16,
        starts_on=date(2025, 3, 1),
        ends_on=date(2025, 4, 30),
    )
    db.add(stage)
    await db.flush()

    db.add_all([
        Round(stage_id=stage.id, name="Round 1", starts_on=date(2025, 3, 1), ends_on=date(2025, 3, 31)),
        Round(stage_id=stage.id, name="Round 2", starts_on=date(2025, 4, 1), ends_on=date(2025, 4, 30)),
    ])
    await db.commit()
    return stage


@pytest_asyncio.fixture
async def playoff_stage(db: AsyncSession, competition: Competition) -> Stage:
    stage = Stage(
        competition_id=competition.id,
        name="Playoffs",
        type=StageType.PLAYOFF,
        capacity=4,
        starts_on=date(2025, 6, 1),
        ends_on=date(2025, 6, 30),
    )
    db.add(stage)
    await db.flush()

    db.add(Round(stage_id=stage.id, name="Final", starts_on=date(2025, 6, 1), ends_on=date(2025, 6, 30)))
    await db.commit()
    return stage


async def _make_entry(db: AsyncSession, competition: Competition, name: str, handicap: int) -> Entry:
    entry = Entry(
        competition_id=competition.id,
        archer_name=name,
        bow_style="recurve",
        starting_handicap=handicap,
        current_handicap=handicap,
    )
    db.add(entry)
    await db.commit()
    return entry


@pytest_asyncio.fixture
async def entry_a(db: AsyncSession, competition: Competition, handicaps) -> Entry:
    return await _make_entry(db, competition, "Alice Archer", 20)


@pytest_asyncio.fixture
async def entry_b(db: AsyncSession, competition: Competition, handicaps) -> Entry:
    return await _make_entry(db, competition, "Bob Bowman", 25)


@pytest_asyncio.fixture
async def entry_c(db: AsyncSession, competition: Competition, handicaps) -> Entry:
    return await _make_entry(db, competition, "Carol Fletcher", 30)


@pytest.fixture
def match_input():
    """Build the record/update payload for a match."""
    def _build(stage_id, left_entry_id, left_points, right_entry_id, right_points,
               shot_at=datetime(2025, 3, 15, 18, 30)):
        return {
            "stage_id": stage_id,
            "shot_at": shot_at,
            "left_score": {"entry_id": left_entry_id, "match_points": left_points},
            "right_score": {"entry_id": right_entry_id, "match_points": right_points},
        }
    return _build


async def insert_history_match(
    db: AsyncSession,
    round_id: int,
    shot_at: datetime,
    entry_id: int,
    opponent_id: int,
    handicap_after: int,
) -> MatchResult:
    """Write a past match directly, bypassing the service."""
    def _score(owner_id: int, after: int) -> Score:
        return Score(
            entry_id=owner_id,
            handicap_before=after,
            handicap_after=after,
            allowance=allowance_for(after),
            match_points=1300,
            match_points_adjusted=1300 + allowance_for(after),
            bonus_points=0,
            league_points=1,
        )

    match = MatchResult(
        round_id=round_id,
        shot_at=shot_at,
        left_score=_score(entry_id, handicap_after),
        right_score=_score(opponent_id, 30),
    )
    db.add(match)
    await db.commit()
    return match


@pytest.fixture
def history_match():
    return insert_history_match
