"""Integration tests for record recalculation, bout results and manual history."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from apex.db.repositories import RecordRepository
from apex.schemas.fight_history import FightHistoryCreate, FightHistoryUpdate
from apex.services.errors import (
    BoutNotFoundError,
    FightHistoryEntryNotFoundError,
    FighterNotFoundError,
    InvalidBoutResultError,
    InvalidFightHistoryError,
    InvalidRecordError,
    NotPermittedError,
)
from apex.services.record_service import (
    SKIP_REASON_LOST_WINS,
    SKIP_REASON_NO_BOUTS,
    FightHistoryService,
    FighterRecordService,
)


@pytest.fixture
def record_service(session) -> FighterRecordService:
    return FighterRecordService(RecordRepository(session))


@pytest.fixture
def history_service(session) -> FightHistoryService:
    repository = RecordRepository(session)
    return FightHistoryService(repository, FighterRecordService(repository))


def _new_fight(**overrides) -> FightHistoryCreate:
    values = {
        "event_name": "Cage Wars 12",
        "event_date": date(2025, 4, 12),
        "opponent_name": "Dana Cole",
        "result": "win",
        "result_method": "KO",
        "result_round": 2,
    }
    values.update(overrides)
    return FightHistoryCreate(**values)


@pytest.mark.asyncio
async def test_recalculate_combines_baseline_bouts_and_manual_history(
    seed, record_service
) -> None:
    """A red-corner loss and a manual win on top of 10-2-1 store 11-3-1."""

    promoter = await seed.profile("promo-1", "promotion")
    fighter = await seed.profile("fighter-1", record_base="10-2-1", record="10-2-1")
    opponent = await seed.profile("fighter-2")
    event = await seed.event(promoter)
    await seed.bout(event, red=fighter, blue=opponent, winner_side="blue")
    await seed.bout(event, red=fighter, blue=opponent)  # unresolved, ignored
    await seed.fight(fighter, "win", date(2025, 6, 1))

    result = await record_service.recalculate("fighter-1")

    assert result.skipped is False
    assert result.total_record == "11-3-1"
    assert result.last_5_form == "WL"
    assert result.current_win_streak == 0
    assert fighter.record == "11-3-1"
    assert fighter.record_base == "10-2-1"
    assert fighter.last_5_form == "WL"


@pytest.mark.asyncio
async def test_recalculate_skips_when_wins_would_vanish(seed, record_service) -> None:
    fighter = await seed.profile("fighter-1", record="8-0-0")

    result = await record_service.recalculate("fighter-1")

    assert result.skipped is True
    assert result.reason == SKIP_REASON_LOST_WINS
    assert result.total_record == "8-0-0"
    assert fighter.record == "8-0-0"


@pytest.mark.asyncio
async def test_recalculate_skips_shrinking_record_without_history(
    seed, record_service
) -> None:
    fighter = await seed.profile("fighter-1", record="0-3-0")

    result = await record_service.recalculate("fighter-1")

    assert result.skipped is True
    assert result.reason == SKIP_REASON_NO_BOUTS
    assert fighter.record == "0-3-0"


@pytest.mark.asyncio
async def test_new_total_record_derives_the_baseline(seed, record_service) -> None:
    promoter = await seed.profile("promo-1", "promotion")
    fighter = await seed.profile("fighter-1", record="3-0-0")
    opponent = await seed.profile("fighter-2")
    event = await seed.event(promoter)
    await seed.bout(event, red=fighter, blue=opponent, winner_side="red")
    await seed.fight(fighter, "loss", date(2024, 9, 9))

    result = await record_service.recalculate("fighter-1", new_total_record="12-3-1")

    assert result.total_record == "12-3-1"
    assert result.record_base == "11-2-1"
    assert fighter.record == "12-3-1"
    assert fighter.record_base == "11-2-1"

    again = await record_service.recalculate("fighter-1")
    assert again.total_record == "12-3-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("typed", ["10-2", "10 - 2 - 1", "10-2-1-0", "ten-two-one"])
async def test_malformed_total_record_leaves_the_record_alone(
    seed, record_service, typed: str
) -> None:
    fighter = await seed.profile("fighter-1", record="10-2-1", record_base="10-2-1")

    with pytest.raises(InvalidRecordError) as excinfo:
        await record_service.recalculate("fighter-1", new_total_record=typed)

    assert excinfo.value.status_code == 400
    assert fighter.record == "10-2-1"
    assert fighter.record_base == "10-2-1"


@pytest.mark.asyncio
async def test_blank_total_record_falls_back_to_plain_recalculation(
    seed, record_service
) -> None:
    await seed.profile("fighter-1", record="10-2-1", record_base="10-2-1")

    result = await record_service.recalculate("fighter-1", new_total_record="   ")

    assert result.total_record == "10-2-1"
    assert result.skipped is False


@pytest.mark.asyncio
async def test_recalculate_unknown_fighter(record_service) -> None:
    with pytest.raises(FighterNotFoundError):
        await record_service.recalculate("missing")


@pytest.mark.asyncio
async def test_event_owner_records_bout_result_for_both_corners(
    seed, record_service
) -> None:
    promoter = await seed.profile("promo-1", "promotion")
    red = await seed.profile("fighter-red")
    blue = await seed.profile("fighter-blue")
    event = await seed.event(promoter)
    bout = await seed.bout(event, red=red, blue=blue)

    result = await record_service.record_bout_result(
        bout.id, "RED", actor=promoter, method="Submission"
    )

    assert result.winner_side == "red"
    assert result.method == "Submission"
    assert {record.fighter_id: record.total_record for record in result.records} == {
        "fighter-red": "1-0-0",
        "fighter-blue": "0-1-0",
    }
    assert red.current_win_streak == 1
    assert blue.last_5_form == "L"


@pytest.mark.asyncio
async def test_admin_may_record_results_for_any_event(seed, record_service) -> None:
    promoter = await seed.profile("promo-1", "promotion")
    admin = await seed.profile("admin-1", "Admin")
    red = await seed.profile("fighter-red")
    event = await seed.event(promoter)
    bout = await seed.bout(event, red=red)

    result = await record_service.record_bout_result(bout.id, "draw", actor=admin)

    assert [record.total_record for record in result.records] == ["0-0-1"]


@pytest.mark.asyncio
async def test_correcting_the_winner_keeps_the_recorded_method(
    seed, record_service
) -> None:
    promoter = await seed.profile("promo-1", "promotion")
    red = await seed.profile("fighter-red")
    blue = await seed.profile("fighter-blue")
    event = await seed.event(promoter)
    bout = await seed.bout(event, red=red, blue=blue)

    await record_service.record_bout_result(bout.id, "red", actor=promoter, method="KO")
    result = await record_service.record_bout_result(bout.id, "blue", actor=promoter)

    assert result.winner_side == "blue"
    assert result.method == "KO"
    assert bout.method == "KO"


@pytest.mark.asyncio
async def test_bout_result_requires_owner_or_admin(seed, record_service) -> None:
    promoter = await seed.profile("promo-1", "promotion")
    red = await seed.profile("fighter-red")
    event = await seed.event(promoter)
    bout = await seed.bout(event, red=red)

    with pytest.raises(NotPermittedError):
        await record_service.record_bout_result(bout.id, "red", actor=red)


@pytest.mark.asyncio
async def test_bout_result_validation(seed, record_service) -> None:
    promoter = await seed.profile("promo-1", "promotion")

    with pytest.raises(InvalidBoutResultError):
        await record_service.record_bout_result("any", "purple", actor=promoter)
    with pytest.raises(BoutNotFoundError):
        await record_service.record_bout_result("missing", "red", actor=promoter)


@pytest.mark.asyncio
async def test_newer_bouts_lead_the_form_guide(seed, record_service) -> None:
    promoter = await seed.profile("promo-1", "promotion")
    fighter = await seed.profile("fighter-1")
    opponent = await seed.profile("fighter-2")
    event = await seed.event(promoter)
    start = datetime(2026, 2, 1, tzinfo=UTC)
    for offset, side in enumerate(["blue", "red", "red"]):
        await seed.bout(
            event,
            red=fighter,
            blue=opponent,
            winner_side=side,
            created_at=start + timedelta(days=offset),
        )

    result = await record_service.recalculate("fighter-1")

    assert result.last_5_form == "LWW"
    assert result.current_win_streak == 2


@pytest.mark.asyncio
async def test_fighter_adds_fight_history_and_record_updates(
    seed, history_service
) -> None:
    fighter = await seed.profile("fighter-1", record_base="2-1-0")

    created = await history_service.create_entry(
        "fighter-1", _new_fight(), actor=fighter
    )

    assert created.fight is not None
    assert created.fight.opponent_name == "Dana Cole"
    assert created.fight.result_round == 2
    assert created.record.total_record == "3-1-0"
    assert fighter.record == "3-1-0"

    listing = await history_service.list_entries("fighter-1")
    assert [entry.id for entry in listing] == [created.fight.id]


@pytest.mark.asyncio
async def test_fight_history_is_listed_newest_first(seed, history_service) -> None:
    fighter = await seed.profile("fighter-1")
    await seed.fight(fighter, "loss", date(2023, 1, 1), opponent_name="Early")
    await seed.fight(fighter, "win", date(2025, 1, 1), opponent_name="Late")

    listing = await history_service.list_entries("fighter-1")

    assert [entry.opponent_name for entry in listing] == ["Late", "Early"]


@pytest.mark.asyncio
async def test_fighters_cannot_write_other_histories(seed, history_service) -> None:
    fighter = await seed.profile("fighter-1")
    other = await seed.profile("fighter-2")
    entry = await seed.fight(fighter, "win", date(2025, 1, 1))

    with pytest.raises(NotPermittedError, match="your own fight history"):
        await history_service.create_entry("fighter-1", _new_fight(), actor=other)
    with pytest.raises(NotPermittedError):
        await history_service.update_entry(
            entry.id, FightHistoryUpdate(result="loss"), actor=other
        )
    with pytest.raises(NotPermittedError):
        await history_service.delete_entry(entry.id, actor=other)


@pytest.mark.asyncio
async def test_future_fight_dates_are_rejected(seed, history_service) -> None:
    fighter = await seed.profile("fighter-1")
    tomorrow = date.today() + timedelta(days=1)

    with pytest.raises(InvalidFightHistoryError, match="future"):
        await history_service.create_entry(
            "fighter-1", _new_fight(event_date=tomorrow), actor=fighter
        )


@pytest.mark.asyncio
async def test_update_rejects_clearing_required_fields(seed, history_service) -> None:
    fighter = await seed.profile("fighter-1")
    entry = await seed.fight(fighter, "win", date(2025, 1, 1))

    with pytest.raises(InvalidFightHistoryError, match="event_name"):
        await history_service.update_entry(
            entry.id, FightHistoryUpdate(event_name=None), actor=fighter
        )


@pytest.mark.asyncio
async def test_updating_a_result_recomputes_the_record(seed, history_service) -> None:
    fighter = await seed.profile("fighter-1")
    entry = await seed.fight(fighter, "win", date(2025, 1, 1))
    await history_service.create_entry("fighter-1", _new_fight(), actor=fighter)
    assert fighter.record == "2-0-0"

    updated = await history_service.update_entry(
        entry.id, FightHistoryUpdate(result="loss", notes="Split decision"), actor=fighter
    )

    assert updated.fight is not None
    assert updated.fight.result == "loss"
    assert updated.fight.notes == "Split decision"
    assert updated.record.skipped is False
    assert updated.record.total_record == "1-1-0"


@pytest.mark.asyncio
async def test_deleting_a_win_is_not_blocked_by_the_regression_guard(
    seed, history_service
) -> None:
    fighter = await seed.profile("fighter-1")
    await history_service.create_entry("fighter-1", _new_fight(), actor=fighter)
    second = await history_service.create_entry(
        "fighter-1", _new_fight(event_date=date(2025, 8, 1)), actor=fighter
    )
    assert fighter.record == "2-0-0"

    deleted = await history_service.delete_entry(second.fight.id, actor=fighter)

    assert deleted.fight is None
    assert deleted.record.skipped is False
    assert deleted.record.total_record == "1-0-0"
    assert fighter.record == "1-0-0"


@pytest.mark.asyncio
async def test_missing_history_entry(seed, history_service) -> None:
    fighter = await seed.profile("fighter-1")

    with pytest.raises(FightHistoryEntryNotFoundError):
        await history_service.delete_entry("missing", actor=fighter)
