"""Win-loss-draw record computation for fighter profiles.

A fighter's total record combines three sources:

* ``record_base`` - the manually entered record for fights outside the
  platform, stored as ``"W-L-D"``;
* resolved platform bouts, where the outcome is derived from the bout's
  ``winner_side`` and the corner the fighter occupied;
* manual fight-history entries carrying an explicit result.

Everything in this module is pure: callers load rows, call
:func:`compute_record` (or :func:`reverse_baseline`) and persist the result.
Malformed input is coerced to zero rather than rejected.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Literal

Outcome = Literal["W", "L", "D", "N"]
Corner = Literal["red", "blue"]

FORM_WINDOW = 5

_RECORD_PATTERN = re.compile(r"^(\d+)-(\d+)-(\d+)$")

_MANUAL_RESULT_OUTCOMES: dict[str, Outcome] = {
    "win": "W",
    "loss": "L",
    "draw": "D",
    "no_contest": "N",
}

# Undated entries sort behind every dated one.
_OLDEST = datetime.min


@dataclass(frozen=True)
class RecordTriple:
    """Wins, losses and draws; arithmetic is component-wise and unclamped."""

    wins: int = 0
    losses: int = 0
    draws: int = 0

    def __add__(self, other: RecordTriple) -> RecordTriple:
        return RecordTriple(
            wins=self.wins + other.wins,
            losses=self.losses + other.losses,
            draws=self.draws + other.draws,
        )

    def __sub__(self, other: RecordTriple) -> RecordTriple:
        return RecordTriple(
            wins=self.wins - other.wins,
            losses=self.losses - other.losses,
            draws=self.draws - other.draws,
        )

    def clamped(self) -> RecordTriple:
        return RecordTriple(
            wins=max(0, self.wins),
            losses=max(0, self.losses),
            draws=max(0, self.draws),
        )

    @property
    def total_fights(self) -> int:
        return self.wins + self.losses + self.draws

    def __str__(self) -> str:
        return format_record(self)


ZERO_RECORD = RecordTriple()

_OUTCOME_DELTAS: dict[Outcome, RecordTriple] = {
    "W": RecordTriple(wins=1),
    "L": RecordTriple(losses=1),
    "D": RecordTriple(draws=1),
    "N": ZERO_RECORD,
}


@dataclass(frozen=True)
class ResolvedBout:
    """A platform bout with a recorded winner side."""

    bout_id: str
    winner_side: str | None
    red_fighter_id: str | None
    blue_fighter_id: str | None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ManualFight:
    """A fight-history entry typed in by the fighter."""

    result: str | None
    event_date: date | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """One outcome on the merged, date-ordered fight history."""

    occurred_at: datetime | None
    outcome: Outcome
    source: Literal["bout", "manual"]


@dataclass(frozen=True)
class RecordSummary:
    total: RecordTriple
    last5: str
    streak: int

    @property
    def record(self) -> str:
        return format_record(self.total)


def parse_record(record: str | None) -> RecordTriple:
    """Parse ``"W-L-D"`` leniently; anything unparsable becomes ``0-0-0``."""

    if not record:
        return ZERO_RECORD

    match = _RECORD_PATTERN.match(record.strip())
    if match is None:
        return ZERO_RECORD

    wins, losses, draws = (int(group) for group in match.groups())
    return RecordTriple(wins=wins, losses=losses, draws=draws)


def is_record(value: str | None) -> bool:
    """Return whether ``value`` is a well-formed ``"W-L-D"`` string."""

    return bool(value) and _RECORD_PATTERN.match(value.strip()) is not None


def format_record(record: RecordTriple) -> str:
    """Render ``record`` as ``"W-L-D"`` with negative components clamped to zero."""

    safe = record.clamped()
    return f"{safe.wins}-{safe.losses}-{safe.draws}"


def corner_for(bout: ResolvedBout, fighter_id: str) -> Corner:
    return "red" if bout.red_fighter_id == fighter_id else "blue"


def outcome_for_bout(bout: ResolvedBout, fighter_id: str) -> Outcome | None:
    """Return the fighter's outcome for ``bout`` or ``None`` when unresolved."""

    winner = (bout.winner_side or "").strip().lower()
    if not winner:
        return None
    if winner == "draw":
        return "D"
    if winner == "no_contest":
        return "N"
    return "W" if winner == corner_for(bout, fighter_id) else "L"


def outcome_for_manual_fight(fight: ManualFight) -> Outcome | None:
    """Map a stored ``win|loss|draw|no_contest`` result; unknown values yield ``None``."""

    if not fight.result:
        return None
    return _MANUAL_RESULT_OUTCOMES.get(fight.result.strip().lower())


def tally(outcomes: Iterable[Outcome]) -> RecordTriple:
    """Fold outcomes into a record; no-contests contribute nothing."""

    total = ZERO_RECORD
    for outcome in outcomes:
        total = total + _OUTCOME_DELTAS[outcome]
    return total


def _as_sort_key(moment: datetime | date | None) -> datetime:
    if moment is None:
        return _OLDEST
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            return moment.astimezone(UTC).replace(tzinfo=None)
        return moment
    return datetime.combine(moment, time.min)


def build_history(
    fighter_id: str,
    resolved_bouts: Iterable[ResolvedBout] | None,
    manual_fights: Iterable[ManualFight] | None,
) -> list[HistoryEntry]:
    """Merge both result sources into one list, most recent first."""

    entries: list[HistoryEntry] = []
    for bout in resolved_bouts or ():
        outcome = outcome_for_bout(bout, fighter_id)
        if outcome is not None:
            entries.append(HistoryEntry(bout.created_at, outcome, "bout"))

    for fight in manual_fights or ():
        outcome = outcome_for_manual_fight(fight)
        if outcome is not None:
            occurred_at = (
                _as_sort_key(fight.event_date) if fight.event_date is not None else None
            )
            entries.append(HistoryEntry(occurred_at, outcome, "manual"))

    entries.sort(key=lambda entry: _as_sort_key(entry.occurred_at), reverse=True)
    return entries


def last_five_form(history: list[HistoryEntry]) -> str:
    """Render the five most recent outcomes oldest-first, e.g. ``"WWLDW"``."""

    recent = history[:FORM_WINDOW]
    return "".join(entry.outcome for entry in reversed(recent))


def current_win_streak(history: list[HistoryEntry]) -> int:
    """Count wins from the most recent fight until the first non-win.

    Draws and no-contests end the walk exactly like losses do.
    """

    streak = 0
    for entry in history:
        if entry.outcome != "W":
            break
        streak += 1
    return streak


def contributed_record(
    fighter_id: str,
    resolved_bouts: Iterable[ResolvedBout] | None,
    manual_fights: Iterable[ManualFight] | None,
) -> RecordTriple:
    """Return Σ(resolved bouts) + Σ(manual fights) for ``fighter_id``."""

    history = build_history(fighter_id, resolved_bouts, manual_fights)
    return tally(entry.outcome for entry in history)


def compute_record(
    fighter_id: str,
    baseline: str | None,
    resolved_bouts: Iterable[ResolvedBout] | None,
    manual_fights: Iterable[ManualFight] | None,
) -> RecordSummary:
    """Compute the total record, recent form and win streak for one fighter."""

    history = build_history(fighter_id, resolved_bouts, manual_fights)
    total = parse_record(baseline) + tally(entry.outcome for entry in history)
    return RecordSummary(
        total=total.clamped(),
        last5=last_five_form(history),
        streak=current_win_streak(history),
    )


def reverse_baseline(
    new_total_record: str | None,
    fighter_id: str,
    resolved_bouts: Iterable[ResolvedBout] | None,
    manual_fights: Iterable[ManualFight] | None,
) -> RecordTriple:
    """Return the baseline that makes recomputation reproduce ``new_total_record``.

    The subtraction is unclamped; :func:`format_record` clamps it when the
    baseline is stored, so a total smaller than the platform-derived part
    silently bottoms out at zero.
    """

    bouts = list(resolved_bouts or ())
    fights = list(manual_fights or ())
    return parse_record(new_total_record) - contributed_record(fighter_id, bouts, fights)


__all__ = [
    "FORM_WINDOW",
    "HistoryEntry",
    "ManualFight",
    "Outcome",
    "RecordSummary",
    "RecordTriple",
    "ResolvedBout",
    "ZERO_RECORD",
    "build_history",
    "compute_record",
    "contributed_record",
    "corner_for",
    "current_win_streak",
    "format_record",
    "is_record",
    "last_five_form",
    "outcome_for_bout",
    "outcome_for_manual_fight",
    "parse_record",
    "reverse_baseline",
    "tally",
]
