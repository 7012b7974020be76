"""One-minute cadence checks run before anything is persisted."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from tradeseg.core.exceptions import ContinuityError

_ONE_MINUTE = timedelta(minutes=1)


class ContinuityIssueCode(str, Enum):
    """Reason a series breaks the cadence contract."""

    DUPLICATE_TIMESTAMP = "DUPLICATE_TIMESTAMP"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    INTRADAY_GAP = "INTRADAY_GAP"


@dataclass(slots=True, frozen=True)
class ContinuityIssue:
    """The first offending pair of consecutive timestamps."""

    code: ContinuityIssueCode
    index: int
    previous: datetime
    current: datetime

    @property
    def delta_minutes(self) -> float:
        return (self.current - self.previous).total_seconds() / 60

    def describe(self) -> str:
        if self.code is ContinuityIssueCode.DUPLICATE_TIMESTAMP:
            return f"duplicate timestamp {self.current.isoformat()}"
        if self.code is ContinuityIssueCode.OUT_OF_ORDER:
            return f"timestamp {self.current.isoformat()} precedes {self.previous.isoformat()}"
        return (
            f"gap of {self.delta_minutes:g} minutes between "
            f"{self.previous.isoformat()} and {self.current.isoformat()}"
        )


@dataclass(slots=True, frozen=True)
class ContinuityResult:
    valid: bool
    issue: ContinuityIssue | None = None


def check_continuity(timestamps: Sequence[datetime]) -> ContinuityResult:
    """Validate consecutive timestamps and stop at the first violation.

    A one minute step is always accepted. Any other positive step is accepted
    only across a UTC calendar date change; a zero or negative step is fatal.
    """

    for index in range(1, len(timestamps)):
        previous = timestamps[index - 1]
        current = timestamps[index]
        delta = current - previous
        if delta == _ONE_MINUTE:
            continue
        if delta <= timedelta(0):
            code = ContinuityIssueCode.DUPLICATE_TIMESTAMP if delta == timedelta(0) else ContinuityIssueCode.OUT_OF_ORDER
            return ContinuityResult(False, ContinuityIssue(code, index, previous, current))
        if current.date() != previous.date():
            continue
        return ContinuityResult(
            False, ContinuityIssue(ContinuityIssueCode.INTRADAY_GAP, index, previous, current)
        )
    return ContinuityResult(True)


def ensure_continuity(timestamps: Sequence[datetime]) -> None:
    """Raise :class:`ContinuityError` for the first offending pair."""

    result = check_continuity(timestamps)
    if result.issue is not None:
        issue = result.issue
        raise ContinuityError(
            issue.describe(),
            reason=issue.code.value,
            previous=issue.previous,
            current=issue.current,
        )


def is_contiguous(timestamps: Sequence[datetime]) -> bool:
    """Return whether every step is exactly one minute."""

    return all(b - a == _ONE_MINUTE for a, b in zip(timestamps, timestamps[1:]))


__all__ = [
    "ContinuityIssue",
    "ContinuityIssueCode",
    "ContinuityResult",
    "check_continuity",
    "ensure_continuity",
    "is_contiguous",
]
