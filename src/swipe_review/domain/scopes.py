"""Domain models for review scopes."""

import calendar
from dataclasses import dataclass

_SCOPE_SEPARATOR = "-"
DECEMBER = 12


@dataclass(frozen=True)
class ScopeProgress:
    """Review progress for one calendar-month scope."""

    scope_id: str
    year: int
    month: int
    total_count: int
    reviewed_count: int

    @property
    def display_name(self) -> str:
        return f"{calendar.month_abbr[self.month]} '{self.year % 100:02d}"

    @property
    def full_display_name(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    @property
    def progress(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return min(1.0, self.reviewed_count / self.total_count)

    @property
    def is_completed(self) -> bool:
        return self.total_count > 0 and self.reviewed_count >= self.total_count

    @property
    def remaining_count(self) -> int:
        return max(0, self.total_count - self.reviewed_count)


def month_scope_id(year: int, month: int) -> str:
    """Build the scope id for a calendar month."""
    return f"{year}{_SCOPE_SEPARATOR}{month}"


def parse_month_scope_id(scope_id: str) -> tuple[int, int] | None:
    """Parse a month scope id into (year, month)."""
    year_raw, separator, month_raw = scope_id.partition(_SCOPE_SEPARATOR)
    if not separator:
        return None
    if not (year_raw.isdigit() and month_raw.isdigit()):
        return None
    year, month = int(year_raw), int(month_raw)
    if not 1 <= month <= DECEMBER:
        return None
    return year, month
