from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Tuple


def to_db_key(school_year: str) -> str:
    """'25/26' -> '25_26'. Already-converted keys pass through."""
    return (school_year or "").strip().replace("/", "_")


def to_display(school_year: str) -> str:
    """'25_26' -> '25/26'. Already-converted values pass through."""
    return (school_year or "").strip().replace("_", "/")


def format_school_year(start_year: int) -> str:
    return f"{start_year % 100:02d}/{(start_year + 1) % 100:02d}"


def start_year(school_year: str) -> int:
    display = to_display(school_year)
    head, sep, _tail = display.partition("/")
    if not sep or not head.isdigit():
        raise ValueError(f"Invalid school year '{school_year}' (expected YY/YY or YY_YY).")
    return 2000 + int(head)


def next_year(school_year: str) -> str:
    return format_school_year(start_year(school_year) + 1)


@dataclass(frozen=True)
class SchoolYearCalendar:
    """School-year arithmetic pinned to an explicit reference date.

    A school year runs September through August. `september_count` is the
    (month, day) after which registration rolls over to the following year;
    `receipt_deadline` is the (month, day) after which receipts are filed
    against the next school year.
    """

    reference_date: date
    september_count: Tuple[int, int] = (9, 29)
    receipt_deadline: Tuple[int, int] = (8, 31)

    def current(self) -> str:
        year = self.reference_date.year
        if self.reference_date.month >= 9:
            return format_school_year(year)
        return format_school_year(year - 1)

    def target_for_planning(self) -> str:
        # Program plans written in September/October are for the year already underway.
        if self.reference_date.month in (9, 10):
            return self.current()
        return next_year(self.current())

    def september_count_date(self, school_year: str) -> date:
        month, day = self.september_count
        return date(start_year(school_year), month, day)

    def has_september_count_passed(self, school_year: str) -> bool:
        return self.reference_date > self.september_count_date(school_year)

    def open_registration_year(self) -> str:
        candidate = format_school_year(self.reference_date.year)
        if self.has_september_count_passed(candidate):
            return next_year(candidate)
        return candidate

    def receipt_submission_year(self) -> str:
        month, day = self.receipt_deadline
        deadline = date(self.reference_date.year, month, day)
        if self.reference_date > deadline:
            return format_school_year(self.reference_date.year)
        return self.current()
