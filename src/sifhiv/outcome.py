"""
Parse outcome domain model.

Every attempt to turn a cell into a date or a number yields a ParseOutcome
instead of raising or emitting a warning. Failures are tallied per field so
the run can report how much of the sheet could not be read.
"""

import logging
import typing

from collections import Counter, defaultdict
from dataclasses import dataclass

from stairval.notepad import Notepad

logger = logging.getLogger(__name__)

MISSING = "missing"


@dataclass(frozen=True)
class ParseOutcome:
    """
    Result of parsing a single cell.

    Attributes:
        value: The parsed value, or None when the cell could not be read.
        reason: None on success, otherwise a short explanation
                ("missing" for blank cells).
    """

    value: typing.Any = None
    reason: typing.Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: typing.Any) -> "ParseOutcome":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "ParseOutcome":
        return cls(value=None, reason=reason)


class ParseTally:
    """
    Silent per-field counters of failed parse attempts.
    """

    def __init__(self):
        self._counts: dict[str, Counter] = defaultdict(Counter)

    def record(self, field: str, outcome: ParseOutcome) -> ParseOutcome:
        if not outcome.ok:
            self._counts[field][outcome.reason] += 1
        return outcome

    def missing(self, field: str) -> int:
        return self._counts.get(field, Counter())[MISSING]

    def failures(self, field: str) -> int:
        """Number of non-blank cells in `field` that could not be parsed."""
        return sum(n for reason, n in self._counts.get(field, Counter()).items() if reason != MISSING)

    def fields(self) -> list[str]:
        return sorted(self._counts)

    def report(self, notepad: Notepad) -> None:
        # blank cells are expected in this data and only go to the debug log
        for field in self.fields():
            failed = self.failures(field)
            logger.debug(f"Field {field!r}: {self.missing(field)} blank, {failed} unparsable")
            if failed:
                reasons = ", ".join(
                    f"{reason} ({n})"
                    for reason, n in sorted(self._counts[field].items())
                    if reason != MISSING
                )
                notepad.add_warning(f"Field {field!r}: {failed} value(s) could not be parsed: {reasons}")
