"""Sequential quote numbers: ``Q<quarter>-<year>-<sequence>``, e.g. ``Q1-2025-00042``.

Each calendar quarter is a numbering epoch with its own counter. Values come
from a :class:`QuoteNumberSequence`, which advances the counter atomically in
storage, so two concurrent callers never see the same value.
"""

from __future__ import annotations

import re
from datetime import datetime

from backend.app.repositories.base import QuoteNumberSequence

QUOTE_NUMBER_PATTERN = re.compile(r"^(Q[1-4]-\d{4})-(\d{5,})$")
SEQUENCE_WIDTH = 5


def epoch_for(moment: datetime) -> str:
    quarter = (moment.month - 1) // 3 + 1
    return f"Q{quarter}-{moment.year}"


def format_quote_number(epoch: str, sequence: int) -> str:
    return f"{epoch}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_quote_number(quote_number: str) -> tuple[str, int]:
    """Split a quote number into ``(epoch, sequence)``. Raises ``ValueError``."""
    match = QUOTE_NUMBER_PATTERN.match(quote_number)
    if not match:
        raise ValueError(f"Not a quote number: {quote_number!r}")
    return match.group(1), int(match.group(2))


class QuoteNumberAllocator:
    def __init__(self, sequence: QuoteNumberSequence) -> None:
        self.sequence = sequence

    def allocate(self, epoch: str) -> str:
        return format_quote_number(epoch, self.sequence.reserve_next(epoch))

    def allocate_for(self, moment: datetime) -> str:
        return self.allocate(epoch_for(moment))
