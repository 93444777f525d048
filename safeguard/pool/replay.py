"""
One-time-use quote indexes.

Each pool owns a sparse bitmap: word ``index // 256`` holds bit
``index % 256`` for every consumed quote. Bits are set once and never
cleared.
"""

from __future__ import annotations

import logging
from typing import Dict

from ..constants import BITMAP_WORD_BITS
from ..exceptions import ErrorKind, ReplayError

logger = logging.getLogger(__name__)


class QuoteReplayGuard:
    """Bitmap of consumed quote indexes."""

    def __init__(self) -> None:
        self._words: Dict[int, int] = {}

    @staticmethod
    def _position(index: int) -> tuple:
        if index < 0:
            raise ValueError("Quote index must be non-negative")
        return divmod(index, BITMAP_WORD_BITS)

    def get_word(self, word_index: int) -> int:
        return self._words.get(word_index, 0)

    def is_used(self, index: int) -> bool:
        word_index, bit = self._position(index)
        return (self.get_word(word_index) >> bit) & 1 == 1

    def check(self, index: int, deadline: int, now: int) -> None:
        """Raise if ``index`` could not be consumed now. Never mutates."""
        if now > deadline:
            raise ReplayError(ErrorKind.QUOTE_EXPIRED, f"deadline {deadline}, now {now}")
        if self.is_used(index):
            raise ReplayError(ErrorKind.QUOTE_ALREADY_USED, f"quote #{index}")

    def consume(self, index: int, deadline: int, now: int) -> None:
        self.check(index, deadline, now)
        word_index, bit = self._position(index)
        self._words[word_index] = self.get_word(word_index) | (1 << bit)
        logger.debug("Consumed quote #%d", index)

    def __len__(self) -> int:
        return sum(bin(word).count("1") for word in self._words.values())
