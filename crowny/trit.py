"""Balanced-ternary logic: the Trit value domain and its algebra."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any


class Trit(str, Enum):
    """Three-valued outcome of every protocol operation."""

    SUCCESS = "P"
    PENDING = "O"
    FAILED = "T"

    @property
    def signed(self) -> int:
        return to_signed(self)

    @property
    def korean(self) -> str:
        """Localized label used by the remote service."""
        return _KOREAN_LABELS[self]

    def __str__(self) -> str:
        return self.value


_KOREAN_LABELS = {
    Trit.SUCCESS: "성공",
    Trit.PENDING: "보류",
    Trit.FAILED: "실패",
}

# Indicators matched against free-form status values
SUCCESS_MARKERS = ("성공", "success")
FAILURE_MARKERS = ("실패", "failed", "failure")


def from_signed(n: int | float) -> Trit:
    """Map a signed magnitude onto a trit."""
    if n > 0:
        return Trit.SUCCESS
    if n < 0:
        return Trit.FAILED
    return Trit.PENDING


def to_signed(t: Trit) -> int:
    t = Trit(t)
    if t is Trit.SUCCESS:
        return 1
    if t is Trit.FAILED:
        return -1
    return 0


def trit_not(t: Trit) -> Trit:
    return from_signed(-to_signed(t))


def trit_and(a: Trit, b: Trit) -> Trit:
    return from_signed(min(to_signed(a), to_signed(b)))


def trit_or(a: Trit, b: Trit) -> Trit:
    return from_signed(max(to_signed(a), to_signed(b)))


def consensus(trits: Iterable[Trit]) -> Trit:
    """Majority vote over a sequence of trits.

    Pending entries are neutral. Ties, empty input and all-Pending input
    resolve to Pending.
    """
    success = 0
    failed = 0
    for t in map(Trit, trits):
        if t is Trit.SUCCESS:
            success += 1
        elif t is Trit.FAILED:
            failed += 1

    if success > failed:
        return Trit.SUCCESS
    if failed > success:
        return Trit.FAILED
    return Trit.PENDING


def parse_status(value: Any) -> Trit:
    """Read a trit from a free-form status value reported by a collaborator.

    Bare symbols ("P", "O", "T") and signed integers map directly. Text is
    matched by substring against localized and English indicators. A value
    that matches both success and failure indicators, or neither, is Pending.

    Args:
        value: Status field value from a decoded response body

    Returns:
        The trit the value indicates
    """
    if isinstance(value, Trit):
        return value
    if isinstance(value, bool):
        return Trit.SUCCESS if value else Trit.FAILED
    if isinstance(value, int):
        return from_signed(value)
    if value is None:
        return Trit.PENDING

    text = str(value).strip()
    if text in ("P", "O", "T"):
        return Trit(text)

    lowered = text.lower()
    is_success = any(marker in lowered for marker in SUCCESS_MARKERS)
    is_failure = any(marker in lowered for marker in FAILURE_MARKERS)
    if is_success and not is_failure:
        return Trit.SUCCESS
    if is_failure and not is_success:
        return Trit.FAILED
    return Trit.PENDING
