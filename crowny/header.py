"""Fixed 9-slot ternary protocol header and its wire form."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from crowny.trit import Trit

HEADER_SLOTS = 9

# Transport-level header fields
TRIT_HEADER_FIELD = "X-Crowny-Trit"
VERSION_HEADER_FIELD = "X-Crowny-Version"
PROTOCOL_VERSION = "1.0"

_SUCCESS_CHARS = frozenset("P+1")
_FAILED_CHARS = frozenset("T-")


def _normalize(trits: Iterable[Trit]) -> tuple[Trit, ...]:
    """Truncate or pad with Pending to exactly HEADER_SLOTS slots."""
    slots = [Trit(t) for t in trits][:HEADER_SLOTS]
    slots.extend([Trit.PENDING] * (HEADER_SLOTS - len(slots)))
    return tuple(slots)


def _char_to_trit(c: str) -> Trit:
    if c in _SUCCESS_CHARS:
        return Trit.SUCCESS
    if c in _FAILED_CHARS:
        return Trit.FAILED
    return Trit.PENDING


@dataclass(frozen=True)
class ProtocolHeader:
    """Layered ternary status carried alongside every request and response.

    Slots 0-2 carry the state, permission and consensus roles. Slots 3-8
    are reserved. The header always holds exactly nine slots.
    """

    trits: tuple[Trit, ...] = (Trit.PENDING,) * HEADER_SLOTS

    def __post_init__(self) -> None:
        object.__setattr__(self, "trits", _normalize(self.trits))

    # --- Construction ---

    @classmethod
    def from_trits(cls, trits: Iterable[Trit]) -> ProtocolHeader:
        return cls(tuple(trits))

    @classmethod
    def all_pending(cls) -> ProtocolHeader:
        return cls()

    @classmethod
    def all_success(cls) -> ProtocolHeader:
        """Canonical success header; reserved slots stay Pending."""
        return cls((Trit.SUCCESS,) * 3)

    @classmethod
    def all_failed(cls) -> ProtocolHeader:
        """Canonical failure header; reserved slots stay Pending."""
        return cls((Trit.FAILED,) * 3)

    @classmethod
    def parse(cls, s: str | None) -> ProtocolHeader:
        """Parse the 9-character wire form.

        'P', '+' and '1' read as Success, 'T' and '-' as Failed, anything
        else as Pending. Extra characters are ignored, missing ones padded.
        """
        return cls(tuple(_char_to_trit(c) for c in (s or "")[:HEADER_SLOTS]))

    # --- Wire form ---

    def serialize(self) -> str:
        return "".join(t.value for t in self.trits)

    def __str__(self) -> str:
        return self.serialize()

    # --- Named slots ---

    @property
    def state(self) -> Trit:
        return self.trits[0]

    @property
    def permission(self) -> Trit:
        return self.trits[1]

    @property
    def consensus(self) -> Trit:
        return self.trits[2]

    def with_slot(self, index: int, value: Trit) -> ProtocolHeader:
        """Return a copy with one slot replaced."""
        if not 0 <= index < HEADER_SLOTS:
            raise IndexError(f"Header slot out of range: {index}")
        slots = list(self.trits)
        slots[index] = Trit(value)
        return ProtocolHeader(tuple(slots))

    def overall_state(self) -> Trit:
        """Combine all nine slots into one trit.

        A single Failed slot makes the whole header Failed. The header is
        Success only when every slot is Success; otherwise it is Pending.
        """
        if Trit.FAILED in self.trits:
            return Trit.FAILED
        if all(t is Trit.SUCCESS for t in self.trits):
            return Trit.SUCCESS
        return Trit.PENDING
