"""
levelup.engine.events — Tagged-Union Event Payloads
====================================================

Every gameplay event is normalized into one of the frozen dataclasses
below before the progression pipeline sees it.  Each variant carries only
the fields its reward rule reads, so a ``comment`` can never smuggle in a
``questionCount``.

Event types the engine does not know (``nohint_solve_bonus`` and friends
from older clients) become :class:`UnknownEvent`, which rewards nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from levelup.database.models import EventType
from levelup.exceptions import InvalidEventPayload

__all__ = [
    "Comment",
    "DailyParticipate",
    "Post",
    "ProgressEvent",
    "SolveFail",
    "SolveSuccess",
    "UnknownEvent",
    "parse_event",
]


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DailyParticipate:
    event_type: ClassVar[str] = EventType.DAILY_PARTICIPATE.value

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class SolveSuccess:
    """A solved puzzle.

    ``used_hint`` / ``question_count`` are ``None`` when the client did not
    report them; bonuses only apply to declared values.
    """

    event_type: ClassVar[str] = EventType.SOLVE_SUCCESS.value

    used_hint: bool | None = None
    question_count: int | None = None

    def to_metadata(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self.used_hint is not None:
            meta["usedHint"] = self.used_hint
        if self.question_count is not None:
            meta["questionCount"] = self.question_count
        return meta


@dataclass(frozen=True, slots=True)
class SolveFail:
    event_type: ClassVar[str] = EventType.SOLVE_FAIL.value

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class Comment:
    event_type: ClassVar[str] = EventType.COMMENT.value

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class Post:
    event_type: ClassVar[str] = EventType.POST.value

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    """Any event type outside :class:`EventType`.  Always a no-op."""

    name: str

    @property
    def event_type(self) -> str:
        return self.name

    def to_metadata(self) -> dict[str, Any]:
        return {}


ProgressEvent = (
    DailyParticipate | SolveSuccess | SolveFail | Comment | Post | UnknownEvent
)


# ---------------------------------------------------------------------------
# Parsing (wire dict → variant)
# ---------------------------------------------------------------------------
def _pick(payload: dict, *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _parse_solve_success(payload: dict) -> SolveSuccess:
    used_hint = _pick(payload, "usedHint", "used_hint")
    if used_hint is not None and not isinstance(used_hint, bool):
        raise InvalidEventPayload(
            f"usedHint must be a boolean, got {type(used_hint).__name__}",
            operation="parse_event",
        )

    question_count = _pick(payload, "questionCount", "question_count")
    if question_count is not None:
        # bool is an int subclass; reject it explicitly
        if isinstance(question_count, bool) or not isinstance(question_count, int):
            raise InvalidEventPayload(
                f"questionCount must be an integer, got {type(question_count).__name__}",
                operation="parse_event",
            )
        if question_count < 0:
            raise InvalidEventPayload(
                "questionCount must not be negative", operation="parse_event",
            )

    return SolveSuccess(used_hint=used_hint, question_count=question_count)


_SIMPLE_EVENTS: dict[str, type] = {
    EventType.DAILY_PARTICIPATE: DailyParticipate,
    EventType.SOLVE_FAIL: SolveFail,
    EventType.COMMENT: Comment,
    EventType.POST: Post,
}


def parse_event(event_type: str, payload: dict | None = None) -> ProgressEvent:
    """Build the typed event for *event_type* from a wire *payload*.

    Unknown event types are not an error: they map to :class:`UnknownEvent`.

    Raises
    ------
    InvalidEventPayload
        If a known event's payload carries a field of the wrong type.
    """
    payload = payload or {}
    if event_type == EventType.SOLVE_SUCCESS:
        return _parse_solve_success(payload)
    factory = _SIMPLE_EVENTS.get(event_type)
    if factory is not None:
        return factory()
    return UnknownEvent(name=event_type)
