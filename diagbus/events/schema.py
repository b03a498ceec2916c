"""
Diagnostic event schema.

Every event is a frozen dataclass sharing the ``DiagnosticEvent`` base.
Producers build events without ``sequence``/``timestamp``; the bus fills
both in when the event is emitted (see ``DiagnosticEvent.enrich``).

The set of kinds is closed: ``EVENT_TYPES`` maps each ``kind`` tag to its
class, and ``event_from_dict`` refuses anything outside it.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Literal, Union

from diagbus.exceptions import InvalidEventError, UnknownEventKindError

SessionStatus = Literal["idle", "processing", "waiting"]
MessageOutcome = Literal["completed", "skipped", "error"]
ChatId = Union[int, str]

SESSION_STATUSES: tuple[str, ...] = ("idle", "processing", "waiting")
MESSAGE_OUTCOMES: tuple[str, ...] = ("completed", "skipped", "error")


def _prune(value: Any) -> Any:
    """Drop None entries from (nested) dicts."""
    if isinstance(value, dict):
        return {k: _prune(v) for k, v in value.items() if v is not None}
    return value


def _check_choice(field_name: str, value: Any, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise InvalidEventError(
            f"{field_name} must be one of {', '.join(choices)}; got {value!r}"
        )


# =============================================================================
# Nested records
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class UsageCounts:
    """Token counts reported by a model call."""

    input: int | None = None
    output: int | None = None
    cache_read: int | None = None
    cache_write: int | None = None
    prompt_tokens: int | None = None
    total: int | None = None


@dataclass(frozen=True, kw_only=True)
class ContextWindow:
    """Context window size and how much of it was used."""

    limit: int | None = None
    used: int | None = None


@dataclass(frozen=True, kw_only=True)
class WebhookCounts:
    received: int
    processed: int
    errors: int


# =============================================================================
# Base event
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class DiagnosticEvent:
    """
    Base for every diagnostic event.

    Attributes:
        kind: Discriminant tag of the variant (class attribute)
        sequence: Bus-assigned sequence number, ``None`` until emitted
        timestamp: Wall-clock milliseconds since epoch, ``None`` until emitted
    """

    kind: ClassVar[str] = ""
    nested: ClassVar[dict[str, type]] = {}

    sequence: int | None = None
    timestamp: int | None = None

    @property
    def is_enriched(self) -> bool:
        return self.sequence is not None and self.timestamp is not None

    def enrich(self, sequence: int, timestamp: int) -> DiagnosticEvent:
        """Return a copy stamped with *sequence* and *timestamp*."""
        return dataclasses.replace(self, sequence=sequence, timestamp=timestamp)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary, omitting unset fields."""
        return {"kind": self.kind, **_prune(dataclasses.asdict(self))}


# =============================================================================
# Model usage
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class ModelUsage(DiagnosticEvent):
    kind: ClassVar[str] = "model.usage"
    nested: ClassVar[dict[str, type]] = {"usage": UsageCounts, "context": ContextWindow}

    usage: UsageCounts
    session_key: str | None = None
    session_id: str | None = None
    channel: str | None = None
    provider: str | None = None
    model: str | None = None
    context: ContextWindow | None = None
    cost_usd: float | None = None
    duration_ms: float | None = None


# =============================================================================
# Webhooks
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class WebhookReceived(DiagnosticEvent):
    kind: ClassVar[str] = "webhook.received"

    channel: str
    update_type: str | None = None
    chat_id: ChatId | None = None


@dataclass(frozen=True, kw_only=True)
class WebhookProcessed(DiagnosticEvent):
    kind: ClassVar[str] = "webhook.processed"

    channel: str
    update_type: str | None = None
    chat_id: ChatId | None = None
    duration_ms: float | None = None


@dataclass(frozen=True, kw_only=True)
class WebhookError(DiagnosticEvent):
    kind: ClassVar[str] = "webhook.error"

    channel: str
    error: str
    update_type: str | None = None
    chat_id: ChatId | None = None


# =============================================================================
# Messages
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class MessageQueued(DiagnosticEvent):
    kind: ClassVar[str] = "message.queued"

    source: str
    session_key: str | None = None
    session_id: str | None = None
    channel: str | None = None
    queue_depth: int | None = None


@dataclass(frozen=True, kw_only=True)
class MessageProcessed(DiagnosticEvent):
    kind: ClassVar[str] = "message.processed"

    channel: str
    outcome: MessageOutcome
    message_id: ChatId | None = None
    chat_id: ChatId | None = None
    session_key: str | None = None
    session_id: str | None = None
    duration_ms: float | None = None
    reason: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        _check_choice("outcome", self.outcome, MESSAGE_OUTCOMES)


# =============================================================================
# Sessions
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class SessionState(DiagnosticEvent):
    kind: ClassVar[str] = "session.state"

    state: SessionStatus
    session_key: str | None = None
    session_id: str | None = None
    prev_state: SessionStatus | None = None
    reason: str | None = None
    queue_depth: int | None = None

    def __post_init__(self) -> None:
        _check_choice("state", self.state, SESSION_STATUSES)
        if self.prev_state is not None:
            _check_choice("prev_state", self.prev_state, SESSION_STATUSES)


@dataclass(frozen=True, kw_only=True)
class SessionStuck(DiagnosticEvent):
    kind: ClassVar[str] = "session.stuck"

    state: SessionStatus
    age_ms: float
    session_key: str | None = None
    session_id: str | None = None
    queue_depth: int | None = None

    def __post_init__(self) -> None:
        _check_choice("state", self.state, SESSION_STATUSES)


# =============================================================================
# Queue lanes and runs
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class LaneEnqueue(DiagnosticEvent):
    kind: ClassVar[str] = "queue.lane.enqueue"

    lane: str
    queue_size: int


@dataclass(frozen=True, kw_only=True)
class LaneDequeue(DiagnosticEvent):
    kind: ClassVar[str] = "queue.lane.dequeue"

    lane: str
    queue_size: int
    wait_ms: float


@dataclass(frozen=True, kw_only=True)
class RunAttempt(DiagnosticEvent):
    kind: ClassVar[str] = "run.attempt"

    run_id: str
    attempt: int
    session_key: str | None = None
    session_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class Heartbeat(DiagnosticEvent):
    kind: ClassVar[str] = "diagnostic.heartbeat"
    nested: ClassVar[dict[str, type]] = {"webhooks": WebhookCounts}

    webhooks: WebhookCounts
    active: int
    waiting: int
    queued: int


# =============================================================================
# Registry
# =============================================================================

EVENT_TYPES: dict[str, type[DiagnosticEvent]] = {
    cls.kind: cls
    for cls in (
        ModelUsage,
        WebhookReceived,
        WebhookProcessed,
        WebhookError,
        MessageQueued,
        MessageProcessed,
        SessionState,
        SessionStuck,
        LaneEnqueue,
        LaneDequeue,
        RunAttempt,
        Heartbeat,
    )
}


def event_from_dict(data: dict[str, Any]) -> DiagnosticEvent:
    """
    Rebuild an event from the output of ``DiagnosticEvent.to_dict``.

    Args:
        data: Mapping with a ``kind`` key plus the variant's fields

    Returns:
        The matching event instance

    Raises:
        UnknownEventKindError: If ``kind`` is missing or not a known kind
        InvalidEventError: If fields are missing, unknown or malformed
    """
    kind = data.get("kind")
    cls = EVENT_TYPES.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise UnknownEventKindError(str(kind))

    known = {f.name for f in dataclasses.fields(cls)}
    values = {k: v for k, v in data.items() if k != "kind"}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidEventError(f"Unknown fields for {kind}: {', '.join(unknown)}")

    try:
        for name, record_cls in cls.nested.items():
            if isinstance(values.get(name), dict):
                values[name] = record_cls(**values[name])
        return cls(**values)
    except TypeError as e:
        raise InvalidEventError(f"Malformed {kind} event: {e}") from e
