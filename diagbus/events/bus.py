"""
Diagnostic event bus.

Provides:
- Enrichment of producer events with a sequence number and timestamp
- Synchronous fan-out to listeners in registration order
- Per-listener failure isolation
- A single process-wide bus shared by every producer and observer
"""

from __future__ import annotations

import sys
import threading
import time
import uuid
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from diagbus.events.schema import EVENT_TYPES, DiagnosticEvent, event_from_dict
from diagbus.exceptions import UnknownEventKindError
from diagbus.logging_config import get_logger

logger = get_logger(__name__)

DiagnosticListener = Callable[[DiagnosticEvent], Any]

# Attribute on the ``sys`` module holding the shared bus. ``sys`` is never
# re-executed, so a reloaded or doubly imported copy of this module still
# finds the first instance.
_SHARED_BUS_ATTR = "__diagbus_diagnostic_bus__"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _listener_name(listener: DiagnosticListener) -> str:
    return getattr(listener, "__qualname__", None) or type(listener).__qualname__


def _listener_key(listener: DiagnosticListener) -> Hashable:
    # Each ``obj.method`` access builds a new bound method; key it by the
    # receiver and function so re-registering it stays a single entry.
    receiver = getattr(listener, "__self__", None)
    func = getattr(listener, "__func__", None)
    if receiver is not None and func is not None:
        return (id(receiver), func)
    return id(listener)


# =============================================================================
# State
# =============================================================================


@dataclass
class BusState:
    """
    Mutable state behind a bus.

    Attributes:
        sequence: Last assigned sequence number (0 before the first emit)
        listeners: Registered listeners in registration order, keyed by
            ``id()`` (bound methods by receiver and function)
        state_id: Random identifier used to correlate log lines
    """

    sequence: int = 0
    listeners: dict[Hashable, DiagnosticListener] = field(default_factory=dict)
    state_id: str = field(default_factory=lambda: uuid.uuid4().hex[:6])


@dataclass(frozen=True)
class ListenerFailure:
    """A listener that raised while handling an event."""

    listener: str
    error: str


# =============================================================================
# Diagnostic Bus
# =============================================================================


class DiagnosticBus:
    """
    Synchronous publish/subscribe bus for diagnostic events.

    Every emitted event gets the next sequence number (1, 2, 3, ...) and
    the current wall-clock time in milliseconds, then is handed to each
    registered listener. A listener that raises is logged and skipped; the
    producer calling ``emit`` never sees the error.

    Listeners are dispatched over a snapshot taken at emit time, so a
    listener may subscribe, unsubscribe or emit again from inside its own
    callback. Such changes apply to later emits only.
    """

    def __init__(self, clock: Callable[[], int] | None = None):
        """
        Initialize bus.

        Args:
            clock: Returns wall-clock milliseconds since epoch
        """
        self._state = BusState()
        self._clock = clock or _now_ms
        self._lock = threading.Lock()

    @property
    def state_id(self) -> str:
        return self._state.state_id

    @property
    def sequence(self) -> int:
        """Last sequence number handed out."""
        return self._state.sequence

    @property
    def listener_count(self) -> int:
        return len(self._state.listeners)

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, listener: DiagnosticListener) -> Callable[[], None]:
        """
        Register a listener for every subsequently emitted event.

        Registering the same object twice keeps a single registration.

        Args:
            listener: Callable receiving each enriched event

        Returns:
            Unsubscribe function (safe to call any number of times)
        """
        key = _listener_key(listener)
        with self._lock:
            self._state.listeners.setdefault(key, listener)
            count = len(self._state.listeners)

        logger.info(
            "diagnostic_listener_registered",
            listener=_listener_name(listener),
            state_id=self._state.state_id,
            listeners=count,
        )

        # The closure keeps ``listener`` alive, so ``key`` cannot be reused
        # by another object while it exists.
        def unsubscribe() -> None:
            with self._lock:
                self._state.listeners.pop(key, None)

        return unsubscribe

    def reset(self) -> None:
        """Drop all listeners and rewind the sequence counter (for testing)."""
        with self._lock:
            self._state.sequence = 0
            self._state.listeners.clear()

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(self, event: DiagnosticEvent | Mapping[str, Any]) -> None:
        """
        Enrich *event* and dispatch it to every listener.

        Args:
            event: Event without ``sequence``/``timestamp`` (any values
                already present are replaced), or its ``to_dict`` form

        Raises:
            UnknownEventKindError: If *event* is not one of the known kinds
        """
        if isinstance(event, Mapping):
            event = event_from_dict(dict(event))
        elif EVENT_TYPES.get(getattr(event, "kind", None)) is not type(event):
            raise UnknownEventKindError(str(getattr(event, "kind", type(event).__name__)))

        with self._lock:
            self._state.sequence += 1
            enriched = event.enrich(self._state.sequence, self._clock())
            listeners = list(self._state.listeners.values())

        logger.info(
            "diagnostic_event_emitted",
            kind=enriched.kind,
            sequence=enriched.sequence,
            state_id=self._state.state_id,
            listeners=len(listeners),
        )

        failures = self._dispatch(enriched, listeners)
        if failures:
            logger.warning(
                "diagnostic_dispatch_incomplete",
                kind=enriched.kind,
                sequence=enriched.sequence,
                failed=[f.listener for f in failures],
            )

    def _dispatch(
        self,
        event: DiagnosticEvent,
        listeners: list[DiagnosticListener],
    ) -> list[ListenerFailure]:
        """Invoke each listener in its own failure boundary."""
        failures: list[ListenerFailure] = []

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                name = _listener_name(listener)
                logger.exception(
                    "diagnostic_listener_failed",
                    kind=event.kind,
                    sequence=event.sequence,
                    listener=name,
                    error=str(e),
                )
                failures.append(ListenerFailure(listener=name, error=str(e)))

        return failures

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Get bus statistics."""
        with self._lock:
            return {
                "state_id": self._state.state_id,
                "sequence": self._state.sequence,
                "listeners": len(self._state.listeners),
            }


# =============================================================================
# Shared Instance
# =============================================================================

_init_lock = threading.Lock()


def get_diagnostic_bus() -> DiagnosticBus:
    """Get or create the process-wide diagnostic bus."""
    bus = getattr(sys, _SHARED_BUS_ATTR, None)
    if bus is None:
        with _init_lock:
            bus = getattr(sys, _SHARED_BUS_ATTR, None)
            if bus is None:
                bus = DiagnosticBus()
                setattr(sys, _SHARED_BUS_ATTR, bus)
                logger.debug("diagnostic_bus_created", state_id=bus.state_id)
    return bus


# =============================================================================
# Convenience Functions
# =============================================================================


def emit_diagnostic_event(event: DiagnosticEvent | Mapping[str, Any]) -> None:
    """Emit an event on the shared bus."""
    get_diagnostic_bus().emit(event)


def on_diagnostic_event(listener: DiagnosticListener) -> Callable[[], None]:
    """Subscribe *listener* to the shared bus; returns the unsubscribe function."""
    return get_diagnostic_bus().subscribe(listener)


def diagnostic_listener(fn: DiagnosticListener) -> DiagnosticListener:
    """
    Subscribe a function to the shared bus (decorator form).

    Usage:
        @diagnostic_listener
        def on_event(event):
            ...
    """
    get_diagnostic_bus().subscribe(fn)
    return fn


def reset_diagnostic_events_for_test() -> None:
    """Reset the shared bus (for testing)."""
    get_diagnostic_bus().reset()
