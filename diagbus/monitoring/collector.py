"""
Aggregating listener for diagnostic events.

Keeps running totals that dashboards and the Prometheus renderer read
through ``DiagnosticsCollector.snapshot()``.
"""

from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Any, Callable

from diagbus.events.bus import DiagnosticBus, get_diagnostic_bus
from diagbus.events.schema import (
    DiagnosticEvent,
    Heartbeat,
    LaneDequeue,
    LaneEnqueue,
    ModelUsage,
    SessionStuck,
    WebhookError,
    WebhookProcessed,
    WebhookReceived,
)
from diagbus.logging_config import get_logger

logger = get_logger(__name__)

_TOKEN_FIELDS = ("input", "output", "cache_read", "cache_write", "total")


class DiagnosticsCollector:
    """Listener that aggregates diagnostic events into counters."""

    def __init__(self):
        self._lock = Lock()
        self._handlers: dict[str, Callable[[Any], None]] = {
            ModelUsage.kind: self._on_usage,
            WebhookReceived.kind: self._on_webhook_received,
            WebhookProcessed.kind: self._on_webhook_processed,
            WebhookError.kind: self._on_webhook_error,
            LaneEnqueue.kind: self._on_lane,
            LaneDequeue.kind: self._on_lane,
            SessionStuck.kind: self._on_stuck,
            Heartbeat.kind: self._on_heartbeat,
        }
        self._clear()

    def __call__(self, event: DiagnosticEvent) -> None:
        with self._lock:
            self._events[event.kind] += 1
            self._last_sequence = event.sequence
            handler = self._handlers.get(event.kind)
            if handler is not None:
                handler(event)

    def attach(self, bus: DiagnosticBus | None = None) -> Callable[[], None]:
        """
        Subscribe to *bus* (the shared bus by default).

        Returns:
            Unsubscribe function
        """
        bus = bus or get_diagnostic_bus()
        logger.debug("diagnostics_collector_attached", state_id=bus.state_id)
        return bus.subscribe(self)

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            self._clear()

    def _clear(self) -> None:
        self._events: Counter[str] = Counter()
        self._webhooks = {"received": 0, "processed": 0, "errors": 0}
        self._tokens = dict.fromkeys(_TOKEN_FIELDS, 0)
        self._cost_usd = 0.0
        self._lanes: dict[str, int] = {}
        self._stuck_sessions = 0
        self._last_heartbeat: dict[str, Any] | None = None
        self._last_sequence: int | None = None

    # -------------------------------------------------------------------------
    # Handlers (called with the lock held)
    # -------------------------------------------------------------------------

    def _on_usage(self, event: ModelUsage) -> None:
        for name in _TOKEN_FIELDS:
            value = getattr(event.usage, name)
            if value:
                self._tokens[name] += value
        if event.cost_usd:
            self._cost_usd += event.cost_usd

    def _on_webhook_received(self, event: WebhookReceived) -> None:
        self._webhooks["received"] += 1

    def _on_webhook_processed(self, event: WebhookProcessed) -> None:
        self._webhooks["processed"] += 1

    def _on_webhook_error(self, event: WebhookError) -> None:
        self._webhooks["errors"] += 1

    def _on_lane(self, event: LaneEnqueue | LaneDequeue) -> None:
        self._lanes[event.lane] = event.queue_size

    def _on_stuck(self, event: SessionStuck) -> None:
        self._stuck_sessions += 1

    def _on_heartbeat(self, event: Heartbeat) -> None:
        self._last_heartbeat = {
            "active": event.active,
            "waiting": event.waiting,
            "queued": event.queued,
            "timestamp": event.timestamp,
        }

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of all aggregated values."""
        with self._lock:
            return {
                "events": dict(self._events),
                "webhooks": dict(self._webhooks),
                "tokens": dict(self._tokens),
                "cost_usd": self._cost_usd,
                "lanes": dict(self._lanes),
                "stuck_sessions": self._stuck_sessions,
                "last_heartbeat": dict(self._last_heartbeat) if self._last_heartbeat else None,
                "last_sequence": self._last_sequence,
            }
