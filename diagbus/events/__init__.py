"""
Diagnostic events module.

Typed event variants plus the in-process bus that stamps and fans them out.
"""

from diagbus.events.bus import (
    BusState,
    DiagnosticBus,
    DiagnosticListener,
    diagnostic_listener,
    emit_diagnostic_event,
    get_diagnostic_bus,
    on_diagnostic_event,
    reset_diagnostic_events_for_test,
)
from diagbus.events.schema import (
    EVENT_TYPES,
    ContextWindow,
    DiagnosticEvent,
    Heartbeat,
    LaneDequeue,
    LaneEnqueue,
    MessageProcessed,
    MessageQueued,
    ModelUsage,
    RunAttempt,
    SessionState,
    SessionStuck,
    UsageCounts,
    WebhookCounts,
    WebhookError,
    WebhookProcessed,
    WebhookReceived,
    event_from_dict,
)

__all__ = [
    # Bus
    "BusState",
    "DiagnosticBus",
    "DiagnosticListener",
    "diagnostic_listener",
    "emit_diagnostic_event",
    "get_diagnostic_bus",
    "on_diagnostic_event",
    "reset_diagnostic_events_for_test",
    # Schema
    "EVENT_TYPES",
    "DiagnosticEvent",
    "event_from_dict",
    "UsageCounts",
    "ContextWindow",
    "WebhookCounts",
    "ModelUsage",
    "WebhookReceived",
    "WebhookProcessed",
    "WebhookError",
    "MessageQueued",
    "MessageProcessed",
    "SessionState",
    "SessionStuck",
    "LaneEnqueue",
    "LaneDequeue",
    "RunAttempt",
    "Heartbeat",
]
