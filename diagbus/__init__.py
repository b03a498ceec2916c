"""
diagbus - process-wide diagnostic event bus.

This package contains:
- Events (typed diagnostic event variants and the shared bus)
- Monitoring (reference observers: aggregation, Prometheus text, JSONL)
- Configuration and the diagnostics enablement gate
"""

from diagbus.container import AppConfig, DiagnosticsConfig, is_diagnostics_enabled
from diagbus.events import (
    DiagnosticBus,
    DiagnosticEvent,
    diagnostic_listener,
    emit_diagnostic_event,
    get_diagnostic_bus,
    on_diagnostic_event,
    reset_diagnostic_events_for_test,
)

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "DiagnosticBus",
    "DiagnosticEvent",
    "DiagnosticsConfig",
    "diagnostic_listener",
    "emit_diagnostic_event",
    "get_diagnostic_bus",
    "is_diagnostics_enabled",
    "on_diagnostic_event",
    "reset_diagnostic_events_for_test",
]
