"""
Prometheus text rendering for collector snapshots.
"""

from __future__ import annotations

from typing import Any


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _line(metric: str, value: float, labels: dict[str, str] | None = None) -> str:
    if labels:
        parts = [f'{k}="{_escape(str(v))}"' for k, v in labels.items()]
        label_str = "{" + ",".join(parts) + "}"
    else:
        label_str = ""
    return f"{metric}{label_str} {value}"


def _header(lines: list[str], metric: str, kind: str, help_text: str) -> None:
    lines.append(f"# HELP {metric} {help_text}")
    lines.append(f"# TYPE {metric} {kind}")


def build_prometheus_metrics(snapshot: dict[str, Any]) -> str:
    """Render a ``DiagnosticsCollector.snapshot()`` as Prometheus text."""
    lines: list[str] = []

    _header(lines, "diagbus_events_total", "counter", "Diagnostic events seen, by kind.")
    for kind, count in sorted((snapshot.get("events") or {}).items()):
        lines.append(_line("diagbus_events_total", float(count), {"kind": kind}))

    _header(lines, "diagbus_webhooks_total", "counter", "Webhook events, by outcome.")
    for outcome, count in (snapshot.get("webhooks") or {}).items():
        lines.append(_line("diagbus_webhooks_total", float(count), {"outcome": outcome}))

    _header(lines, "diagbus_model_tokens_total", "counter", "Model tokens, by type.")
    for token_type, count in (snapshot.get("tokens") or {}).items():
        lines.append(_line("diagbus_model_tokens_total", float(count), {"type": token_type}))

    _header(lines, "diagbus_model_cost_usd_total", "counter", "Model cost in USD.")
    lines.append(_line("diagbus_model_cost_usd_total", float(snapshot.get("cost_usd") or 0.0)))

    _header(lines, "diagbus_queue_lane_size", "gauge", "Latest queue size per lane.")
    for lane, size in sorted((snapshot.get("lanes") or {}).items()):
        lines.append(_line("diagbus_queue_lane_size", float(size), {"lane": lane}))

    _header(lines, "diagbus_stuck_sessions_total", "counter", "Stuck session reports.")
    lines.append(_line("diagbus_stuck_sessions_total", float(snapshot.get("stuck_sessions") or 0)))

    heartbeat = snapshot.get("last_heartbeat")
    if heartbeat:
        for name in ("active", "waiting", "queued"):
            metric = f"diagbus_sessions_{name}"
            _header(lines, metric, "gauge", f"Sessions {name} at last heartbeat.")
            lines.append(_line(metric, float(heartbeat[name])))

    return "\n".join(lines) + "\n"
