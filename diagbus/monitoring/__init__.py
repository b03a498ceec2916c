"""
Monitoring module for diagbus.

Reference observers that subscribe to the diagnostic bus.
"""

from diagbus.monitoring.collector import DiagnosticsCollector
from diagbus.monitoring.prometheus import build_prometheus_metrics
from diagbus.monitoring.recorder import JsonlEventRecorder

__all__ = [
    "DiagnosticsCollector",
    "JsonlEventRecorder",
    "build_prometheus_metrics",
]
