"""
JSONL recorder listener.

Appends every event it receives to a file, one JSON object per line.
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Callable

from diagbus.events.bus import DiagnosticBus, get_diagnostic_bus
from diagbus.events.schema import DiagnosticEvent
from diagbus.logging_config import get_logger

logger = get_logger(__name__)


class JsonlEventRecorder:
    """Listener writing events to a JSON Lines file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    def __call__(self, event: DiagnosticEvent) -> None:
        line = json.dumps(event.to_dict(), sort_keys=True)
        with self._lock, open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def attach(self, bus: DiagnosticBus | None = None) -> Callable[[], None]:
        """Subscribe to *bus* (the shared bus by default)."""
        bus = bus or get_diagnostic_bus()
        logger.info("diagnostics_recorder_attached", path=str(self.path))
        return bus.subscribe(self)

    def read_events(self) -> list[dict]:
        """Read back every recorded event."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
