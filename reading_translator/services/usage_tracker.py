"""
Usage / telemetry collaborators. The pipeline emits one ``UsageEvent``
per invocation; a tracker failing must never fail the pipeline, the
caller wraps ``record`` accordingly.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Protocol

from reading_translator.logconf import logger
from reading_translator.settings import settings
from reading_translator.utils.async_utils import run_sync


@dataclass(frozen=True)
class UsageEvent:
    operation_type: str
    success: bool
    processing_time_ms: int
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return asdict(self)


class UsageTracker(Protocol):
    async def record(self, event: UsageEvent) -> None: ...


class NoopUsageTracker:
    async def record(self, event: UsageEvent) -> None:
        return None


class LoggingUsageTracker:
    async def record(self, event: UsageEvent) -> None:
        logger.info(
            "usage | %s | success=%s | %dms | %s",
            event.operation_type,
            event.success,
            event.processing_time_ms,
            event.metadata,
        )


@run_sync
def _append_line(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(line + "\n")


class JsonlUsageTracker:
    """Appends one JSON line per event; the write runs in the default executor."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def record(self, event: UsageEvent) -> None:
        await _append_line(self.path, json.dumps(event.to_dict(), ensure_ascii=False))


def tracker_from_settings() -> UsageTracker:
    if settings.usage_log_path:
        return JsonlUsageTracker(settings.usage_log_path)
    return LoggingUsageTracker()
