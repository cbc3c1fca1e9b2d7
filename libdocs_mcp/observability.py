"""Observability for libdocs-mcp.

Provides:
- Correlation ID generation
- Event logging for tool invocations and outcomes
- JSON or text structured logging on stderr
- In-memory call metrics (served on /health under HTTP)
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
import sys
from threading import Lock
import time
from typing import Any
import uuid

from libdocs_mcp.config import ServerSettings

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

event_logger = logging.getLogger("libdocs-mcp.events")


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return str(uuid.uuid4())[:8]  # Short form for readability


def log_event(
    event: str, details: dict[str, Any] | None = None, *, level: int = logging.INFO
) -> None:
    """Record a tool event, e.g. ``log_event("get-library-docs success", {...})``."""
    if details:
        event_logger.log(
            level, f"{event} {json.dumps(details, default=str)}", extra={"details": details}
        )
    else:
        event_logger.log(level, event)


class JsonLogFormatter(logging.Formatter):
    """JSON structured log formatter with correlation ID support."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for attr, key in (
            ("correlation_id", "cid"),
            ("tool", "tool"),
            ("latency_ms", "latency_ms"),
            ("status", "status"),
            ("error", "error"),
            ("details", "details"),
        ):
            if hasattr(record, attr):
                log_data[key] = getattr(record, attr)

        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data, separators=(",", ":"), default=str)


@dataclass
class ToolMetrics:
    """Metrics for a single tool."""

    call_count: int = 0
    error_count: int = 0
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0

    @property
    def avg_latency_ms(self) -> float:
        if self.call_count == 0:
            return 0.0
        return self.total_latency_ms / self.call_count


class MetricsCollector:
    """Thread-safe per-tool call counts, errors and latencies."""

    def __init__(self):
        self._lock = Lock()
        self._tools: dict[str, ToolMetrics] = defaultdict(ToolMetrics)
        self._start_time: float = time.time()

    def record_call(self, tool: str, latency_ms: float, success: bool) -> None:
        with self._lock:
            metrics = self._tools[tool]
            metrics.call_count += 1
            if not success:
                metrics.error_count += 1
            metrics.total_latency_ms += latency_ms
            metrics.max_latency_ms = max(metrics.max_latency_ms, latency_ms)

    def get_stats(self) -> dict[str, Any]:
        """Get current metrics snapshot."""
        with self._lock:
            total = sum(m.call_count for m in self._tools.values())
            errors = sum(m.error_count for m in self._tools.values())
            return {
                "uptime_s": round(time.time() - self._start_time, 1),
                "total_requests": total,
                "total_errors": errors,
                "tools": {
                    name: {
                        "calls": m.call_count,
                        "errors": m.error_count,
                        "avg_ms": round(m.avg_latency_ms, 2),
                        "max_ms": round(m.max_latency_ms, 2),
                    }
                    for name, m in self._tools.items()
                },
            }


def setup_logging(settings: ServerSettings) -> logging.Logger:
    """Configure stderr logging for the whole process.

    stdout is reserved for the stdio transport, so every handler goes to stderr.

    Returns:
        The root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if settings.log_format == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root
