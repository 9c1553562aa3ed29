from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the per-run error log.

One record per period that failed to load. The JSON Lines shape is fixed:
exactly the dataclass fields, no extra keys.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        period: period key being loaded ("2025-11", or "latest")
        object_key: blob key (or local path) of the workbook
        error_type: classification in UPPER_SNAKE_CASE
        message: human readable description
    """
    timestamp: str  # ISO8601 UTC
    period: str
    object_key: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(period: str, object_key: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            period=period,
            object_key=object_key,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
