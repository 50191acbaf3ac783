from __future__ import annotations

import logging
import math
import time
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

MAX_EVENTS = 1000
LOW_SUCCESS_RATE_PERCENT = 90.0

ERROR_KEYWORDS = (
    ("network", ("network", "fetch", "connection", "timeout")),
    ("validation", ("invalid", "validation")),
    ("server", ("server", "500", "503")),
    ("security", ("unauthorized", "forbidden")),
)


@dataclass
class UploadEvent:
    timestamp: float
    type: str  # start | success | error
    filename: str
    file_size: int
    session_id: str
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None


def categorize_upload_error(error: Any) -> str:
    message = str(error).lower()
    for category, keywords in ERROR_KEYWORDS:
        if any(k in message for k in keywords):
            return category
    return "unknown"


def _new_session_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class UploadMetricsCollector:
    """
    In-memory upload telemetry for this process.
    Keeps the last MAX_EVENTS events; nothing is persisted.
    """

    def __init__(self, max_events: int = MAX_EVENTS):
        self._events: Deque[UploadEvent] = deque(maxlen=max_events)
        self.session_id = _new_session_id()

    def _add(self, event: UploadEvent) -> None:
        self._events.append(event)

    def record_start(self, filename: str, file_size: int) -> None:
        self._add(
            UploadEvent(
                timestamp=time.time(),
                type="start",
                filename=filename,
                file_size=file_size,
                session_id=self.session_id,
            )
        )
        logger.debug("[upload-metrics] start %s (%d bytes)", filename, file_size)

    def record_success(self, filename: str, file_size: int, duration_ms: float) -> None:
        self._add(
            UploadEvent(
                timestamp=time.time(),
                type="success",
                filename=filename,
                file_size=file_size,
                duration_ms=duration_ms,
                session_id=self.session_id,
            )
        )
        logger.info(
            "[upload-metrics] success %s (%d bytes, %.0f ms)",
            filename,
            file_size,
            duration_ms,
        )

    def record_error(
        self,
        filename: str,
        file_size: int,
        duration_ms: float,
        error: str,
        error_type: Optional[str] = None,
    ) -> None:
        error_type = error_type or categorize_upload_error(error)
        self._add(
            UploadEvent(
                timestamp=time.time(),
                type="error",
                filename=filename,
                file_size=file_size,
                duration_ms=duration_ms,
                error=error,
                error_type=error_type,
                session_id=self.session_id,
            )
        )
        logger.error(
            "[upload-metrics] error %s: %s",
            filename,
            error,
            extra={"error_type": error_type, "session_id": self.session_id},
        )

    def record_batch(
        self,
        *,
        total: int,
        successful: int,
        failed: int,
        total_time_ms: float,
        errors: Optional[List[str]] = None,
    ) -> float:
        if total <= 0:
            return 0.0

        success_rate = successful / total * 100
        logger.info(
            "[upload-metrics] batch %d/%d ok (%.1f%%), avg %.0f ms per file",
            successful,
            total,
            success_rate,
            total_time_ms / total,
            extra={"failed": failed, "session_id": self.session_id},
        )

        if success_rate < LOW_SUCCESS_RATE_PERCENT:
            logger.error(
                "[upload-metrics] low upload success rate %.1f%% (threshold %.0f%%)",
                success_rate,
                LOW_SUCCESS_RATE_PERCENT,
                extra={"errors": errors or [], "session_id": self.session_id},
            )
        return success_rate

    def get_metrics(self) -> Dict[str, Any]:
        successes = [e for e in self._events if e.type == "success"]
        errors = [e for e in self._events if e.type == "error"]
        total = len(successes) + len(errors)

        durations = sorted(
            e.duration_ms for e in successes + errors if e.duration_ms is not None
        )

        breakdown: Dict[str, int] = {}
        for e in errors:
            key = e.error_type or "unknown"
            breakdown[key] = breakdown.get(key, 0) + 1

        if durations:
            average = sum(durations) / len(durations)
            stats = {
                "minTime": durations[0],
                "maxTime": durations[-1],
                "p95Time": durations[math.floor(len(durations) * 0.95)],
            }
        else:
            average = 0
            stats = {"minTime": 0, "maxTime": 0, "p95Time": 0}

        return {
            "totalAttempts": total,
            "successfulUploads": len(successes),
            "failedUploads": len(errors),
            "averageUploadTime": average,
            "errorBreakdown": breakdown,
            "performanceStats": stats,
        }

    def events(self) -> List[Dict[str, Any]]:
        return [asdict(e) for e in self._events]

    def export(self) -> Dict[str, Any]:
        return {
            "summary": self.get_metrics(),
            "events": self.events(),
            "sessionId": self.session_id,
        }

    def reset(self) -> None:
        self._events.clear()
        self.session_id = _new_session_id()
        logger.info("[upload-metrics] reset, new session %s", self.session_id)

    @contextmanager
    def track_upload(self, filename: str, file_size: int) -> Iterator[None]:
        """
        Wraps one upload: records start, then success or a categorized error.
        The exception is re-raised.
        """
        started = time.perf_counter()
        self.record_start(filename, file_size)
        try:
            yield
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            self.record_error(filename, file_size, duration_ms, str(e))
            raise
        duration_ms = (time.perf_counter() - started) * 1000
        self.record_success(filename, file_size, duration_ms)


upload_metrics = UploadMetricsCollector()


def performance_grade(average_ms: float) -> str:
    if average_ms == 0 or average_ms < 2000:
        return "excellent"
    if average_ms < 5000:
        return "good"
    if average_ms < 10000:
        return "fair"
    return "poor"


def build_insights(metrics: Dict[str, Any]) -> Dict[str, Any]:
    total = metrics["totalAttempts"]
    success_rate = metrics["successfulUploads"] / total * 100 if total > 0 else 0.0
    breakdown = metrics["errorBreakdown"]

    most_common = None
    if breakdown:
        most_common = sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True)[0][0]

    recommendations: List[str] = []
    if success_rate < 90:
        recommendations.append("Success rate is below 90%. Investigate upload failures.")
    if metrics["averageUploadTime"] > 10000:
        recommendations.append(
            "Average upload time is over 10 seconds. Consider optimizing storage or network."
        )
    if breakdown.get("network", 0) > total * 0.3:
        recommendations.append(
            "High network error rate detected. Check connectivity and CDN performance."
        )
    if breakdown.get("server", 0) > total * 0.1:
        recommendations.append(
            "Server errors detected. Check storage service health and configuration."
        )
    if metrics["performanceStats"]["p95Time"] > 15000:
        recommendations.append(
            "95th percentile upload time is over 15 seconds. Investigate slow uploads."
        )
    if not recommendations:
        recommendations.append("Upload performance looks good! No immediate action required.")

    return {
        "successRate": round(success_rate, 2),
        "isHealthy": success_rate >= 95,
        "needsAttention": success_rate < 90,
        "mostCommonError": most_common,
        "performanceGrade": performance_grade(metrics["averageUploadTime"]),
        "recommendations": recommendations,
    }
