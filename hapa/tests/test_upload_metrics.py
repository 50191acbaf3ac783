import pytest

from hapa.core.upload_metrics import (
    UploadMetricsCollector,
    build_insights,
    categorize_upload_error,
    performance_grade,
)


def test_ring_buffer_keeps_last_events():
    m = UploadMetricsCollector(max_events=5)
    for i in range(8):
        m.record_success(f"f{i}.png", 100, float(i))

    events = m.events()
    assert len(events) == 5
    assert [e["filename"] for e in events] == ["f3.png", "f4.png", "f5.png", "f6.png", "f7.png"]


def test_metrics_ignore_start_events_and_compute_percentiles():
    m = UploadMetricsCollector()
    m.record_start("a.png", 10)
    for ms in (100.0, 200.0, 300.0, 400.0):
        m.record_success("a.png", 10, ms)
    m.record_error("b.png", 10, 500.0, "Network timeout")

    metrics = m.get_metrics()
    assert metrics["totalAttempts"] == 5
    assert metrics["successfulUploads"] == 4
    assert metrics["failedUploads"] == 1
    assert metrics["averageUploadTime"] == pytest.approx(300.0)
    assert metrics["performanceStats"] == {"minTime": 100.0, "maxTime": 500.0, "p95Time": 500.0}
    assert metrics["errorBreakdown"] == {"network": 1}


def test_empty_metrics():
    metrics = UploadMetricsCollector().get_metrics()
    assert metrics["totalAttempts"] == 0
    assert metrics["averageUploadTime"] == 0
    assert metrics["performanceStats"]["p95Time"] == 0


@pytest.mark.parametrize(
    "message,expected",
    [
        ("fetch failed", "network"),
        ("Invalid file type", "validation"),
        ("HTTP 503 from storage", "server"),
        ("Forbidden", "security"),
        ("something odd", "unknown"),
    ],
)
def test_error_categories(message, expected):
    assert categorize_upload_error(message) == expected


def test_track_upload_records_success_and_error():
    m = UploadMetricsCollector()
    with m.track_upload("ok.png", 10):
        pass

    with pytest.raises(RuntimeError):
        with m.track_upload("bad.png", 10):
            raise RuntimeError("connection reset")

    types = [e["type"] for e in m.events()]
    assert types == ["start", "success", "start", "error"]
    assert m.events()[-1]["error_type"] == "network"


def test_batch_success_rate():
    m = UploadMetricsCollector()
    assert m.record_batch(total=0, successful=0, failed=0, total_time_ms=0) == 0.0
    assert m.record_batch(total=4, successful=3, failed=1, total_time_ms=400) == 75.0


def test_reset_starts_new_session():
    m = UploadMetricsCollector()
    m.record_success("a.png", 1, 1.0)
    old = m.session_id
    m.reset()
    assert m.events() == []
    assert m.session_id != old


def test_insights():
    healthy = build_insights(
        {
            "totalAttempts": 0,
            "successfulUploads": 0,
            "failedUploads": 0,
            "averageUploadTime": 0,
            "errorBreakdown": {},
            "performanceStats": {"minTime": 0, "maxTime": 0, "p95Time": 0},
        }
    )
    assert healthy["needsAttention"] is True
    assert healthy["performanceGrade"] == "excellent"

    poor = build_insights(
        {
            "totalAttempts": 10,
            "successfulUploads": 5,
            "failedUploads": 5,
            "averageUploadTime": 12000,
            "errorBreakdown": {"network": 4, "server": 1},
            "performanceStats": {"minTime": 0, "maxTime": 20000, "p95Time": 20000},
        }
    )
    assert poor["successRate"] == 50.0
    assert poor["mostCommonError"] == "network"
    assert poor["performanceGrade"] == "poor"
    assert len(poor["recommendations"]) == 4


def test_performance_grades():
    assert performance_grade(1500) == "excellent"
    assert performance_grade(3000) == "good"
    assert performance_grade(7000) == "fair"
    assert performance_grade(10000) == "poor"
