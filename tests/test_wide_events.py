"""
Tests for wide events (canonical log lines) utility.

Tests the structured logging patterns including:
- WideEvent creation and context management
- Timer and performance breakdown
- Tail sampling logic
- track_operation success and failure paths
"""

import time
from unittest.mock import patch

import pytest

from justfuel.exceptions import FillupNotFoundError
from justfuel.utils.wide_events import WideEvent, track_operation


class TestWideEvent:
    """Tests for WideEvent class."""

    def test_creates_event_with_defaults(self):
        """Creates event with default values."""
        event = WideEvent(operation="test_operation")

        assert event.context["operation"] == "test_operation"
        assert "timestamp" in event.context
        assert "start_time" in event.context
        assert "request_id" in event.context
        assert "trace_id" not in event.context

    def test_creates_event_with_trace_id(self):
        event = WideEvent(operation="test_op", trace_id="7")
        assert event.context["trace_id"] == "7"

    def test_add_context(self):
        event = WideEvent(operation="test")
        event.add_context(vehicle_id=3, filename="fillups.csv")

        assert event.context["vehicle_id"] == 3
        assert event.context["filename"] == "fillups.csv"

    def test_add_business_metric(self):
        """Adds business metrics under business_metrics key."""
        event = WideEvent(operation="test")
        event.add_business_metric("rows", 42)
        event.add_business_metric("warnings", 2)

        assert event.context["business_metrics"] == {"rows": 42, "warnings": 2}

    def test_add_error(self):
        event = WideEvent(operation="test")
        event.add_error(ValueError("Something went wrong"), row=4)

        assert event.context["error"]["type"] == "ValueError"
        assert event.context["error"]["message"] == "Something went wrong"
        assert event.context["error"]["details"]["row"] == 4
        assert event.context["success"] is False

    def test_mark_success(self):
        event = WideEvent(operation="test")
        event.mark_success()
        assert event.context["success"] is True

    def test_mark_failure(self):
        event = WideEvent(operation="test")
        event.mark_failure("rejected")

        assert event.context["success"] is False
        assert event.context["failure_reason"] == "rejected"

    def test_timer_context_manager(self):
        """Records a step duration in the performance breakdown."""
        event = WideEvent(operation="test")

        with event.timer("validation"):
            time.sleep(0.01)

        assert event.context["performance_breakdown"]["validation_ms"] >= 10

    def test_set_duration(self):
        event = WideEvent(operation="test")
        event.set_duration()

        assert "duration_ms" in event.context
        assert "start_time" not in event.context


class TestTailSampling:
    """Tests for tail sampling logic."""

    def test_always_emits_errors(self):
        event = WideEvent(operation="test")
        event.add_error(ValueError("boom"))

        assert event.should_emit(sample_rate=0.0)

    def test_always_emits_slow_operations(self):
        event = WideEvent(operation="test")
        event.context["duration_ms"] = 1500

        assert event.should_emit(sample_rate=0.0)

    def test_always_emits_critical_business_events(self):
        event = WideEvent(operation="test")
        event.add_business_metric("import_committed", True)

        assert event.should_emit(sample_rate=0.0)

    def test_false_critical_metric_does_not_force(self):
        event = WideEvent(operation="test")
        event.add_business_metric("odometer_decreased", False)

        assert not event.should_emit(sample_rate=0.0)

    @patch("justfuel.utils.wide_events.random.random")
    def test_samples_normal_operations(self, mock_random):
        event = WideEvent(operation="test")
        event.mark_success()

        mock_random.return_value = 0.01
        assert event.should_emit(sample_rate=0.05)

        mock_random.return_value = 0.5
        assert not event.should_emit(sample_rate=0.05)


class TestEmit:
    """Tests for event emission."""

    @patch("structlog.get_logger")
    def test_emits_event(self, mock_get_logger):
        event = WideEvent(operation="fillup_create")
        event.add_business_metric("fillup_created", True)

        assert event.emit() is True
        mock_get_logger.return_value.info.assert_called_once()
        assert mock_get_logger.return_value.info.call_args[0][0] == "fillup_create_complete"

    @patch("justfuel.utils.wide_events.random.random", return_value=0.99)
    @patch("structlog.get_logger")
    def test_sampled_out_event_is_not_logged(self, mock_get_logger, mock_random):
        event = WideEvent(operation="fillup_recalculate")
        event.mark_success()

        assert event.emit() is False
        mock_get_logger.return_value.info.assert_not_called()

    @patch("structlog.get_logger")
    def test_force_emit(self, mock_get_logger):
        event = WideEvent(operation="test")
        event.mark_success()

        assert event.emit(level="warning", force=True) is True
        mock_get_logger.return_value.warning.assert_called_once()


class TestTrackOperation:
    """Tests for track_operation context manager."""

    @patch("justfuel.utils.wide_events.random.random", return_value=0.0)
    @patch("structlog.get_logger")
    def test_tracks_successful_operation(self, mock_get_logger, mock_random):
        with track_operation("fillup_import", vehicle_id=3) as event:
            event.add_business_metric("rows", 10)

        assert event.context["success"] is True
        assert event.context["trace_id"] == "3"
        mock_get_logger.return_value.info.assert_called_once()

    @patch("structlog.get_logger")
    def test_tracks_failed_operation(self, mock_get_logger):
        with pytest.raises(FillupNotFoundError):
            with track_operation("fillup_delete", fillup_id=9) as event:
                raise FillupNotFoundError(9)

        assert event.context["success"] is False
        assert event.context["error"]["type"] == "FillupNotFoundError"
        assert event.context["error"]["details"] == {"fillup_id": 9, "code": "E201"}
        assert "trace_id" not in event.context
        mock_get_logger.return_value.error.assert_called_once()
