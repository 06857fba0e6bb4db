# movie-scenes-backend/tests/test_tasks.py

from unittest.mock import MagicMock, patch

import pytest
from celery.exceptions import Retry

import tasks


def _service(status):
    service = MagicMock()
    service.check_status.return_value = {"jobId": "pred-123", "status": status, "progress": 0.3}
    return service


@patch("tasks.SessionLocal")
@patch("tasks.build_video_job_service")
def test_poll_task_stops_at_terminal_state(mock_build, mock_session):
    mock_build.return_value = _service("completed")

    result = tasks.poll_video_job_task.apply(args=["pred-123"]).get()

    assert result["status"] == "completed"
    mock_session.return_value.close.assert_called_once()


@patch("tasks.SessionLocal")
@patch("tasks.build_video_job_service")
def test_poll_task_reschedules_while_running(mock_build, mock_session):
    mock_build.return_value = _service("generating")

    with patch.object(tasks.poll_video_job_task, "retry", side_effect=Retry()) as mock_retry:
        with pytest.raises(Retry):
            tasks.poll_video_job_task.run("pred-123")

    mock_retry.assert_called_once_with(countdown=tasks.JOB_POLL_INTERVAL_SECONDS)
