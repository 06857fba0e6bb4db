"""
Video job state machine.

A job is created once the video provider accepts a prediction and is keyed by
the prediction id. Each status check performs at most one provider status call
and at most one finalization pass (download, store, mark completed).

    analyzing -> generating -> downloading -> uploading -> completed
    (any non-terminal state) -> failed
"""

import time
import uuid
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from config import FINALIZE_STALE_SECONDS, SYNC_POLL_INTERVAL_SECONDS, SYNC_POLL_MAX_ATTEMPTS
from clients import output_url
from errors import AppError, ConfigurationError, GenerationTimeoutError, JobNotFoundError, ProviderError
from models import Scene, VideoJob
from storage import AISource

ANALYZING = "analyzing"
GENERATING = "generating"
PROCESSING = "processing"
DOWNLOADING = "downloading"
UPLOADING = "uploading"
COMPLETED = "completed"
FAILED = "failed"

STATUS_PROGRESS = {
    ANALYZING: 0.10,
    GENERATING: 0.30,
    PROCESSING: 0.60,
    DOWNLOADING: 0.80,
    UPLOADING: 0.90,
    COMPLETED: 1.00,
}

STATUS_MESSAGES = {
    ANALYZING: "Analyzing scene...",
    GENERATING: "Generating video...",
    PROCESSING: "Processing video...",
    DOWNLOADING: "Downloading generated video...",
    UPLOADING: "Uploading video to storage...",
    COMPLETED: "Video generation completed",
}

STATUS_ORDER = [ANALYZING, GENERATING, PROCESSING, DOWNLOADING, UPLOADING, COMPLETED]

CANCELED_MESSAGE = "Video generation was canceled"

# States a finalization pass may be claimed from
CLAIMABLE = (ANALYZING, GENERATING, PROCESSING)
# States a finalization pass may be reclaimed from once it stops making progress
RECLAIMABLE = (DOWNLOADING, UPLOADING)


def _rank(status: str) -> int:
    return STATUS_ORDER.index(status) if status in STATUS_ORDER else len(STATUS_ORDER)


def snapshot(job: VideoJob) -> dict:
    data = {
        "jobId": job.id,
        "status": job.status,
        "progress": job.progress,
        "message": job.message,
        "videoUrl": job.video_url,
        "videoId": job.video_id,
        "error": job.error,
    }
    return {key: value for key, value in data.items() if value is not None}


def _prediction_id(prediction: dict) -> str:
    prediction_id = prediction.get("id") if isinstance(prediction, dict) else None
    if not prediction_id:
        raise ProviderError("Video provider returned a prediction without an id", details=str(prediction))
    return prediction_id


class VideoJobService:
    """Creates video jobs and advances them by polling the video provider."""

    def __init__(self, db: Session, provider, storage, sleep=time.sleep):
        self.db = db
        self.provider = provider
        self.storage = storage
        self.sleep = sleep

    def _provider(self):
        if self.provider is None:
            logging.error("❌ Missing video provider API token")
            raise ConfigurationError("Server configuration error - Missing video provider API token")
        return self.provider

    # --- Creation ---

    def create_job(self, scene_text: str, user_id: str, movie_id: str = None, scene_id: str = None) -> VideoJob:
        # No job row exists unless the provider accepted the prediction
        prediction = self._provider().create_prediction(scene_text)
        prediction_id = _prediction_id(prediction)

        job = VideoJob(
            id=prediction_id,
            status=ANALYZING,
            progress=STATUS_PROGRESS[ANALYZING],
            message=STATUS_MESSAGES[ANALYZING],
            movie_id=movie_id,
            scene_id=scene_id,
            user_id=user_id,
            scene_text=scene_text,
            prediction_id=prediction_id,
        )
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        logging.info(f"✨ Video job {job.id} created for user {user_id}")
        return job

    # --- Polling ---

    def check_status(self, job_id: str) -> dict:
        job = self._get(job_id)

        if job.status == COMPLETED and job.video_url:
            return snapshot(job)
        if job.status == FAILED:
            return snapshot(job)

        prediction = self._provider().get_prediction(job_id)
        provider_status = prediction.get("status")
        logging.info(f"🔄 Job {job_id}: provider={provider_status}, local={job.status}")

        if provider_status == "starting":
            self._advance(job, ANALYZING)
        elif provider_status == "processing":
            self._advance(job, GENERATING)
        elif provider_status == "succeeded":
            if not job.video_url:
                self._finalize(job, prediction)
        elif provider_status == "failed":
            self._fail(job, prediction.get("error") or "Video generation failed")
        elif provider_status == "canceled":
            self._fail(job, CANCELED_MESSAGE)

        return snapshot(job)

    def _get(self, job_id: str) -> VideoJob:
        job = self.db.query(VideoJob).filter(VideoJob.id == job_id).first()
        if not job:
            raise JobNotFoundError("Job not found.", jobId=job_id)
        return job

    def _advance(self, job: VideoJob, status: str, **fields):
        """Moves the job forward; stale provider states never move it back."""
        if _rank(status) <= _rank(job.status):
            return
        job.status = status
        job.progress = STATUS_PROGRESS[status]
        job.message = STATUS_MESSAGES[status]
        for name, value in fields.items():
            setattr(job, name, value)
        self.db.commit()

    def _fail(self, job: VideoJob, error: str):
        logging.error(f"❌ Job {job.id} failed: {error}")
        job.status = FAILED
        job.message = error
        job.error = error
        self.db.commit()

    def _claim(self, job: VideoJob) -> bool:
        """
        Atomically takes ownership of finalizing a job; only one concurrent poll wins.

        A fresh job moves into downloading. A job left in downloading or uploading by a
        pass that stopped making progress is taken over without changing its status.
        """
        observed = job.status
        filters = [VideoJob.id == job.id, VideoJob.video_url.is_(None), VideoJob.status == observed]
        values = {VideoJob.updated_at: func.now()}

        if observed in CLAIMABLE:
            values.update({
                VideoJob.status: DOWNLOADING,
                VideoJob.progress: STATUS_PROGRESS[DOWNLOADING],
                VideoJob.message: STATUS_MESSAGES[DOWNLOADING],
            })
        elif observed in RECLAIMABLE:
            cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(seconds=FINALIZE_STALE_SECONDS)
            filters.append(VideoJob.updated_at < cutoff)
        else:
            return False

        claimed = self.db.query(VideoJob).filter(*filters).update(values, synchronize_session=False)
        self.db.commit()
        self.db.refresh(job)
        if claimed == 1 and observed in RECLAIMABLE:
            logging.warning(f"⚠️ Job {job.id} was stuck in {observed}; resuming finalization")
        return claimed == 1

    def _finalize(self, job: VideoJob, prediction: dict):
        if not self._claim(job):
            logging.info(f"Job {job.id} is already being finalized")
            return

        try:
            video_bytes = self._provider().download(output_url(prediction))

            self._advance(job, UPLOADING)
            video_id = str(uuid.uuid4())
            self.storage.upload(
                video_id,
                video_bytes,
                AISource(prediction_id=job.prediction_id, description=job.scene_text),
                movie_id=job.movie_id,
                scene_id=job.scene_id,
                user_id=job.user_id,
                content_type="video/mp4",
            )
            video_url = self.storage.get_url(video_id)

            # The scene write and the job completion land in one commit
            self._update_scene(job, video_url, video_id)
            self._advance(job, COMPLETED, video_url=video_url, video_id=video_id, completed_at=func.now())
            self.db.refresh(job)
            logging.info(f"✅ Job {job.id} completed. Video at: {video_url}")
        except Exception as e:
            self.db.rollback()
            message = e.message if isinstance(e, AppError) else str(e)
            self._fail(job, message)
            if isinstance(e, AppError):
                raise
            raise ProviderError("Failed to finalize generated video", details=str(e))

    def _update_scene(self, job: VideoJob, video_url: str, video_id: str):
        if not job.scene_id:
            return
        query = self.db.query(Scene).filter(Scene.id == job.scene_id)
        if job.movie_id:
            query = query.filter(Scene.movie_id == job.movie_id)
        scene = query.first()
        if not scene:
            logging.warning(f"⚠️ Scene {job.scene_id} not found for job {job.id}; skipping scene update")
            return
        scene.video_url = video_url
        scene.video_id = video_id
        scene.status = COMPLETED
        scene.video_type = "ai"

    # --- Blocking variant ---

    def generate_video_sync(self, scene_text: str) -> dict:
        """Creates a prediction and waits for it within the request. Persists nothing."""
        prediction = self._provider().create_prediction(scene_text)
        prediction_id = _prediction_id(prediction)

        for attempt in range(1, SYNC_POLL_MAX_ATTEMPTS + 1):
            prediction = self._provider().get_prediction(prediction_id)
            status = prediction.get("status")
            logging.info(f"⏳ Prediction {prediction_id} attempt {attempt}/{SYNC_POLL_MAX_ATTEMPTS}: {status}")

            if status == "succeeded":
                return {"success": True, "videoUrl": output_url(prediction), "predictionId": prediction_id}
            if status == "failed":
                raise ProviderError("Video generation failed", details=prediction.get("error"),
                                    predictionId=prediction_id)
            if status == "canceled":
                raise ProviderError(CANCELED_MESSAGE, predictionId=prediction_id)

            if attempt < SYNC_POLL_MAX_ATTEMPTS:
                self.sleep(SYNC_POLL_INTERVAL_SECONDS)

        raise GenerationTimeoutError(
            f"Video generation timed out after {SYNC_POLL_MAX_ATTEMPTS * SYNC_POLL_INTERVAL_SECONDS} seconds",
            predictionId=prediction_id,
        )
