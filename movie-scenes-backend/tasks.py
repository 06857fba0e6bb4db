# tasks.py

from celery import Celery
import logging

from database import SessionLocal
from config import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, JOB_POLL_INTERVAL_SECONDS, JOB_POLL_MAX_ATTEMPTS
from dependencies import build_video_job_service
from video_jobs import COMPLETED, FAILED

celery = Celery('tasks', broker=CELERY_BROKER_URL, backend=CELERY_RESULT_BACKEND)
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


@celery.task(bind=True, max_retries=JOB_POLL_MAX_ATTEMPTS)
def poll_video_job_task(self, job_id: str):
    """
    Polls a video job once and reschedules itself until the job is terminal.
    Each run is one status check; the state machine guards against overlapping runs.
    """
    db = SessionLocal()
    try:
        snapshot = build_video_job_service(db).check_status(job_id)
    except Exception as e:
        # check_status already persisted any finalization failure on the job
        logging.error(f"❌ Polling failed for job {job_id}. Error: {e}")
        raise
    finally:
        db.close()

    if snapshot["status"] in (COMPLETED, FAILED):
        logging.info(f"🏁 Job {job_id} reached {snapshot['status']}")
        return snapshot

    logging.info(f"⏳ Job {job_id} is {snapshot['status']} ({snapshot['progress']:.0%}); polling again in "
                 f"{JOB_POLL_INTERVAL_SECONDS}s")
    raise self.retry(countdown=JOB_POLL_INTERVAL_SECONDS)
