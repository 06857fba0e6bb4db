"""
Router for movie scene and scene video endpoints.
Handles scene generation, video jobs, uploads and movie stitching.
"""

import os
import uuid
import logging
from datetime import datetime, timezone

import ffmpeg
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.orm import Session

import config
from database import get_db
from dependencies import get_continuation_generator, get_scene_generator, get_video_job_service, get_video_storage
from errors import AppError, NotFoundError, ValidationError
from models import Scene
from schemas import (
    AdditionalScenesRequest,
    AdditionalScenesResponse,
    JobResponse,
    MovieScenesRequest,
    MovieScenesResponse,
    SceneVideoRequest,
    SceneVideoResponse,
    SingleSceneRequest,
    StatusRequest,
    StatusResponse,
    StitchRequest,
    UploadVideoResponse,
)
from services import SceneGenerator
from storage import UploadSource, VideoStorage
from tasks import poll_video_job_task
from video_jobs import FAILED, VideoJobService


# Create the router
router = APIRouter(tags=["generation"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/generateMovieScenes", response_model=MovieScenesResponse, response_model_exclude_none=True)
def generate_movie_scenes(request: MovieScenesRequest, generator: SceneGenerator = Depends(get_scene_generator)):
    """Generates the opening scenes for a movie idea."""
    if not request.movieIdea:
        raise ValidationError("Movie idea is required")

    try:
        scenes = generator.generate_initial_scenes(request.movieIdea, movie_id=request.movieId)
    except AppError:
        raise
    except Exception as e:
        logging.error(f"Failed to generate movie scenes: {e}")
        raise AppError("Failed to generate movie scenes. Please try again.", details=str(e))

    return {
        "scenes": scenes,
        "metadata": {"totalScenes": len(scenes), "movieIdea": request.movieIdea, "generatedAt": _now()},
    }


@router.post("/generateAdditionalScenes", response_model=AdditionalScenesResponse, response_model_exclude_none=True)
def generate_additional_scenes(request: AdditionalScenesRequest,
                               generator: SceneGenerator = Depends(get_continuation_generator)):
    """Generates continuation scenes for an existing movie and saves them."""
    if not request.movieId or request.existingScenes is None or not request.continuationIdea or not request.numNewScenes:
        raise ValidationError("movieId, existingScenes, continuationIdea and numNewScenes are required")
    if request.numNewScenes < 1:
        raise ValidationError("numNewScenes must be a positive integer")

    try:
        scenes = generator.generate_continuation_scenes(
            request.movieId, request.existingScenes, request.continuationIdea, request.numNewScenes
        )
    except AppError as e:
        cause = f"{e.message}: {e.details}" if e.details else e.message
        logging.error(f"Failed to generate additional scenes: {cause}")
        raise AppError("Failed to generate additional scenes", details=cause, status_code=e.status_code)
    except Exception as e:
        logging.error(f"Failed to generate additional scenes: {e}")
        raise AppError("Failed to generate additional scenes", details=str(e))

    return {
        "scenes": scenes,
        "metadata": {
            "totalNewScenes": len(scenes),
            "continuationIdea": request.continuationIdea,
            "generatedAt": _now(),
            "movieId": request.movieId,
        },
    }


@router.post("/generateSingleScene", response_model=JobResponse)
def generate_single_scene(request: SingleSceneRequest, jobs: VideoJobService = Depends(get_video_job_service)):
    """
    Starts a video generation job for one scene and immediately returns its id.
    Progress is read back through /getGenerationStatus.
    """
    if not request.scene or not request.scene.text or not request.userId:
        raise ValidationError("Scene text and userId are required")

    job = jobs.create_job(
        request.scene.text,
        request.userId,
        movie_id=request.scene.movieId,
        scene_id=request.scene.documentId,
    )

    if config.AUTO_POLL_JOBS:
        poll_video_job_task.apply_async(args=[job.id], countdown=config.JOB_POLL_INTERVAL_SECONDS)

    return {"success": True, "jobId": job.id, "status": job.status, "progress": job.progress}


@router.post("/getGenerationStatus", response_model=StatusResponse, response_model_exclude_none=True)
def get_generation_status(request: StatusRequest, jobs: VideoJobService = Depends(get_video_job_service)):
    """Checks (and advances) a video job by polling the provider at most once."""
    if not request.jobId:
        raise ValidationError("jobId is required")

    snapshot = jobs.check_status(request.jobId)
    if snapshot["status"] == FAILED:
        return JSONResponse(status_code=500, content=snapshot)
    return snapshot


@router.post("/generateSceneVideo", response_model=SceneVideoResponse)
def generate_scene_video(request: SceneVideoRequest, jobs: VideoJobService = Depends(get_video_job_service)):
    """Generates a video for one scene and waits for the result within the request."""
    if not request.sceneText:
        raise ValidationError("Scene text is required")
    return jobs.generate_video_sync(request.sceneText)


@router.post("/uploadSceneVideo", response_model=UploadVideoResponse)
def upload_scene_video(
    file: UploadFile = File(...),
    movieId: str = Form(...),
    sceneId: str = Form(...),
    userId: str = Form(...),
    storage: VideoStorage = Depends(get_video_storage),
    db: Session = Depends(get_db),
):
    """Stores a user-supplied video for a scene and marks the scene completed."""
    scene = db.query(Scene).filter(Scene.id == sceneId, Scene.movie_id == movieId).first()
    if not scene:
        raise NotFoundError("Scene not found.", sceneId=sceneId)

    video_id = str(uuid.uuid4())
    storage.upload(
        video_id,
        file.file.read(),
        UploadSource(),
        movie_id=movieId,
        scene_id=sceneId,
        user_id=userId,
        content_type=file.content_type or "video/mp4",
    )
    video_url = storage.get_url(video_id)

    scene.video_url = video_url
    scene.video_id = video_id
    scene.status = "completed"
    scene.video_type = "upload"
    db.commit()
    logging.info(f"Clip {file.filename} saved for scene {sceneId} as {video_id}")
    return {"success": True, "videoId": video_id, "videoUrl": video_url}


@router.post("/stitchMovie")
def stitch_movie(request: StitchRequest, storage: VideoStorage = Depends(get_video_storage),
                 db: Session = Depends(get_db)):
    """Concatenates a movie's completed scene videos in scene order."""
    if not request.movieId:
        raise ValidationError("movieId is required")

    scenes = (
        db.query(Scene)
        .filter(Scene.movie_id == request.movieId, Scene.video_id.isnot(None))
        .order_by(Scene.scene_number)
        .all()
    )
    file_paths = [storage.path_for(scene.video_id) for scene in scenes]
    file_paths = [path for path in file_paths if os.path.exists(path)]
    if not file_paths:
        raise ValidationError("No scene videos found for this movie.")

    logging.info(f"Stitching {len(file_paths)} clips for movie {request.movieId}...")

    try:
        input_streams = [ffmpeg.input(path) for path in file_paths]

        # Concatenate (stitch) all video streams. Assumes no audio.
        stitched_video_node = ffmpeg.concat(*input_streams, v=1, a=0).node

        output_dir = os.path.join(config.MEDIA_DIR, "movies")
        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"movie_{request.movieId}_{uuid.uuid4()}.mp4")

        ffmpeg.output(stitched_video_node[0], output_path).run(overwrite_output=True)

        logging.info(f"Successfully stitched movie to {output_path}")
        return FileResponse(output_path, media_type="video/mp4", filename="final_movie.mp4")

    except ffmpeg.Error as e:
        error_details = e.stderr.decode('utf8') if e.stderr else 'Unknown FFmpeg error'
        logging.error(f"FFmpeg stitching failed: {error_details}")
        raise AppError("Failed to stitch video", details=error_details)


@router.get("/videos/{video_id}")
def get_video(video_id: str, storage: VideoStorage = Depends(get_video_storage)):
    """Serves a stored video object. This is the target of every videoUrl."""
    stored = storage.get(video_id)
    if not stored or not os.path.exists(stored.path):
        raise NotFoundError("Video file not found.", videoId=video_id)

    return FileResponse(stored.path, media_type=stored.content_type, filename=os.path.basename(stored.path))
