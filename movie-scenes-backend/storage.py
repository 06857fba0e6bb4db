"""
Object storage for scene videos.
Bytes live on disk under VIDEO_STORAGE_DIR; metadata lives in the stored_videos table.
"""

import os
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from config import VIDEO_STORAGE_DIR, PUBLIC_BASE_URL
from models import StoredVideo


@dataclass(frozen=True)
class AISource:
    """Video produced by the text-to-video provider."""
    prediction_id: str
    description: str

    def metadata(self) -> dict:
        return {"sourceType": "ai", "predictionId": self.prediction_id, "description": self.description}


@dataclass(frozen=True)
class UploadSource:
    """Video uploaded by the user."""

    def metadata(self) -> dict:
        return {"sourceType": "upload"}


class VideoStorage:
    """Stores video objects and hands out durable retrieval URLs."""

    def __init__(self, db: Session, root_dir: str = VIDEO_STORAGE_DIR, base_url: str = PUBLIC_BASE_URL):
        self.db = db
        self.root_dir = root_dir
        self.base_url = base_url.rstrip("/")

    def path_for(self, video_id: str) -> str:
        return os.path.join(self.root_dir, f"{video_id}.mp4")

    def upload(self, video_id: str, data: bytes, source, movie_id: str = None, scene_id: str = None,
               user_id: str = None, content_type: str = "video/mp4") -> StoredVideo:
        os.makedirs(self.root_dir, exist_ok=True)
        path = self.path_for(video_id)
        with open(path, "wb") as f:
            f.write(data)

        metadata = {
            "videoId": video_id,
            "movieId": movie_id,
            "sceneId": scene_id,
            "userId": user_id,
            "uploadedAt": datetime.now(timezone.utc).isoformat(),
        }
        metadata.update(source.metadata())

        stored = StoredVideo(
            id=video_id,
            path=path,
            content_type=content_type,
            size_bytes=len(data),
            object_metadata=metadata,
        )
        self.db.add(stored)
        self.db.commit()
        logging.info(f"📦 Stored video {video_id} ({len(data)} bytes) at {path}")
        return stored

    def get(self, video_id: str):
        return self.db.query(StoredVideo).filter(StoredVideo.id == video_id).first()

    def get_url(self, video_id: str) -> str:
        return f"{self.base_url}/videos/{video_id}"
