# models.py

import uuid
import logging

from sqlalchemy import Column, String, Text, Integer, Float, Boolean, DateTime, JSON, event
from sqlalchemy.sql import func
from database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Scene(Base):
    """One narrative beat of a movie, optionally backed by a generated or uploaded video."""

    __tablename__ = "scenes"

    id = Column(String, primary_key=True, default=_new_id)
    movie_id = Column(String, index=True, nullable=False)
    scene_number = Column(Integer, nullable=False)
    title = Column(String, nullable=True)
    text = Column(Text, nullable=False)
    duration = Column(Integer, default=15)
    type = Column(String, default="scene")
    status = Column(String, default="pending")  # pending, completed
    video_url = Column(String, nullable=True)
    video_id = Column(String, nullable=True)
    video_type = Column(String, nullable=True)  # ai, upload
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VideoJob(Base):
    """Tracks one asynchronous video generation request, keyed by the provider prediction id."""

    __tablename__ = "video_jobs"

    id = Column(String, primary_key=True, index=True)
    status = Column(String, default="analyzing")  # analyzing, generating, downloading, uploading, completed, failed
    progress = Column(Float, default=0.1)
    message = Column(String, nullable=True)
    movie_id = Column(String, nullable=True)
    scene_id = Column(String, nullable=True)
    user_id = Column(String, nullable=False)
    scene_text = Column(Text, nullable=False)
    prediction_id = Column(String, nullable=False)
    video_url = Column(String, nullable=True)
    video_id = Column(String, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)


class StoredVideo(Base):
    """Object-store entry for a video file kept under VIDEO_STORAGE_DIR."""

    __tablename__ = "stored_videos"

    id = Column(String, primary_key=True)
    path = Column(String, nullable=False)
    content_type = Column(String, default="video/mp4")
    size_bytes = Column(Integer, nullable=False)
    # "metadata" is reserved on declarative classes
    object_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserProfile(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, index=True, nullable=True)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    has_completed_onboarding = Column(Boolean, default=False)
    profile_completion = Column(Integer, default=0)
    tokens = Column(Integer, default=0)
    email_verified = Column(Boolean, default=False)
    role = Column(String, default="user")


@event.listens_for(UserProfile, "before_insert")
def stamp_onboarding_defaults(mapper, connection, target):
    """Stamps onboarding defaults on every newly created user profile."""
    logging.info(f"👤 Processing new user profile: {target.email}")
    try:
        target.created_at = func.now()
        target.last_login = func.now()
        target.has_completed_onboarding = False
        target.profile_completion = 0
        target.tokens = 0
        target.email_verified = False
        target.role = "user"
    except Exception as e:
        # The surrounding flush fails with it; retries belong to the caller
        logging.error(f"❌ Error initializing user profile {target.email}: {e}")
        raise
    logging.info(f"✅ User profile initialized with onboarding defaults: {target.email}")
