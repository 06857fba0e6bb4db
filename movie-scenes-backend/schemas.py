"""
Pydantic models for data validation in the Movie Scenes backend.
Field names follow the camelCase JSON contract used by the web client.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class SceneRecord(BaseModel):
    """One generated scene as returned to the client."""
    id: int
    title: Optional[str] = None
    text: str
    duration: int = 15
    type: str = "scene"
    status: str = "pending"  # "pending" | "completed"
    movieId: Optional[str] = None
    documentId: Optional[str] = None
    videoUrl: Optional[str] = None
    videoId: Optional[str] = None
    videoType: Optional[str] = None


class MovieScenesRequest(BaseModel):
    """Request model for generating the first scenes of a movie."""
    movieIdea: Optional[str] = None
    movieId: Optional[str] = None


class MovieScenesMetadata(BaseModel):
    totalScenes: int
    movieIdea: str
    generatedAt: str


class MovieScenesResponse(BaseModel):
    scenes: List[SceneRecord]
    metadata: MovieScenesMetadata


class AdditionalScenesRequest(BaseModel):
    """Request model for continuing an existing movie."""
    movieId: Optional[str] = None
    existingScenes: Optional[List[Dict[str, Any]]] = None
    continuationIdea: Optional[str] = None
    numNewScenes: Optional[int] = None


class AdditionalScenesMetadata(BaseModel):
    totalNewScenes: int
    continuationIdea: str
    generatedAt: str
    movieId: str


class AdditionalScenesResponse(BaseModel):
    scenes: List[SceneRecord]
    metadata: AdditionalScenesMetadata


class SingleSceneInput(BaseModel):
    text: Optional[str] = None
    documentId: Optional[str] = None
    movieId: Optional[str] = None


class SingleSceneRequest(BaseModel):
    """Request model for starting an asynchronous video job for one scene."""
    scene: Optional[SingleSceneInput] = None
    userId: Optional[str] = None


class JobResponse(BaseModel):
    """Response when submitting a background generation job."""
    success: bool
    jobId: str
    status: str
    progress: float


class StatusRequest(BaseModel):
    jobId: Optional[str] = None


class StatusResponse(BaseModel):
    """Response for checking video job status."""
    jobId: str
    status: str
    progress: float
    message: Optional[str] = None
    videoUrl: Optional[str] = None
    videoId: Optional[str] = None
    error: Optional[str] = None


class SceneVideoRequest(BaseModel):
    """Request model for the blocking single-call video generation."""
    sceneText: Optional[str] = None


class SceneVideoResponse(BaseModel):
    success: bool
    videoUrl: str
    predictionId: str


class UploadVideoResponse(BaseModel):
    """Response model for an uploaded scene video."""
    success: bool
    videoId: str
    videoUrl: str


class StitchRequest(BaseModel):
    """Request model for stitching a movie's scene videos together."""
    movieId: Optional[str] = None
