"""
FastAPI dependencies that build provider clients and services per request.
Credentials are only read here, so tests can swap any of these for fakes.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

import config
from clients import OpenAIClient, PineconeClient, ReplicateClient
from database import get_db
from errors import ConfigurationError
from services import GenerationClient, RetrievalClient, SceneGenerator
from storage import VideoStorage
from video_jobs import VideoJobService


def build_scene_generator(db: Session, require_index: bool = True) -> SceneGenerator:
    """
    Builds the scene generator. Continuation scenes never query the index, so
    `require_index=False` only needs the language model key.
    """
    logging.info(f"Environment variables loaded: hasPinecone={bool(config.PINECONE_API_KEY)}, "
                 f"hasOpenAI={bool(config.OPENAI_API_KEY)}")
    if not config.OPENAI_API_KEY or (require_index and not config.PINECONE_API_KEY):
        logging.error("❌ Missing required API keys")
        raise ConfigurationError("Server configuration error - Missing API keys")

    llm = OpenAIClient(config.OPENAI_API_KEY)
    retrieval = None
    if config.PINECONE_API_KEY:
        index = PineconeClient(config.PINECONE_API_KEY, config.PINECONE_INDEX_NAME,
                               index_host=config.PINECONE_INDEX_HOST)
        retrieval = RetrievalClient(llm, index)
    return SceneGenerator(retrieval, GenerationClient(llm), db)


def build_video_job_service(db: Session) -> VideoJobService:
    # The token is checked when a provider call is made; job lookups work without it
    provider = ReplicateClient(config.REPLICATE_API_TOKEN) if config.REPLICATE_API_TOKEN else None
    return VideoJobService(db, provider, VideoStorage(db))


def get_scene_generator(db: Session = Depends(get_db)) -> SceneGenerator:
    return build_scene_generator(db)


def get_continuation_generator(db: Session = Depends(get_db)) -> SceneGenerator:
    return build_scene_generator(db, require_index=False)


def get_video_job_service(db: Session = Depends(get_db)) -> VideoJobService:
    return build_video_job_service(db)


def get_video_storage(db: Session = Depends(get_db)) -> VideoStorage:
    return VideoStorage(db)
