# movie-scenes-backend/tests/conftest.py

import os
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db
import models  # noqa: F401
from dependencies import get_continuation_generator, get_scene_generator, get_video_job_service, get_video_storage
from main import app
from services import GenerationClient, RetrievalClient, SceneGenerator
from storage import VideoStorage
from video_jobs import VideoJobService


class FakeLLM:
    """Stands in for the OpenAI client; returns queued completions in order."""

    def __init__(self, completions=None):
        self.completions = list(completions or [])
        self.prompts = []
        self.temperatures = []
        self.embedded = []

    def embed(self, text):
        self.embedded.append(text)
        return [0.1, 0.2, 0.3, 0.4, 0.5, 0.6]

    def complete(self, prompt, temperature):
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        return self.completions.pop(0)


class FakeIndex:
    """Stands in for the Pinecone client."""

    def __init__(self, matches=None, diagnostics_fail=False):
        self.matches = matches or []
        self.diagnostics_fail = diagnostics_fail
        self.queries = []

    def list_indexes(self):
        if self.diagnostics_fail:
            raise RuntimeError("control plane unavailable")
        return ["phd-knowledge"]

    def describe_index_stats(self):
        if self.diagnostics_fail:
            raise RuntimeError("stats unavailable")
        return {"totalVectorCount": len(self.matches)}

    def query(self, vector, top_k, namespace, include_metadata=True):
        self.queries.append({"top_k": top_k, "namespace": namespace, "include_metadata": include_metadata})
        return list(self.matches)


class FakeVideoProvider:
    """Stands in for the Replicate client. Statuses are served in order, the last one repeats."""

    def __init__(self, statuses=None, prediction_id="pred-123", output="https://replicate.delivery/out.mp4",
                 error=None, create_error=None, download_error=None):
        self.statuses = list(statuses or ["starting"])
        self.prediction_id = prediction_id
        self.output = output
        self.error = error
        self.create_error = create_error
        self.download_error = download_error
        self.created = []
        self.status_calls = 0
        self.downloads = 0

    def create_prediction(self, prompt):
        if self.create_error:
            raise self.create_error
        self.created.append(prompt)
        return {"id": self.prediction_id, "status": "starting"}

    def get_prediction(self, prediction_id):
        self.status_calls += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return {"id": prediction_id, "status": status, "output": self.output, "error": self.error}

    def download(self, url):
        self.downloads += 1
        if self.download_error:
            raise self.download_error
        return b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


class CountingStorage(VideoStorage):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.uploads = []

    def upload(self, video_id, data, source, **kwargs):
        self.uploads.append((video_id, source))
        return super().upload(video_id, data, source, **kwargs)


@pytest.fixture
def db():
    """A fresh in-memory SQLite session per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def storage(db, tmp_path):
    return CountingStorage(db, root_dir=str(tmp_path / "videos"), base_url="http://testserver")


@pytest.fixture
def provider():
    return FakeVideoProvider()


@pytest.fixture
def jobs(db, provider, storage):
    return VideoJobService(db, provider, storage, sleep=lambda seconds: None)


def make_generator(db, completions, matches=None, diagnostics_fail=False):
    llm = FakeLLM(completions)
    index = FakeIndex(matches, diagnostics_fail=diagnostics_fail)
    generator = SceneGenerator(RetrievalClient(llm, index), GenerationClient(llm), db)
    return generator, llm, index


@pytest.fixture
def client(db, jobs, storage):
    """A TestClient wired to the test session and fake providers."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_video_job_service] = lambda: jobs
    app.dependency_overrides[get_video_storage] = lambda: storage

    yield TestClient(app)

    app.dependency_overrides.clear()


def use_generator(generator):
    """Routes the scene endpoints to a generator built from fakes."""
    app.dependency_overrides[get_scene_generator] = lambda: generator
    app.dependency_overrides[get_continuation_generator] = lambda: generator
