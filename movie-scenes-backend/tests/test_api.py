# movie-scenes-backend/tests/test_api.py

import pytest

import config
from conftest import make_generator, use_generator
from dependencies import build_scene_generator, get_video_job_service
from errors import ConfigurationError
from main import app
from models import Scene

SIX_SCENES = "\n".join(f"{n}. A beat of the story, part {n}." for n in range(1, 7))


def test_root_reports_running(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["status"]


def test_generate_movie_scenes(client, db):
    generator, _, _ = make_generator(db, completions=[SIX_SCENES])
    use_generator(generator)

    response = client.post("/generateMovieScenes", json={"movieIdea": "a lighthouse keeper finds a bottle"})

    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["totalScenes"] == 6
    assert body["metadata"]["movieIdea"] == "a lighthouse keeper finds a bottle"
    assert "generatedAt" in body["metadata"]
    assert body["scenes"][0] == {
        "id": 1, "title": "Scene 1", "text": "A beat of the story, part 1.",
        "duration": 15, "type": "scene", "status": "pending",
    }


def test_generate_movie_scenes_requires_idea(client, db):
    generator, _, _ = make_generator(db, completions=[])
    use_generator(generator)

    response = client.post("/generateMovieScenes", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Movie idea is required"


def test_missing_api_keys_is_a_configuration_error(client, monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", None)
    monkeypatch.setattr(config, "PINECONE_API_KEY", None)

    response = client.post("/generateMovieScenes", json={"movieIdea": "anything"})

    assert response.status_code == 500
    assert response.json()["error"] == "Server configuration error - Missing API keys"


def test_continuation_only_needs_the_language_model_key(db, monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(config, "PINECONE_API_KEY", None)

    generator = build_scene_generator(db, require_index=False)

    assert generator.retrieval is None
    with pytest.raises(ConfigurationError):
        build_scene_generator(db)


def test_status_lookup_does_not_need_provider_token(client, monkeypatch):
    monkeypatch.setattr(config, "REPLICATE_API_TOKEN", None)
    app.dependency_overrides.pop(get_video_job_service)

    unknown = client.post("/getGenerationStatus", json={"jobId": "missing"})
    created = client.post("/generateSingleScene", json={"scene": {"text": "A storm hits"}, "userId": "user-1"})

    assert unknown.status_code == 404
    assert created.status_code == 500
    assert created.json()["error"] == "Server configuration error - Missing video provider API token"


def test_generate_additional_scenes(client, db):
    blocks = "\n".join(f"SCENE_START\nNumber: {n}\nDescription: Beat {n}.\nSCENE_END" for n in (3, 4))
    generator, _, _ = make_generator(db, completions=["analysis brief", blocks])
    use_generator(generator)

    response = client.post("/generateAdditionalScenes", json={
        "movieId": "movie-1",
        "existingScenes": [{"id": 1, "text": "Opening"}, {"id": 2, "text": "Middle"}],
        "continuationIdea": "a storm arrives",
        "numNewScenes": 2,
    })

    assert response.status_code == 200
    body = response.json()
    assert [scene["id"] for scene in body["scenes"]] == [3, 4]
    assert all(scene["movieId"] == "movie-1" and scene["documentId"] for scene in body["scenes"])
    assert body["metadata"]["totalNewScenes"] == 2
    assert body["metadata"]["movieId"] == "movie-1"
    assert db.query(Scene).count() == 2


def test_generate_additional_scenes_validation(client, db):
    generator, _, _ = make_generator(db, completions=[])
    use_generator(generator)

    response = client.post("/generateAdditionalScenes", json={"movieId": "movie-1", "numNewScenes": 2})

    assert response.status_code == 400


def test_generate_additional_scenes_reports_parse_failure(client, db):
    bad = "SCENE_START\nNumber: 3\nSCENE_END"
    generator, _, _ = make_generator(db, completions=["analysis brief", bad])
    use_generator(generator)

    response = client.post("/generateAdditionalScenes", json={
        "movieId": "movie-1",
        "existingScenes": [{"id": 1, "text": "Opening"}, {"id": 2, "text": "Middle"}],
        "continuationIdea": "a storm arrives",
        "numNewScenes": 1,
    })

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate additional scenes"
    assert "Failed to parse generated scenes" in response.json()["details"]
    assert db.query(Scene).count() == 0


def test_single_scene_job_and_status_flow(client, db, provider):
    provider.statuses = ["processing", "succeeded"]

    created = client.post("/generateSingleScene", json={"scene": {"text": "A storm hits"}, "userId": "user-1"})

    assert created.status_code == 200
    assert created.json() == {"success": True, "jobId": "pred-123", "status": "analyzing", "progress": 0.1}

    generating = client.post("/getGenerationStatus", json={"jobId": "pred-123"})
    assert generating.json()["status"] == "generating"

    completed = client.post("/getGenerationStatus", json={"jobId": "pred-123"})
    body = completed.json()
    assert completed.status_code == 200
    assert body["status"] == "completed"
    assert body["progress"] == 1.0

    video = client.get(f"/videos/{body['videoId']}")
    assert video.status_code == 200
    assert video.headers["content-type"] == "video/mp4"


def test_single_scene_requires_user(client):
    response = client.post("/generateSingleScene", json={"scene": {"text": "A storm hits"}})
    assert response.status_code == 400


def test_status_of_unknown_job_is_404(client):
    response = client.post("/getGenerationStatus", json={"jobId": "missing"})
    assert response.status_code == 404


def test_failed_job_status_is_500_with_failed_body(client, provider):
    provider.statuses = ["canceled"]
    client.post("/generateSingleScene", json={"scene": {"text": "A storm hits"}, "userId": "user-1"})

    response = client.post("/getGenerationStatus", json={"jobId": "pred-123"})

    assert response.status_code == 500
    assert response.json()["status"] == "failed"
    assert response.json()["error"] == "Video generation was canceled"


def test_sync_scene_video(client, provider):
    provider.statuses = ["succeeded"]

    response = client.post("/generateSceneVideo", json={"sceneText": "A storm hits"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True, "videoUrl": "https://replicate.delivery/out.mp4", "predictionId": "pred-123",
    }


def test_upload_scene_video_marks_scene_completed(client, db):
    scene = Scene(movie_id="movie-1", scene_number=1, text="Opening")
    db.add(scene)
    db.commit()

    response = client.post(
        "/uploadSceneVideo",
        data={"movieId": "movie-1", "sceneId": scene.id, "userId": "user-1"},
        files={"file": ("clip.mp4", b"fake video bytes", "video/mp4")},
    )

    assert response.status_code == 200
    db.refresh(scene)
    assert scene.status == "completed"
    assert scene.video_type == "upload"
    assert scene.video_url == response.json()["videoUrl"]


def test_stitch_movie_without_videos_is_400(client):
    response = client.post("/stitchMovie", json={"movieId": "movie-1"})
    assert response.status_code == 400


def test_unknown_video_is_404(client):
    assert client.get("/videos/missing").status_code == 404
