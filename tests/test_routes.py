"""HTTP surface of the voice pipeline, with every external service faked."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import (
    INPUT_BUCKET,
    FakeLlmClient,
    FakeSpeechService,
    FakeTranscribeService,
    InMemoryObjectStore,
    make_pipeline,
)
from mindspace.config.settings import settings
from mindspace.controllers.dependencies import (
    get_local_audio_store,
    get_object_store,
    get_voice_pipeline,
)
from mindspace.main import app
from mindspace.services import JobState, SpeechServiceError


@pytest.fixture()
def services(local_audio, transcribe_config, monkeypatch: pytest.MonkeyPatch):
    """Route the app's dependencies to in-memory fakes."""

    monkeypatch.setattr(settings.pipeline, "upload_settle_seconds", 0.0)
    monkeypatch.setattr(settings.s3, "input_bucket", INPUT_BUCKET)

    store = InMemoryObjectStore()
    fakes = {
        "store": store,
        "transcribe": FakeTranscribeService(store, segments=["I've been feeling lonely."]),
        "llm": FakeLlmClient("I'm glad you reached out."),
        "speech": FakeSpeechService(),
    }

    def _pipeline():
        return make_pipeline(
            store,
            fakes["transcribe"],
            fakes["llm"],
            fakes["speech"],
            local_audio,
            transcribe_config,
        )

    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_local_audio_store] = lambda: local_audio
    app.dependency_overrides[get_voice_pipeline] = _pipeline

    yield fakes

    app.dependency_overrides.clear()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def test_upload_runs_the_full_pipeline(client: TestClient, services) -> None:
    response = client.post(
        "/upload-to-s3",
        files={"audio": ("clip.mp3", b"ID3-fake-recording", "audio/mpeg")},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["fileName"].startswith("recording-")
    assert payload["transcribedText"] == "I've been feeling lonely."
    assert payload["aiResponse"] == "I'm glad you reached out."
    assert payload["audioFile"] == f"aud_op/{payload['runId']}.mp3"
    assert payload["audioUrl"].startswith("s3://")
    assert services["store"].objects[(INPUT_BUCKET, payload["fileName"])] == (
        b"ID3-fake-recording",
        "audio/mp3",
    )


def test_upload_without_file_is_rejected(client: TestClient, services) -> None:
    response = client.post("/upload-to-s3")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No audio file received"}


def test_upload_with_empty_file_is_rejected(client: TestClient, services) -> None:
    response = client.post("/upload-to-s3", files={"audio": ("clip.mp3", b"", "audio/mpeg")})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_upload_storage_failure_is_500(client: TestClient, services) -> None:
    services["store"].fail_puts_to.add(INPUT_BUCKET)

    response = client.post(
        "/upload-to-s3",
        files={"audio": ("clip.mp3", b"ID3", "audio/mpeg")},
    )

    assert response.status_code == 500
    assert response.json()["message"].startswith("Upload failed")


def test_pipeline_failure_reports_stage(client: TestClient, services) -> None:
    services["transcribe"].states = [JobState.FAILED]

    response = client.post(
        "/upload-to-s3",
        files={"audio": ("clip.mp3", b"ID3", "audio/mpeg")},
    )

    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert payload["stage"] == "transcription"
    assert payload["fileName"].startswith("recording-")
    assert "AI pipeline failed" in payload["message"]


def test_process_text(client: TestClient, services) -> None:
    response = client.post("/process-text", json={"text": "I can't focus today"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["inputText"] == "I can't focus today"
    assert payload["aiResponse"] == "I'm glad you reached out."
    assert payload["audioFile"].startswith("aud_op/")
    assert services["transcribe"].submitted == []


def test_process_text_requires_text(client: TestClient, services) -> None:
    response = client.post("/process-text", json={})

    assert response.status_code == 400
    assert response.json()["message"] == "Text input is required"


def test_process_text_synthesis_failure(client: TestClient, services) -> None:
    services["speech"].error = SpeechServiceError("Polly returned an empty audio stream.")

    response = client.post("/process-text", json={"text": "hello"})

    assert response.status_code == 500
    payload = response.json()
    assert payload["stage"] == "synthesis"
    assert payload["message"] == "AI processing succeeded but speech synthesis failed"
    assert "empty audio stream" in payload["error"]


def test_delete_audio(client: TestClient, services, local_audio) -> None:
    local_audio.write_current(b"audio")

    response = client.post("/delete-audio", json={})
    assert response.json() == {"success": True, "message": "Audio file deleted successfully"}

    response = client.post("/delete-audio", json={"filename": "current_audio.mp3"})
    assert response.json() == {"success": False, "message": "Audio file not found"}


def test_delete_audio_without_body(client: TestClient, services, local_audio) -> None:
    local_audio.write_current(b"audio")

    response = client.post("/delete-audio")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_pipeline_status(client: TestClient) -> None:
    response = client.get("/pipeline-status")

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert [stage["name"] for stage in payload["stages"]] == [
        "transcription",
        "generation",
        "synthesis",
    ]
    assert payload["endpoints"]["upload"].startswith("POST /upload-to-s3")


def test_metrics_exposes_pipeline_counters(client: TestClient, services) -> None:
    client.post("/process-text", json={"text": "hello"})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "voice_pipeline_runs_total" in response.text
