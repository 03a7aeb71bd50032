import pytest
from fastapi.testclient import TestClient

import main


@pytest.fixture
def client():
    return TestClient(main.app)


def test_root(client):
    assert client.get("/").json() == {"message": "Reading Translator API is running."}


def test_process(client, monkeypatch, make_pipeline, reply):
    pipeline, _ = make_pipeline(reply("東京(とうきょう)に行(い)きます", "I am going to Tokyo"))
    monkeypatch.setattr(main, "pipeline", pipeline)

    body = client.post("/process/", json={"text": "東京に行きます", "target_language": "en"}).json()

    assert body["annotated_text"] == "東京(とうきょう)に行(い)きます"
    assert body["language_code"] == "ja"
    assert body["correction_status"] == "not-needed"
    assert body["validation"]["accuracy_score"] == 100


def test_process_returns_error_kind(client, monkeypatch, make_pipeline):
    pipeline, provider = make_pipeline()
    monkeypatch.setattr(main, "pipeline", pipeline)

    body = client.post("/process/", json={"text": "Hello world", "source_language": "ko"}).json()

    assert body["kind"] == "language-mismatch"
    assert "ko" in body["error"]
    assert provider.requests == []


def test_unexpected_failure(client, monkeypatch, make_pipeline):
    pipeline, _ = make_pipeline()

    async def boom(*args, **kwargs):
        raise RuntimeError("boom")

    pipeline.process = boom
    monkeypatch.setattr(main, "pipeline", pipeline)

    body = client.post("/process/", json={"text": "東京"}).json()

    assert body == {"error": "An error occurred: boom", "kind": "internal-error"}
