import json

import pytest

from reading_translator.services.reading_pipeline import ReadingPipeline
from reading_translator.settings import settings


class FakeProvider:
    """Replays scripted replies in order; an exception in the script is raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        if not self.replies:
            raise AssertionError("unexpected provider call")
        item = self.replies.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(float(delay))


def make_reply(annotated=None, translated="", key="readingsText"):
    payload = {"translatedText": translated}
    if annotated is not None:
        payload[key] = annotated
    return json.dumps(payload, ensure_ascii=False)


@pytest.fixture(autouse=True)
def pinned_settings(monkeypatch):
    monkeypatch.setattr(settings, "provider_max_attempts", 4)
    monkeypatch.setattr(settings, "provider_initial_delay", 1.0)
    monkeypatch.setattr(settings, "provider_max_delay", 30.0)
    monkeypatch.setattr(settings, "provider_retry_budget", 8)
    monkeypatch.setattr(settings, "correction_budget", 1)
    monkeypatch.setattr(settings, "correction_rounds", 1)
    monkeypatch.setattr(settings, "correction_score_ceiling", 100)
    monkeypatch.setattr(settings, "improvement_margin", 0)
    monkeypatch.setattr(settings, "usage_log_path", None)
    monkeypatch.setattr(settings, "max_concurrency", 5)
    return settings


@pytest.fixture
def reply():
    return make_reply


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_pipeline(recording_sleep):
    def _make(*replies, **kwargs):
        provider = FakeProvider(*replies)
        pipeline = ReadingPipeline(provider=provider, sleep=recording_sleep, **kwargs)
        return pipeline, provider

    return _make


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
