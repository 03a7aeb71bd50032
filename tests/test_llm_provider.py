import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from reading_translator.models.errors import ProviderError, ProviderOverloaded
from reading_translator.services.llm_provider import OpenAIProvider, ProviderRequest


class FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def fake_client(outcome):
    completions = FakeCompletions(outcome)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def status_error(code):
    request = httpx.Request("POST", "https://api.example.test/v1/chat/completions")
    return openai.APIStatusError("boom", response=httpx.Response(code, request=request), body=None)


def test_returns_stripped_content():
    client, completions = fake_client(completion('  {"translatedText": "hi"}\n'))
    provider = OpenAIProvider(client=client, model="test-model")

    text = asyncio.run(provider.complete(ProviderRequest("prompt", system_prompt="system")))

    assert text == '{"translatedText": "hi"}'
    assert completions.kwargs["model"] == "test-model"
    assert completions.kwargs["temperature"] == 0.0
    assert [m["role"] for m in completions.kwargs["messages"]] == ["system", "user"]


@pytest.mark.parametrize("code", [429, 503, 529])
def test_overload_codes(code):
    client, _ = fake_client(status_error(code))
    with pytest.raises(ProviderOverloaded) as excinfo:
        asyncio.run(OpenAIProvider(client=client).complete(ProviderRequest("p")))
    assert excinfo.value.status_code == code


def test_other_status_is_not_retryable():
    client, _ = fake_client(status_error(401))
    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(OpenAIProvider(client=client).complete(ProviderRequest("p")))
    assert not isinstance(excinfo.value, ProviderOverloaded)
    assert excinfo.value.status_code == 401


def test_overload_codes_are_configurable():
    client, _ = fake_client(status_error(500))
    provider = OpenAIProvider(client=client, overload_status_codes=[500])
    with pytest.raises(ProviderOverloaded):
        asyncio.run(provider.complete(ProviderRequest("p")))


def test_missing_client(monkeypatch, pinned_settings):
    monkeypatch.setattr(pinned_settings, "openai_api_key", "")
    with pytest.raises(ProviderError):
        asyncio.run(OpenAIProvider().complete(ProviderRequest("p")))
