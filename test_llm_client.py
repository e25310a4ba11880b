from types import SimpleNamespace

import pytest
from google.genai import errors

from conftest import run
from llm_client import GeminiClient, ModelInvocationError


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def fake_sdk(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def sdk_response(text, finish_reason="STOP"):
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(finish_reason=finish_reason)],
        prompt_feedback=None,
    )


def test_returns_model_text():
    models = FakeModels(response=sdk_response('{"viabilityScore": {"overall": 70}}'))
    client = GeminiClient("key", model="gemini-2.5-flash", client=fake_sdk(models))

    assert run(client.generate("analyze this")) == '{"viabilityScore": {"overall": 70}}'
    call = models.calls[0]
    assert call["model"] == "gemini-2.5-flash"
    assert call["contents"] == "analyze this"
    assert call["config"].response_mime_type == "application/json"


def test_missing_api_key_fails_without_calling_sdk():
    client = GeminiClient(None)

    with pytest.raises(ModelInvocationError):
        run(client.generate("analyze this"))


def test_api_error_wrapped():
    error = errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    client = GeminiClient("key", client=fake_sdk(FakeModels(error=error)))

    with pytest.raises(ModelInvocationError) as exc:
        run(client.generate("analyze this"))
    assert isinstance(exc.value.__cause__, errors.APIError)


def test_empty_response_is_an_error():
    client = GeminiClient("key", client=fake_sdk(FakeModels(response=sdk_response(None, "SAFETY"))))

    with pytest.raises(ModelInvocationError) as exc:
        run(client.generate("analyze this"))
    assert "SAFETY" in str(exc.value)


def test_model_version_is_model_name():
    assert GeminiClient(None, model="gemini-2.5-pro").model_version == "gemini-2.5-pro"
