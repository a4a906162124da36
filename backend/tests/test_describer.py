import pytest
import requests

from worker.damage.describer import (
    DamageDescriber,
    DescriberError,
    DescriberImage,
    build_payload,
    build_system_prompt,
)


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeHttp:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _ok(text='{"bauteil": "Tür"}'):
    return FakeResponse(200, {"choices": [{"message": {"content": text}}]})


def _describer(http, sleeps, models=("vision-a", "vision-b"), max_retries=3):
    return DamageDescriber(
        api_url="http://describer.test/v1/chat/completions",
        api_key="secret",
        models=list(models),
        timeout=30,
        max_images=10,
        max_retries=max_retries,
        backoff_seconds=5.0,
        http=http,
        sleep=sleeps.append,
    )


IMAGES = [DescriberImage(b"\xff\xd8jpeg", "image/jpeg")]


def test_first_model_answers():
    http = FakeHttp([_ok()])
    sleeps = []
    result = _describer(http, sleeps).describe(IMAGES, rate=4.0)

    assert result.text == '{"bauteil": "Tür"}'
    assert result.model == "vision-a"
    assert result.attempts == 1
    assert sleeps == []

    call = http.calls[0]
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["timeout"] == 30
    assert call["json"]["model"] == "vision-a"
    user_content = call["json"]["messages"][1]["content"]
    assert user_content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_missing_model_falls_through_to_next():
    http = FakeHttp([FakeResponse(404, {"error": {"message": "model not found"}}), _ok()])
    sleeps = []
    result = _describer(http, sleeps).describe(IMAGES, rate=4.0)

    assert result.model == "vision-b"
    assert sleeps == []
    assert [call["json"]["model"] for call in http.calls] == ["vision-a", "vision-b"]


def test_not_found_message_without_404_falls_through():
    http = FakeHttp([FakeResponse(400, {"error": "The model does not exist"}), _ok()])
    result = _describer(http, []).describe(IMAGES, rate=4.0)
    assert result.model == "vision-b"


def test_quota_errors_back_off_linearly():
    quota = FakeResponse(429, {"error": {"message": "Rate limit reached"}})
    http = FakeHttp([quota, quota, _ok()])
    sleeps = []
    result = _describer(http, sleeps).describe(IMAGES, rate=4.0)

    assert result.model == "vision-a"
    assert result.attempts == 3
    assert sleeps == [5.0, 10.0]


def test_exhausted_retries_move_to_next_model():
    error = FakeResponse(500)
    http = FakeHttp([error, error, _ok()])
    sleeps = []
    result = _describer(http, sleeps, max_retries=2).describe(IMAGES, rate=4.0)

    assert result.model == "vision-b"
    assert sleeps == [5.0]


def test_all_models_failing_raises():
    error = FakeResponse(503, {"error": {"message": "overloaded"}})
    http = FakeHttp([error] * 4)
    with pytest.raises(DescriberError, match="All describer models failed"):
        _describer(http, [], max_retries=2).describe(IMAGES, rate=4.0)


def test_connection_error_raises_describer_error():
    http = FakeHttp([requests.exceptions.ConnectionError("refused")])
    with pytest.raises(DescriberError, match="connection error"):
        _describer(http, []).describe(IMAGES, rate=4.0)


def test_invalid_success_body_raises():
    http = FakeHttp([FakeResponse(200, {"unexpected": True})])
    with pytest.raises(DescriberError, match="Invalid response format"):
        _describer(http, []).describe(IMAGES, rate=4.0)


def test_no_images_raises():
    with pytest.raises(DescriberError):
        _describer(FakeHttp([]), []).describe([], rate=4.0)


def test_images_are_capped():
    http = FakeHttp([_ok()])
    images = [DescriberImage(b"img") for _ in range(12)]
    _describer(http, []).describe(images, rate=4.0)

    content = http.calls[0]["json"]["messages"][1]["content"]
    assert len([part for part in content if part["type"] == "image_url"]) == 10


def test_prompt_carries_exchange_rate():
    prompt = build_system_prompt(3.95)
    assert "1 EUR = 3.95 AED" in prompt
    assert '"umrechnungskurs": 3.95' in prompt
    assert '"bauteil": "string"' in prompt

    payload = build_payload("vision-a", IMAGES, 4.0)
    assert payload["messages"][0]["role"] == "system"
    assert payload["temperature"] == 0
