"""
Unit tests for AI task generation.

Tests app.services.ai_generation against a mocked chat completions API:
- Request shape sent to the provider
- Code fence stripping and task cleanup
- Provider error translation (quota, bad key, rate limit, outage)
- Configuration and prompt checks
"""

import json

import httpx
import pytest

from app.services import ai_generation

BASE_URL = "https://ai.test/v1"


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def mock_transport(status_code=200, body=None, captured=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


async def generate(transport, prompt="Plan the launch", api_key="test-key"):
    return await ai_generation.generate_tasks(
        prompt,
        api_key=api_key,
        base_url=BASE_URL,
        model="test-model",
        transport=transport,
    )


@pytest.mark.unit
async def test_generate_tasks_sends_chat_completion_request():
    captured = []
    body = completion('[{"title": "Draft plan", "description": "Outline it.", "dueDate": "2026-11-01"}]')

    tasks = await generate(mock_transport(body=body, captured=captured), prompt="  Plan the launch  ")

    assert [(task.title, task.description, task.due_date) for task in tasks] == [
        ("Draft plan", "Outline it.", "2026-11-01")
    ]
    request = captured[0]
    assert str(request.url) == f"{BASE_URL}/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    payload = json.loads(request.content)
    assert payload["model"] == "test-model"
    assert payload["temperature"] == 0.7
    assert payload["messages"][0] == {"role": "system", "content": ai_generation.SYSTEM_PROMPT}
    assert payload["messages"][1] == {"role": "user", "content": "Plan the launch"}


@pytest.mark.unit
async def test_generate_tasks_strips_fences_and_cleans_entries():
    content = """```json
[
  {"title": "  Book venue ", "description": " Call three venues. ", "dueDate": "2026-12-01"},
  {"title": "", "description": "No title", "dueDate": "2026-12-02"},
  {"description": "Missing title"},
  {"title": "Send invites", "description": 42, "dueDate": "next week"},
  "not an object"
]
```"""

    tasks = await generate(mock_transport(body=completion(content)))

    assert [(task.title, task.description, task.due_date) for task in tasks] == [
        ("Book venue", "Call three venues.", "2026-12-01"),
        ("Send invites", "", ""),
    ]


@pytest.mark.unit
def test_parse_generated_tasks_accepts_bare_fence():
    tasks = ai_generation.parse_generated_tasks('```\n[{"title": "Ship"}]\n```')

    assert [(task.title, task.description, task.due_date) for task in tasks] == [("Ship", "", "")]


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [None, "   ", "Sure! Here are your tasks.", "[]", '{"title": "Not a list"}', '[{"title": "  "}]'],
)
def test_parse_generated_tasks_rejects_unusable_replies(content):
    with pytest.raises(ai_generation.AIResponseError):
        ai_generation.parse_generated_tasks(content)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("status_code", "body", "error"),
    [
        (429, {"error": {"code": "insufficient_quota", "message": "Quota"}}, ai_generation.AIQuotaExceededError),
        (401, {"error": {"code": "invalid_api_key", "message": "Bad key"}}, ai_generation.AIAuthenticationError),
        (429, {"error": {"code": "rate_limit_exceeded", "message": "Slow down"}}, ai_generation.AIRateLimitError),
        (503, {"error": {"message": "Unavailable"}}, ai_generation.AIUpstreamError),
    ],
)
async def test_generate_tasks_translates_provider_errors(status_code, body, error):
    with pytest.raises(error):
        await generate(mock_transport(status_code=status_code, body=body))


@pytest.mark.unit
async def test_generate_tasks_wraps_network_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ai_generation.AIUpstreamError):
        await generate(httpx.MockTransport(handler))


@pytest.mark.unit
async def test_generate_tasks_rejects_reply_without_choices():
    with pytest.raises(ai_generation.AIResponseError):
        await generate(mock_transport(body={"choices": []}))


@pytest.mark.unit
async def test_generate_tasks_requires_api_key():
    captured = []

    with pytest.raises(ai_generation.AIConfigurationError):
        await generate(mock_transport(body=completion("[]"), captured=captured), api_key=None)

    assert captured == []


@pytest.mark.unit
async def test_generate_tasks_requires_prompt():
    captured = []

    with pytest.raises(ai_generation.AIPromptError):
        await generate(mock_transport(body=completion("[]"), captured=captured), prompt="   ")

    assert captured == []
