"""
AI task generation.

Sends a free-form planning prompt to an OpenAI-compatible chat completions
API and turns the reply into a list of draft tasks. Nothing is persisted
here: callers review the drafts and create tasks through the normal task
endpoints.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a project management assistant. The user describes tasks to create, with deadlines.

Reply ONLY with a valid JSON array (no markdown, no commentary).

Each object must have exactly these 3 fields:
- "title": short, clear title (max 80 characters)
- "description": concise description (1-2 sentences)
- "dueDate": due date in YYYY-MM-DD format

Generate between 2 and 8 tasks depending on complexity.

Example:
[{"title":"Create the mockup","description":"Design the main screens in Figma.","dueDate":"2026-03-15"}]"""

TEMPERATURE = 0.7

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$")
_DUE_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class AIGenerationError(Exception):
    """Base error for task generation failures."""


class AIConfigurationError(AIGenerationError):
    pass


class AIPromptError(AIGenerationError):
    pass


class AIQuotaExceededError(AIGenerationError):
    pass


class AIAuthenticationError(AIGenerationError):
    pass


class AIRateLimitError(AIGenerationError):
    pass


class AIUpstreamError(AIGenerationError):
    pass


class AIResponseError(AIGenerationError):
    """The provider answered, but not with usable tasks."""


@dataclass
class GeneratedTask:
    title: str
    description: str
    due_date: str


def _strip_code_fences(content: str) -> str:
    cleaned = _FENCE_OPEN.sub("", content.strip())
    return _FENCE_CLOSE.sub("", cleaned).strip()


def _clean_task(item: Any) -> GeneratedTask | None:
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    description = item.get("description")
    due_date = item.get("dueDate")
    return GeneratedTask(
        title=title.strip(),
        description=description.strip() if isinstance(description, str) else "",
        due_date=due_date if isinstance(due_date, str) and _DUE_DATE.match(due_date) else "",
    )


def parse_generated_tasks(content: str | None) -> list[GeneratedTask]:
    """Parse the model reply into draft tasks.

    The reply must be a JSON array, optionally wrapped in a markdown code
    fence. Entries without a title are dropped and due dates that are not
    ``YYYY-MM-DD`` become empty strings.
    """
    if not content or not content.strip():
        raise AIResponseError("The AI returned an empty response")

    try:
        items = json.loads(_strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise AIResponseError("Could not parse the AI response. Try a clearer prompt.") from exc

    if not isinstance(items, list) or not items:
        raise AIResponseError("No tasks were generated. Rephrase your request.")

    tasks = [task for task in (_clean_task(item) for item in items) if task is not None]
    if not tasks:
        raise AIResponseError("The AI returned no valid tasks. Try again.")
    return tasks


def _error_code(response: httpx.Response) -> str | None:
    try:
        error = response.json().get("error")
    except (ValueError, AttributeError):
        return None
    if isinstance(error, dict):
        return error.get("code") or error.get("type")
    return None


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code == 200:
        return
    if _error_code(response) == "insufficient_quota":
        raise AIQuotaExceededError("The AI provider quota is exhausted")
    if response.status_code == 401:
        raise AIAuthenticationError("Invalid AI API key")
    if response.status_code == 429:
        raise AIRateLimitError("Too many requests. Try again in a few seconds.")
    raise AIUpstreamError(f"AI provider error: status {response.status_code}")


async def generate_tasks(
    prompt: str,
    *,
    api_key: str | None,
    base_url: str,
    model: str,
    timeout: float = 60.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[GeneratedTask]:
    """Ask the configured model for draft tasks matching ``prompt``."""
    if not api_key:
        raise AIConfigurationError("AI API key is not configured")
    if not prompt or not prompt.strip():
        raise AIPromptError("A prompt is required")

    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt.strip()},
        ],
        "temperature": TEMPERATURE,
    }

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                f"{base_url.rstrip('/')}/chat/completions",
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
    except httpx.TimeoutException as exc:
        logger.warning("AI task generation timed out")
        raise AIUpstreamError("AI request timed out") from exc
    except httpx.HTTPError as exc:
        logger.warning("AI task generation request failed: %s", exc)
        raise AIUpstreamError("AI request failed") from exc

    _raise_for_status(response)

    try:
        content = response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise AIResponseError("The AI returned an empty response") from exc

    tasks = parse_generated_tasks(content)
    logger.info("Generated %d draft tasks with model %s", len(tasks), model)
    return tasks
