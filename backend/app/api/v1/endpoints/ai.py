from typing import Annotated, NoReturn, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import CurrentUser
from app.core.config import settings
from app.schemas.ai import GeneratedTaskRead, TaskGenerationRequest, TaskGenerationResponse
from app.services import ai_generation

router = APIRouter()


def get_ai_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for outgoing AI requests. ``None`` uses the network."""
    return None


AITransportDep = Annotated[Optional[httpx.AsyncBaseTransport], Depends(get_ai_transport)]


def _raise_for(exc: ai_generation.AIGenerationError) -> NoReturn:
    if isinstance(exc, ai_generation.AIPromptError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, ai_generation.AIQuotaExceededError):
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc)) from exc
    if isinstance(exc, ai_generation.AIAuthenticationError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    if isinstance(exc, ai_generation.AIRateLimitError):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc
    if isinstance(exc, ai_generation.AIUpstreamError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


@router.post("/generate-tasks", response_model=TaskGenerationResponse)
async def generate_tasks(
    request_in: TaskGenerationRequest,
    current_user: CurrentUser,
    transport: AITransportDep,
) -> TaskGenerationResponse:
    try:
        tasks = await ai_generation.generate_tasks(
            request_in.prompt,
            api_key=settings.AI_API_KEY,
            base_url=settings.AI_BASE_URL,
            model=settings.AI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
            transport=transport,
        )
    except ai_generation.AIGenerationError as exc:
        _raise_for(exc)
    return TaskGenerationResponse(tasks=[GeneratedTaskRead.model_validate(task) for task in tasks])
