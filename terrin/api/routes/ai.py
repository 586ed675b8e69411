from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from terrin.api.deps import get_current_user
from terrin.db.models.user import User
from terrin.integrations.ai_client import AIClient

router = APIRouter(prefix="/ai", tags=["AI"])


# ---------- Schemas ----------


class _CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ChatCompletionRequest(_CamelModel):
    user_prompt: str = Field(min_length=1)
    system_prompt: str | None = None
    model: str | None = None
    max_tokens: int | None = Field(None, ge=1, le=16_000)
    temperature: float | None = Field(None, ge=0, le=2)


class ProjectScopeRequest(_CamelModel):
    project_description: str = Field(min_length=1)


class ChangeOrderRequest(_CamelModel):
    original_scope: str = Field(min_length=1)
    requested_change: str = Field(min_length=1)


class CostEstimateRequest(_CamelModel):
    project_description: str = Field(min_length=1)
    location: str | None = None


class TokenUsage(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class CompletionData(BaseModel):
    content: str
    usage: TokenUsage
    model: str


class AIResponse(BaseModel):
    success: bool = True
    data: CompletionData


# ---------- Endpoints ----------


@router.post("", response_model=AIResponse)
async def chat_completion(
    body: ChatCompletionRequest,
    current_user: User = Depends(get_current_user),
):
    result = await AIClient().chat_completion(
        body.user_prompt,
        system_prompt=body.system_prompt,
        model=body.model,
        max_tokens=body.max_tokens,
        temperature=body.temperature,
    )
    return _wrap(result)


@router.post("/project-scope", response_model=AIResponse)
async def project_scope(
    body: ProjectScopeRequest,
    current_user: User = Depends(get_current_user),
):
    return _wrap(await AIClient().generate_project_scope(body.project_description))


@router.post("/change-order", response_model=AIResponse)
async def change_order(
    body: ChangeOrderRequest,
    current_user: User = Depends(get_current_user),
):
    return _wrap(await AIClient().analyze_change_order(body.original_scope, body.requested_change))


@router.post("/cost-estimate", response_model=AIResponse)
async def cost_estimate(
    body: CostEstimateRequest,
    current_user: User = Depends(get_current_user),
):
    return _wrap(
        await AIClient().generate_cost_estimate(body.project_description, body.location)
    )


def _wrap(result: dict[str, Any]) -> AIResponse:
    return AIResponse(success=True, data=CompletionData(**result))
