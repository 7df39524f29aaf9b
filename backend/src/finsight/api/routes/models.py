"""Model catalogue and API key validation."""

from fastapi import APIRouter, Request

from finsight.api.ratelimit import RATE_LIMIT_KEYS, limiter
from finsight.api.schemas import ModelResponse, ValidateKeyRequest, ValidateKeyResponse
from finsight.infrastructure.ai.key_validation import validate_api_key
from finsight.infrastructure.ai.models import MODELS

router = APIRouter(tags=["Models"])


@router.get("/models", response_model=list[ModelResponse])
async def list_models() -> list[ModelResponse]:
    return [
        ModelResponse(
            id=model.id,
            label=model.label,
            api_identifier=model.api_identifier,
            description=model.description,
            provider=model.provider,
        )
        for model in MODELS
    ]


@router.post("/keys/validate", response_model=ValidateKeyResponse)
@limiter.limit(RATE_LIMIT_KEYS)
async def validate_key(request: Request, body: ValidateKeyRequest) -> ValidateKeyResponse:
    """Check a provider key with a minimal vendor call. The key is never stored."""
    result = await validate_api_key(body.provider, body.api_key)
    return ValidateKeyResponse(is_valid=result.is_valid, error=result.error)
