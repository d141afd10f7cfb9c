from fastapi import APIRouter, Depends

from chatcierge.models.request import QuestionRequest
from chatcierge.models.response import HotelsResponse
from chatcierge.providers.registry import ProviderRegistry, get_registry
from chatcierge.services.hotels import get_hotels_for_question

router = APIRouter()


@router.post("/hotels", response_model=HotelsResponse, response_model_by_alias=True)
async def hotels(
    request: QuestionRequest,
    registry: ProviderRegistry = Depends(get_registry),
):
    """Return the most relevant hotels for a question (empty list on provider errors)."""
    if not request.question.strip():
        return HotelsResponse(hotels=[])
    return HotelsResponse(hotels=await get_hotels_for_question(registry, request.question))
