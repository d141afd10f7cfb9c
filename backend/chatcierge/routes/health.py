import asyncio

from fastapi import APIRouter, Depends

from chatcierge.models.response import HealthResponse
from chatcierge.providers.registry import ProviderRegistry, get_registry

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(registry: ProviderRegistry = Depends(get_registry)):
    """Health check endpoint: pings OpenAI and Supabase"""
    openai_ok, supabase_ok = await asyncio.gather(
        registry.openai.ping(), registry.supabase.ping()
    )
    return HealthResponse(
        status="healthy" if openai_ok and supabase_ok else "degraded",
        openai=openai_ok,
        supabase=supabase_ok,
    )
