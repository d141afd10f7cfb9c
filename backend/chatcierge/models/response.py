from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class Hotel(BaseModel):
    """Hotel projection used for prompts and for the hotels listing"""

    id: int
    uuid: str
    name: str
    description: str
    city: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)


class HotelsResponse(BaseModel):
    success: bool = True
    hotels: List[Hotel]


class HealthResponse(BaseModel):
    status: str
    openai: bool
    supabase: bool
