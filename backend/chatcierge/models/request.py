from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class QuestionRequest(BaseModel):
    """A free-text question about hotels"""
    question: str


class RecommendationRequest(BaseModel):
    """Question plus the hotels to write recommendations for.

    `hotelUUIDs` keeps the order the hotels are displayed in; slot indices of
    the response stream follow that order.
    """
    question: str
    hotel_uuids: Optional[List[str]] = Field(default=None, alias="hotelUUIDs")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "question": "Which hotel is best for a romantic weekend?",
                    "hotelUUIDs": [
                        "0c3b4bd2-1f0e-4a8c-9a53-5f0d7a3f0e11",
                        "9a1d1d7e-4a64-4e4b-bc0a-2b4f3f2d6c90",
                    ],
                }
            ]
        },
    )
