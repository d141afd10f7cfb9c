"""
Recommendation prompts.

A prompt consists of some direction to the completion model, the customer's
question and a context, which is name + description of one hotel.
"""

from typing import List

from chatcierge.models.response import Hotel
from chatcierge.utils.normalize import one_line, strip_indent


# =============================================================================
# PROMPT TEMPLATE
# =============================================================================

RECOMMENDATION_PROMPT = """
    You are a friendly and professional travel agent trying to convince a customer to stay at the hotel given in the context.
    Write a recommendation for the hotel in the context, for the customer wanting to know \"\"\"{question}\"\"\".
    The recommendation must be exactly 3 sentences long. The tone should be fun, exciting and tailored to the customer's question.
    Do not use the term 'perfect' in the first sentence of the recommendation.

     Context
     -------
     {name}.{description}
"""


def build_prompt(question: str, hotel: Hotel) -> str:
    prompt = RECOMMENDATION_PROMPT.format(
        question=question, name=hotel.name, description=hotel.description
    )
    return one_line(strip_indent(prompt))


def build_prompts(question: str, hotels: List[Hotel]) -> List[str]:
    """One prompt per hotel, in hotel order (prompt i is stream slot i)."""
    return [build_prompt(question, hotel) for hotel in hotels]
