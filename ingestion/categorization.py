"""Response contract for the article categorizer."""
import json
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from shared.errors import SchemaError


class CategorizationItem(BaseModel):
    """Category assigned to one article."""
    article_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)

    class Config:
        extra = "forbid"


class CategorizationResponse(BaseModel):
    """Top-level categorizer payload."""
    results: List[CategorizationItem]

    class Config:
        extra = "forbid"


def parse_categorization_response(
    payload: Union[str, bytes, dict],
    expected_ids: Optional[Iterable[str]] = None
) -> CategorizationResponse:
    """
    Validate a categorizer response.

    The payload must be exactly ``{"results": [{"article_id", "category",
    "confidence"}]}``. When ``expected_ids`` is given, every result must refer
    to one of those articles.

    Raises:
        SchemaError: the payload is not valid JSON or does not match the shape
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Categorizer response is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise SchemaError(f"Categorizer response must be an object, got {type(payload).__name__}")

    try:
        response = CategorizationResponse.model_validate(payload)
    except ValidationError as e:
        raise SchemaError(f"Categorizer response does not match the contract: {e}")

    if expected_ids is not None:
        allowed = set(expected_ids)
        unknown = [item.article_id for item in response.results if item.article_id not in allowed]
        if unknown:
            raise SchemaError(f"Categorizer returned unknown article IDs: {', '.join(unknown)}")

    return response
