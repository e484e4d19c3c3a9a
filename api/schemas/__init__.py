# Schemas module
from .responses import (
    FetchRunLogResponse,
    ProfileResponse,
    SourceValidationResponse,
    UncategorizedArticleResponse,
    ErrorResponse
)

__all__ = [
    "FetchRunLogResponse",
    "ProfileResponse",
    "SourceValidationResponse",
    "UncategorizedArticleResponse",
    "ErrorResponse"
]
