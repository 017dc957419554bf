# Schemas module
from .requests import SourceUpdateRequest
from .responses import (
    TriggerResponse,
    RunStatusResponse,
    SourceResponse,
    SourceListResponse,
    ErrorResponse
)

__all__ = [
    "SourceUpdateRequest",
    "TriggerResponse",
    "RunStatusResponse",
    "SourceResponse",
    "SourceListResponse",
    "ErrorResponse"
]
