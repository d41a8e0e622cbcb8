from relay.schemas.chat import ChatRequest, ChatResponse
from relay.schemas.common import ErrorResponse, HealthResponse
from relay.schemas.storage import PresignRequest, PresignResponse

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "HealthResponse",
    "PresignRequest",
    "PresignResponse",
]
