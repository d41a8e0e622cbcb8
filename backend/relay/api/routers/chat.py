import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from relay.schemas import ChatRequest, ChatResponse
from relay.services.agent import AgentService, get_agent_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    agent: AgentService = Depends(get_agent_service),
) -> ChatResponse:
    logger.info(
        "Incoming chat: session=%s message_len=%d",
        payload.session_id,
        len(payload.message),
    )
    text = await agent.ask(payload)
    return ChatResponse(text=text)


@router.post("/chat/stream")
async def chat_stream(
    payload: ChatRequest,
    agent: AgentService = Depends(get_agent_service),
) -> StreamingResponse:
    logger.info(
        "Incoming streamed chat: session=%s message_len=%d",
        payload.session_id,
        len(payload.message),
    )
    chunks = await agent.open_stream(payload)
    return StreamingResponse(chunks, media_type="text/plain; charset=utf-8")
