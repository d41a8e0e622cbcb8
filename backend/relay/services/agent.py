import asyncio
import codecs
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError

from relay.core.config import Settings, get_settings
from relay.core.errors import ConfigurationError, UpstreamError
from relay.schemas import ChatRequest

logger = logging.getLogger(__name__)

ACTING_USER_ATTRIBUTE = "userId"
DISPLAY_USER_ATTRIBUTE = "displayUserId"


def decode_chunks(events: Iterable[Mapping[str, Any]]) -> Iterator[str]:
    """Yield the text of each ``chunk`` event in arrival order.

    Bytes are decoded incrementally so a UTF-8 sequence split across two
    chunks comes out whole. Events without chunk bytes (traces, return
    control, ...) are skipped.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    for event in events:
        data = (event.get("chunk") or {}).get("bytes")
        if not data:
            continue
        text = decoder.decode(data)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def assemble_reply(events: Iterable[Mapping[str, Any]]) -> str:
    return "".join(decode_chunks(events))


@dataclass(frozen=True)
class AgentInvocation:
    agent_id: str
    agent_alias_id: str
    session_id: str
    input_text: str
    session_attributes: dict[str, str] = field(default_factory=dict)

    def to_params(self) -> dict[str, Any]:
        return {
            "agentId": self.agent_id,
            "agentAliasId": self.agent_alias_id,
            "sessionId": self.session_id,
            "inputText": self.input_text,
            "sessionState": {"sessionAttributes": dict(self.session_attributes)},
        }


class AgentService:
    """Relays chat messages to a Bedrock agent and collects its reply."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        if client is None:
            session = boto3.session.Session()
            try:
                client = session.client("bedrock-agent-runtime", region_name=self.settings.aws_region)
            except BotoCoreError as exc:
                raise ConfigurationError(f"Cannot create agent runtime client: {exc}") from exc
        self.client = client

    def session_attributes(self, user_id: str | None) -> dict[str, str]:
        if self.settings.force_demo_identity:
            attributes = {ACTING_USER_ATTRIBUTE: self.settings.demo_identity}
            if user_id:
                attributes[DISPLAY_USER_ATTRIBUTE] = user_id
            return attributes
        return {ACTING_USER_ATTRIBUTE: user_id or self.settings.demo_identity}

    def build_invocation(self, payload: ChatRequest) -> AgentInvocation:
        if not self.settings.agent_configured:
            raise ConfigurationError("BEDROCK_AGENT_ID / BEDROCK_AGENT_ALIAS not configured")

        return AgentInvocation(
            agent_id=self.settings.bedrock_agent_id,
            agent_alias_id=self.settings.bedrock_agent_alias_id,
            session_id=payload.session_id or self.settings.default_session_id,
            input_text=payload.message,
            session_attributes=self.session_attributes(payload.user_id),
        )

    def invoke(self, invocation: AgentInvocation) -> Iterable[Mapping[str, Any]]:
        response = self.client.invoke_agent(**invocation.to_params())
        return response.get("completion") or ()

    def _collect_reply(self, invocation: AgentInvocation) -> str:
        return assemble_reply(self.invoke(invocation))

    async def ask(self, payload: ChatRequest) -> str:
        invocation = self.build_invocation(payload)
        logger.info(
            "Invoking agent %s (alias %s) for session %s",
            invocation.agent_id,
            invocation.agent_alias_id,
            invocation.session_id,
        )
        try:
            return await asyncio.to_thread(self._collect_reply, invocation)
        except Exception as exc:
            logger.exception("Agent call failed for session %s", invocation.session_id)
            raise UpstreamError(str(exc)) from exc

    async def open_stream(self, payload: ChatRequest) -> Iterator[str]:
        """Start an invocation and return an iterator over its decoded text.

        Failures while opening the stream raise ``UpstreamError``; failures
        while reading it propagate out of the iterator.
        """
        invocation = self.build_invocation(payload)
        logger.info(
            "Streaming agent %s (alias %s) for session %s",
            invocation.agent_id,
            invocation.agent_alias_id,
            invocation.session_id,
        )
        try:
            completion = await asyncio.to_thread(self.invoke, invocation)
        except Exception as exc:
            logger.exception("Agent stream failed to open for session %s", invocation.session_id)
            raise UpstreamError(str(exc)) from exc
        return self._relay(completion, invocation.session_id)

    def _relay(self, completion: Iterable[Mapping[str, Any]], session_id: str) -> Iterator[str]:
        try:
            yield from decode_chunks(completion)
        except Exception:
            logger.exception("Agent stream broke mid-reply for session %s", session_id)
            raise


_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service


def reset_agent_service() -> None:
    global _agent_service
    _agent_service = None
