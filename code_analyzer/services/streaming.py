"""
Streaming Relay - Forwards a token stream from the completion backend to the caller.

FRAMING (both directions):
    data: <json>\\n\\n      one event per frame
    data: [DONE]\\n\\n      terminal frame

Upstream frames carry OpenAI-style envelopes
(`{"choices": [{"delta": {"content": "..."}}]}`); caller-facing frames carry
`{"content": "..."}` or `{"error": "..."}` followed by `[DONE]`.

The codec (encode_event / parse_frame / decode_line) has no transport
dependency. The relay never lets an exception reach the transport: every
failure becomes an error event followed by Done.
"""

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union

from code_analyzer.services.llm_client import LLMClient, upstream_error_message

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@dataclass(frozen=True)
class ContentEvent:
    content: str


@dataclass(frozen=True)
class ErrorEvent:
    error: str


@dataclass(frozen=True)
class DoneEvent:
    pass


StreamEvent = Union[ContentEvent, ErrorEvent, DoneEvent]
DONE = DoneEvent()

DisconnectCheck = Callable[[], Awaitable[bool]]


# =============================================================================
# CODEC
# =============================================================================


def encode_event(event: StreamEvent) -> str:
    """Render one event as a caller-facing frame."""
    if isinstance(event, DoneEvent):
        return f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"
    if isinstance(event, ErrorEvent):
        payload = {"error": event.error}
    else:
        payload = {"content": event.content}
    return f"{DATA_PREFIX}{json.dumps(payload, ensure_ascii=False)}\n\n"


def parse_frame(line: str) -> Union[dict, DoneEvent, None]:
    """
    Parse one line of an event stream.

    Returns the JSON envelope, DONE for the sentinel, or None for lines that
    are not data frames and for malformed JSON (skipped, never fatal).
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    data = line[len(DATA_PREFIX):]
    if data.strip() == DONE_SENTINEL:
        return DONE
    try:
        envelope = json.loads(data)
    except ValueError:
        return None
    return envelope if isinstance(envelope, dict) else None


def extract_delta(envelope: dict) -> Optional[str]:
    """Incremental text of an envelope: choices[0].delta.content, else top-level content."""
    choices = envelope.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get("delta") or {}
        content = delta.get("content") if isinstance(delta, dict) else None
        return content if isinstance(content, str) else None
    content = envelope.get("content")
    return content if isinstance(content, str) else None


def decode_line(line: str) -> Optional[StreamEvent]:
    """Decode a caller-facing frame back into an event (for consumers and tests)."""
    frame = parse_frame(line)
    if frame is None or isinstance(frame, DoneEvent):
        return frame
    if "error" in frame:
        return ErrorEvent(str(frame["error"]))
    content = extract_delta(frame)
    return ContentEvent(content) if content is not None else None


# =============================================================================
# RELAY
# =============================================================================


async def relay_lines(
    lines: AsyncIterator[str],
    is_disconnected: Optional[DisconnectCheck] = None
) -> AsyncIterator[StreamEvent]:
    """
    Turn upstream lines into caller events.

    Stops at the first [DONE] without reading further. Emits Done if the
    upstream ends without a sentinel. Stops silently if the caller is gone.
    """
    async for line in lines:
        if is_disconnected is not None and await is_disconnected():
            logger.info("Caller disconnected, stopping upstream read")
            return

        frame = parse_frame(line)
        if frame is None:
            continue
        if isinstance(frame, DoneEvent):
            yield DONE
            return

        content = extract_delta(frame)
        if content:
            yield ContentEvent(content)

    yield DONE


class StreamingRelay:
    """
    One relay per inbound request; holds no state shared across requests.

    Usage:
        relay = StreamingRelay(llm)
        return StreamingResponse(relay.frames(messages), media_type=SSE_MEDIA_TYPE)
    """

    def __init__(self, llm: LLMClient, max_tokens: int = 4096, temperature: float = 0.7):
        self.llm = llm
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def events(
        self,
        messages: List[Dict[str, str]],
        is_disconnected: Optional[DisconnectCheck] = None
    ) -> AsyncIterator[StreamEvent]:
        done_sent = False
        try:
            async with self.llm.stream(messages, self.max_tokens, self.temperature) as response:
                if not response.is_success:
                    body = await response.aread()
                    try:
                        message = upstream_error_message(json.loads(body))
                    except ValueError:
                        message = "API error"
                    logger.warning(f"Completion backend returned {response.status_code}: {message}")
                    yield ErrorEvent(message)
                    done_sent = True
                    yield DONE
                    return

                async for event in relay_lines(response.aiter_lines(), is_disconnected):
                    if isinstance(event, DoneEvent):
                        done_sent = True
                    yield event
        except Exception as e:
            logger.error(f"Chat stream failed: {type(e).__name__}: {e}")
            if not done_sent:
                yield ErrorEvent(str(e) or type(e).__name__)
                yield DONE

    async def frames(
        self,
        messages: List[Dict[str, str]],
        is_disconnected: Optional[DisconnectCheck] = None
    ) -> AsyncIterator[str]:
        """Caller-facing encoded frames."""
        async for event in self.events(messages, is_disconnected):
            yield encode_event(event)
