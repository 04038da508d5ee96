"""
Chunk decoder turning SSE payloads into typed deltas.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from src.llm.exceptions import ChunkDecodeError
from src.llm.models import ChatChunk, Delta, MessageKind
from src.logging_utils import logger

# Payload excerpt length kept in logs for dropped chunks
MAX_LOGGED_PAYLOAD = 200


class ChunkDecoder:
    """Decodes one JSON chunk at a time; failures are per chunk."""

    def __init__(self) -> None:
        self.stats = {
            "decoded": 0,
            "dropped": 0,
        }

    def decode(self, payload: str) -> Delta:
        """
        Decode a single event payload.

        Args:
            payload: JSON text of one `data:` line

        Returns:
            The decoded Delta

        Raises:
            ChunkDecodeError: If the payload is not valid JSON or does not
                match the chunk schema
        """
        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError is a ValueError; oversized integers and deep
            # nesting raise plain ValueError and RecursionError
            raise ChunkDecodeError(f"JSON decode error: {e}", payload) from e

        if not isinstance(data, dict):
            raise ChunkDecodeError(
                f"Expected JSON object, got {type(data).__name__}", payload
            )

        try:
            chunk = ChatChunk.model_validate(data)
        except ValidationError as e:
            raise ChunkDecodeError(
                f"Chunk schema mismatch: {e.error_count()} error(s)", payload
            ) from e

        token_text = ""
        kind = MessageKind.TEXT
        is_terminal = False
        if chunk.choices:
            choice = chunk.choices[0]
            token_text = choice.delta.content or ""
            kind = MessageKind.from_wire(choice.delta.type)
            is_terminal = choice.finish_reason is not None

        self.stats["decoded"] += 1
        return Delta(
            token_text=token_text,
            kind=kind,
            usage=chunk.usage.to_usage() if chunk.usage else None,
            is_terminal=is_terminal,
        )

    def try_decode(self, payload: str) -> Delta | None:
        """Decode a payload, dropping and logging it on failure."""
        try:
            return self.decode(payload)
        except ChunkDecodeError as e:
            self.stats["dropped"] += 1
            logger.warning(
                "Dropped undecodable chunk",
                error_message=str(e),
                payload=e.payload[:MAX_LOGGED_PAYLOAD],
            )
            return None

    def get_stats(self) -> dict[str, int]:
        return self.stats.copy()

    def reset_stats(self) -> None:
        self.stats = {
            "decoded": 0,
            "dropped": 0,
        }
