"""
Conversion of stored chat messages into ShareGPT turns.
"""

import json
from dataclasses import dataclass, field
from typing import Any, FrozenSet, List

from ..exceptions import MalformedContentError
from ..models.core import ChatMessage, ShareGPTTurn

HUMAN = "human"
GPT = "gpt"


@dataclass(frozen=True)
class RoleMapping:
    """
    Maps message roles onto the two ShareGPT speakers.

    Roles in ``human_roles`` become "human"; every other role becomes "gpt"
    unless it is listed in ``excluded_roles``, in which case the exporter
    drops the message. The defaults tag only "user" as human and exclude
    nothing, so system or tool messages are exported as "gpt".
    """

    human_roles: FrozenSet[str] = frozenset({"user"})
    excluded_roles: FrozenSet[str] = field(default_factory=frozenset)

    def is_excluded(self, role: str) -> bool:
        return role in self.excluded_roles

    def speaker_for(self, role: str) -> str:
        return HUMAN if role in self.human_roles else GPT


DEFAULT_ROLE_MAPPING = RoleMapping()


def decode_parts(message: ChatMessage) -> List[Any]:
    """
    Decode a message's serialized parts.

    Raises:
        MalformedContentError: The parts are not a JSON list
    """
    parts = message.parts
    if isinstance(parts, str):
        try:
            parts = json.loads(parts)
        except json.JSONDecodeError as e:
            raise MalformedContentError(
                f"Message {message.id} has undecodable parts: {e.msg}",
                context={"message_id": message.id, "chat_id": message.chat_id},
            ) from e

    if not isinstance(parts, list):
        raise MalformedContentError(
            f"Message {message.id} parts must be a list",
            context={"message_id": message.id, "parts_type": type(parts).__name__},
        )
    return parts


def extract_text(message: ChatMessage) -> str:
    """
    Return the text of the first ``text`` part of a message.

    Raises:
        MalformedContentError: No part has type "text" with a string text
    """
    for part in decode_parts(message):
        if isinstance(part, dict) and part.get("type") == "text":
            text = part.get("text")
            if not isinstance(text, str):
                break
            return text

    raise MalformedContentError(
        f"Message {message.id} has no text part",
        context={"message_id": message.id, "chat_id": message.chat_id},
    )


def format_message(
    message: ChatMessage, role_mapping: RoleMapping = DEFAULT_ROLE_MAPPING
) -> ShareGPTTurn:
    """
    Convert one message into a ShareGPT turn.

    Example::

        # message.role == "user", parts '[{"type": "text", "text": "hi"}]'
        format_message(message).to_dict()  # {"from": "human", "value": "hi"}
    """
    return ShareGPTTurn(
        from_=role_mapping.speaker_for(message.role),
        value=extract_text(message),
    )
