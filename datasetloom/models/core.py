"""
Core data models for DatasetLoom.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ChatVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Chat(BaseModel):
    """A conversation owned by a user inside a project."""

    id: str = Field(description="Chat identifier")
    user_id: str = Field(description="Owning user")
    project_id: str = Field(description="Project the chat belongs to")
    title: Optional[str] = Field(default=None, description="Chat title")
    visibility: ChatVisibility = Field(
        default=ChatVisibility.PRIVATE, description="Who can list the chat"
    )
    created_at: datetime = Field(description="Creation timestamp, ordering key")


class ChatMessage(BaseModel):
    """A single immutable message of a chat."""

    id: str = Field(description="Message identifier")
    chat_id: str = Field(description="Parent chat")
    role: str = Field(description="Author role (user, assistant, ...)")
    parts: Union[str, List[Any]] = Field(
        description="Ordered content segments, serialized as JSON text"
    )
    created_at: datetime = Field(description="Creation timestamp, order within chat")


class Vote(BaseModel):
    """Feedback on a message; one per (chat_id, message_id)."""

    chat_id: str
    message_id: str
    is_upvote: bool


class ChatPage(BaseModel):
    """One page of a chat listing."""

    chats: List[Chat] = Field(default_factory=list)
    has_more: bool = False


class ShareGPTTurn(BaseModel):
    """One conversational turn in ShareGPT format."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from", description="'human' or 'gpt'")
    value: str = Field(description="Turn text")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
