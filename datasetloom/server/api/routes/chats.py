"""
Chat API routes.

Provides REST endpoints, scoped to a project, for:
- Creating, fetching and deleting chats
- Cursor-paginated chat listings
- Changing chat visibility
- Appending and reading messages
- Voting on messages
- Downloading a chat as a ShareGPT dataset archive

The caller is identified by the X-User-Id header set by the upstream
gateway. Errors raised by the services are turned into Failure envelopes by
the application's exception handler.
"""

import uuid
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Header, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field
from starlette.background import BackgroundTask

from datasetloom.export import remove_export_file
from datasetloom.models.core import ChatVisibility

from ..dependencies import get_service_container

router = APIRouter(prefix="/api/projects/{project_id}/chats", tags=["chats"])


class CreateChatRequest(BaseModel):
    """Request model for creating a chat."""

    id: Optional[str] = Field(None, description="Client-chosen chat id")
    title: Optional[str] = Field(None, description="Chat title")
    visibility: ChatVisibility = Field(
        default=ChatVisibility.PRIVATE, description="Initial visibility"
    )


class UpdateVisibilityRequest(BaseModel):
    """Request model for changing chat visibility."""

    visibility: ChatVisibility


class InsertMessageRequest(BaseModel):
    """Request model for appending a message."""

    id: Optional[str] = Field(None, description="Client-chosen message id")
    role: str = Field(..., description="Author role (user, assistant, ...)")
    parts: Union[str, List[Any]] = Field(
        ..., description="Content segments, e.g. [{'type': 'text', 'text': 'hi'}]"
    )


class VoteRequest(BaseModel):
    """Request model for voting on a message."""

    message_id: str
    type: str = Field(..., description="'up' or 'down'")


@router.get("")
async def list_chats(
    project_id: str,
    x_user_id: str = Header(...),
    limit: Optional[int] = Query(None, description="Page size"),
    starting_after: Optional[str] = Query(None, description="Chat id cursor"),
    ending_before: Optional[str] = Query(None, description="Chat id cursor"),
):
    """
    List the chats the caller can see in a project, newest first.

    Pass ``starting_after`` for newer chats or ``ending_before`` for older
    ones; never both.
    """
    container = get_service_container()
    if limit is None:
        limit = container.config.settings.default_page_size

    page = await container.chat_service.list_chats(
        owner_id=x_user_id,
        project_id=project_id,
        limit=limit,
        starting_after=starting_after,
        ending_before=ending_before,
    )

    return {
        "success": True,
        "chats": [chat.model_dump(mode="json") for chat in page.chats],
        "hasMore": page.has_more,
    }


@router.post("")
async def create_chat(
    project_id: str,
    request: CreateChatRequest,
    x_user_id: str = Header(...),
):
    """Create a chat owned by the caller."""
    container = get_service_container()

    chat = await container.chat_service.create_chat(
        user_id=x_user_id,
        project_id=project_id,
        chat_id=request.id,
        title=request.title,
        visibility=request.visibility,
    )

    return {"success": True, "chat": chat.model_dump(mode="json")}


@router.get("/{chat_id}")
async def get_chat(project_id: str, chat_id: str, x_user_id: str = Header(...)):
    """Get a chat the caller owns or that is public."""
    container = get_service_container()

    chat = await container.chat_service.get_chat(
        chat_id=chat_id, project_id=project_id, viewer_id=x_user_id
    )

    return {"success": True, "chat": chat.model_dump(mode="json")}


@router.delete("/{chat_id}")
async def delete_chat(project_id: str, chat_id: str, x_user_id: str = Header(...)):
    """Permanently delete one of the caller's chats."""
    service = get_service_container().chat_service

    await service.get_chat(
        chat_id=chat_id,
        project_id=project_id,
        viewer_id=x_user_id,
        require_owner=True,
    )
    await service.delete_chat(chat_id=chat_id)

    return {"success": True, "chat_id": chat_id}


@router.patch("/{chat_id}/visibility")
async def update_visibility(
    project_id: str,
    chat_id: str,
    request: UpdateVisibilityRequest,
    x_user_id: str = Header(...),
):
    """Make one of the caller's chats public or private."""
    service = get_service_container().chat_service

    await service.get_chat(
        chat_id=chat_id,
        project_id=project_id,
        viewer_id=x_user_id,
        require_owner=True,
    )
    chat = await service.update_visibility(
        chat_id=chat_id, visibility=request.visibility
    )

    return {"success": True, "chat": chat.model_dump(mode="json")}


@router.get("/{chat_id}/messages")
async def get_messages(project_id: str, chat_id: str, x_user_id: str = Header(...)):
    """Get a chat's messages in chronological order."""
    service = get_service_container().chat_service

    await service.get_chat(chat_id=chat_id, project_id=project_id, viewer_id=x_user_id)
    messages = await service.get_messages(chat_id=chat_id)

    return {
        "success": True,
        "messages": [message.model_dump(mode="json") for message in messages],
    }


@router.post("/{chat_id}/messages")
async def insert_message(
    project_id: str,
    chat_id: str,
    request: InsertMessageRequest,
    x_user_id: str = Header(...),
):
    """Append a message to one of the caller's chats."""
    service = get_service_container().chat_service

    await service.get_chat(
        chat_id=chat_id,
        project_id=project_id,
        viewer_id=x_user_id,
        require_owner=True,
    )
    message = await service.insert_message(
        chat_id=chat_id,
        role=request.role,
        parts=request.parts,
        message_id=request.id,
    )

    return {"success": True, "message": message.model_dump(mode="json")}


@router.get("/{chat_id}/votes")
async def get_votes(project_id: str, chat_id: str, x_user_id: str = Header(...)):
    """Get all votes recorded for a chat."""
    service = get_service_container().chat_service

    await service.get_chat(chat_id=chat_id, project_id=project_id, viewer_id=x_user_id)
    votes = await service.get_votes(chat_id=chat_id)

    return {"success": True, "votes": [vote.model_dump() for vote in votes]}


@router.patch("/{chat_id}/votes")
async def vote_message(
    project_id: str,
    chat_id: str,
    request: VoteRequest,
    x_user_id: str = Header(...),
):
    """Vote a message up or down; a later vote replaces the earlier one."""
    service = get_service_container().chat_service

    await service.get_chat(chat_id=chat_id, project_id=project_id, viewer_id=x_user_id)
    vote = await service.vote_message(
        chat_id=chat_id, message_id=request.message_id, vote_type=request.type
    )

    return {"success": True, "vote": vote.model_dump()}


@router.get("/{chat_id}/export")
async def export_chat(project_id: str, chat_id: str, x_user_id: str = Header(...)):
    """
    Download a chat as a ShareGPT dataset archive.

    The archive is deleted once the response has been sent.
    """
    container = get_service_container()

    await container.chat_service.get_chat(
        chat_id=chat_id, project_id=project_id, viewer_id=x_user_id
    )

    unique_token = None
    if container.config.settings.export_unique_filenames:
        unique_token = uuid.uuid4().hex[:8]

    result = await container.exporter.export_chat_dataset(
        project_id=project_id, chat_id=chat_id, unique_token=unique_token
    )

    return FileResponse(
        result.file_path,
        media_type="application/zip",
        filename=result.filename,
        background=BackgroundTask(remove_export_file, result.file_path),
    )
