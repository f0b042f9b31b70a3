from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from ticketvault.dependencies.services import get_comment_store
from ticketvault.errors import PersistenceError, ValidationError
from ticketvault.tickets.comments import CommentStore
from ticketvault.tickets.models import Comment, format_identity

router = APIRouter(prefix="/tickets/{ticket_id}/comments", tags=["comments"])


class CommentCreateRequest(BaseModel):
    holder: str = Field(..., min_length=1)
    text: str = Field(..., max_length=1000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author: str
    text: str
    created_at: datetime


CommentsDep = Annotated[CommentStore, Depends(get_comment_store)]


def _to_response(comment: Comment) -> CommentResponse:
    return CommentResponse.model_validate(comment)


@router.get("", response_model=list[CommentResponse])
async def list_comments(ticket_id: str, comments: CommentsDep) -> list[CommentResponse]:
    try:
        entries = await comments.list(ticket_id)
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [_to_response(entry) for entry in entries]


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(ticket_id: str, payload: CommentCreateRequest, comments: CommentsDep) -> CommentResponse:
    try:
        comment = await comments.append(ticket_id, format_identity(payload.holder), payload.text)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _to_response(comment)
