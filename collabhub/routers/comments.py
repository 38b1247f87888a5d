"""
Comment endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_principal
from collabhub.schemas.comment import (
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    CommentUpdateRequest,
)
from collabhub.schemas.common import AttachmentRequest, DeleteResponse
from collabhub.services.authorization import Principal
from collabhub.services.comment_service import CommentService

router = APIRouter()


def get_comment_service(
    db: AsyncSession = Depends(get_db),
) -> CommentService:
    return CommentService(db=db)


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a task or reply to a comment",
)
async def create_comment(
    data: CommentCreateRequest,
    principal: Principal = Depends(get_principal),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    return await service.create_comment(data, principal)


@router.get(
    "/task/{task_id}",
    response_model=CommentListResponse,
    summary="List comment threads of a task",
)
async def list_task_comments(
    task_id: UUID,
    _: Principal = Depends(get_principal),
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    return await service.list_threads(task_id)


@router.put("/{comment_id}", response_model=CommentResponse, summary="Edit a comment")
async def update_comment(
    comment_id: UUID,
    data: CommentUpdateRequest,
    principal: Principal = Depends(get_principal),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    return await service.update_comment(comment_id, data, principal)


@router.delete("/{comment_id}", response_model=DeleteResponse, summary="Delete a comment")
async def delete_comment(
    comment_id: UUID,
    principal: Principal = Depends(get_principal),
    service: CommentService = Depends(get_comment_service),
) -> DeleteResponse:
    """Also deletes the comment's direct replies."""
    return await service.delete_comment(comment_id, principal)


@router.post(
    "/{comment_id}/attachments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file reference to a comment",
)
async def add_comment_attachment(
    comment_id: UUID,
    data: AttachmentRequest,
    principal: Principal = Depends(get_principal),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    return await service.add_attachment(comment_id, data, principal)
