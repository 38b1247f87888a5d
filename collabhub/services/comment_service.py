"""
Comment business logic.

Comments, one level of threaded replies, and their attachments. Creating
and deleting a comment both feed the consistency coordinator, which keeps
task.comments and parent.replies in line.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.exceptions import ValidationFailedError
from collabhub.models.base import utcnow
from collabhub.models.comment import Comment
from collabhub.models.reference import ReferenceField
from collabhub.schemas.comment import (
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    CommentThreadResponse,
    CommentUpdateRequest,
)
from collabhub.schemas.common import AttachmentRequest, DeleteResponse
from collabhub.services.authorization import (
    Action,
    Authorizer,
    Principal,
    ResourceKind,
    check_comment,
    check_task,
)
from collabhub.services.coordinator import ConsistencyCoordinator
from collabhub.services.lifecycle import propagate_and_respond
from collabhub.services.populate import in_order, load_user_summaries
from collabhub.services.store import EntityStore

logger = logging.getLogger(__name__)


class CommentService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.store = EntityStore(db)
        self.authorizer = Authorizer(db)
        self.coordinator = ConsistencyCoordinator(self.store)

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_threads(self, task_id: UUID) -> CommentListResponse:
        """Top-level comments of a task, newest first, each with its direct replies."""
        result = await self.db.execute(
            select(Comment)
            .where(Comment.task_id == task_id, Comment.parent_comment_id.is_(None))
            .order_by(Comment.created_at.desc())
        )
        comments = list(result.scalars().all())
        reply_ids = await self.store.references_for(
            ReferenceField.comment_replies, [c.id for c in comments]
        )
        all_reply_ids = [rid for ids in reply_ids.values() for rid in ids]
        replies = {c.id: c for c in await self.store.get_many(Comment, all_reply_ids)}

        threads = []
        for comment in comments:
            thread_replies = in_order(replies, reply_ids[comment.id])
            threads.append(
                CommentThreadResponse(
                    comment=await self._to_response(comment),
                    replies=[await self._to_response(r) for r in thread_replies],
                )
            )
        return CommentListResponse(threads=threads, total=len(threads))

    async def get_comment(self, comment_id: UUID) -> CommentResponse:
        comment = await self.authorizer.load_comment(comment_id)
        return await self._to_response(comment)

    # -----------------------------------------------------------------------
    # Create / update / delete
    # -----------------------------------------------------------------------

    async def create_comment(
        self, data: CommentCreateRequest, principal: Principal
    ) -> CommentResponse:
        task = await self.authorizer.load_task(data.task_id)
        project = await self.authorizer.load_project(task.project_id)
        check_task(principal, task, project, Action.comment_on_task).enforce()

        if data.parent_comment_id is not None:
            parent = await self.authorizer.load_comment(data.parent_comment_id)
            if parent.task_id != task.id:
                raise ValidationFailedError(
                    "Parent comment belongs to a different task", code="PARENT_TASK_MISMATCH"
                )

        comment = Comment(
            content=data.content,
            task_id=task.id,
            author_id=principal.id,
            parent_comment_id=data.parent_comment_id,
            mentions=[str(user_id) for user_id in data.mentions],
            attachments=[],
            is_edited=False,
        )
        self.db.add(comment)
        await self.db.commit()
        comment_id = comment.id
        logger.info("Comment created: comment_id=%s task_id=%s", comment_id, task.id)

        return await propagate_and_respond(
            self.coordinator.comment_created(comment),
            lambda: self.get_comment(comment_id),
        )

    async def update_comment(
        self, comment_id: UUID, data: CommentUpdateRequest, principal: Principal
    ) -> CommentResponse:
        comment = await self.authorizer.load_comment(comment_id)
        check_comment(principal, comment, None, Action.update_comment).enforce()

        if data.content is not None:
            comment.content = data.content
        if data.mentions is not None:
            comment.mentions = [str(user_id) for user_id in data.mentions]
        comment.is_edited = True
        comment.edited_at = utcnow()

        await self.db.commit()
        return await self.get_comment(comment_id)

    async def delete_comment(self, comment_id: UUID, principal: Principal) -> DeleteResponse:
        """
        Delete a comment, then unlink it and remove its direct replies.

        Replies of replies are not visited; they survive with a dangling parent.
        """
        decision = await self.authorizer.authorize(
            principal, ResourceKind.comment, comment_id, Action.delete_comment
        )
        decision.enforce()

        comment = await self.authorizer.load_comment(comment_id)
        reply_ids = await self.store.references(ReferenceField.comment_replies, comment_id)
        await self.db.delete(comment)
        await self.store.discard_owned_references([comment_id], ReferenceField.comment_replies)
        await self.db.commit()
        logger.info("Comment deleted: comment_id=%s replies=%d", comment_id, len(reply_ids))

        async def respond() -> DeleteResponse:
            return DeleteResponse(id=comment_id, message="Comment deleted successfully")

        return await propagate_and_respond(
            self.coordinator.comment_deleted(comment, reply_ids), respond
        )

    # -----------------------------------------------------------------------
    # Attachments
    # -----------------------------------------------------------------------

    async def add_attachment(
        self, comment_id: UUID, data: AttachmentRequest, principal: Principal
    ) -> CommentResponse:
        comment = await self.authorizer.load_comment(comment_id)
        check_comment(principal, comment, None, Action.add_comment_attachment).enforce()

        comment.attachments = [
            *comment.attachments,
            {
                "name": data.name,
                "url": data.url,
                "type": data.type,
                "uploaded_at": utcnow().isoformat(),
            },
        ]
        await self.db.commit()
        return await self.get_comment(comment_id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _to_response(self, comment: Comment) -> CommentResponse:
        users = await load_user_summaries(self.db, [comment.author_id, *comment.mentions])
        reply_ids = await self.store.references(ReferenceField.comment_replies, comment.id)

        return CommentResponse(
            id=comment.id,
            content=comment.content,
            task_id=comment.task_id,
            author_id=comment.author_id,
            author=users.get(comment.author_id),
            parent_comment_id=comment.parent_comment_id,
            mentions=in_order(users, comment.mentions),
            replies=reply_ids,
            attachments=comment.attachments,
            is_edited=comment.is_edited,
            edited_at=comment.edited_at,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
