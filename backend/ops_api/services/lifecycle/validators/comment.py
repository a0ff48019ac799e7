"""TaskComment and Attachment validators: entities with a polymorphic parent."""

from __future__ import annotations

from typing import Any

from ops_api.models import Attachment, EntityKind, ParentKind, TaskComment
from ops_shared.config.constants import ErrorCodes, Limits

from ..invariants import same_tenant_and_department
from .base import BaseValidator, ValidationReport


class ParentedValidator(BaseValidator):
    """Shared parent liveness check for comments and attachments."""

    def require_parent(self, entity: Any, report: ValidationReport) -> Any | None:
        parent = self.store.load_parent(entity.parent_kind, entity.parent_id)
        if parent is None:
            report.error(
                ErrorCodes.PARENT_NOT_FOUND,
                f"Parent {entity.parent_kind.value} {entity.parent_id} does not exist",
                field="parent_id",
                parent_kind=entity.parent_kind.value,
                parent_id=entity.parent_id,
            )
        elif parent.is_deleted:
            report.error(
                ErrorCodes.PARENT_DELETED,
                f"Parent {entity.parent_kind.value} {entity.parent_id} is deleted; restore it first",
                field="parent_id",
                parent_kind=entity.parent_kind.value,
                parent_id=entity.parent_id,
            )
        return parent


class TaskCommentValidator(ParentedValidator):
    kind = EntityKind.TASK_COMMENT

    def check_deletion(self, comment: TaskComment, report: ValidationReport) -> None:
        if comment.depth > Limits.MAX_COMMENT_DEPTH:
            report.error(
                ErrorCodes.INVALID_DEPTH,
                f"Comment depth {comment.depth} exceeds {Limits.MAX_COMMENT_DEPTH}",
                field="depth",
                depth=comment.depth,
            )

        replies = self.store.comments.count(
            TaskComment.parent_kind == ParentKind.TASK_COMMENT,
            TaskComment.parent_id == comment.id,
        )
        if replies:
            report.warning(
                ErrorCodes.RECURSIVE_CHILD_COMMENTS,
                f"{replies} repl{'y' if replies == 1 else 'ies'} will be deleted with the comment",
                count=replies,
            )

    def check_restoration(self, comment: TaskComment, report: ValidationReport) -> None:
        parent = self.require_parent(comment, report)
        self.require_scope_owners(comment, report)
        self.require_creator(comment, report, blocking=True)

        expected = 1
        if parent is not None and comment.parent_kind == ParentKind.TASK_COMMENT:
            expected = parent.depth + 1
        if comment.depth != expected or comment.depth > Limits.MAX_COMMENT_DEPTH:
            report.error(
                ErrorCodes.INVALID_DEPTH,
                f"Comment depth {comment.depth} is invalid (expected {expected}, "
                f"maximum {Limits.MAX_COMMENT_DEPTH})",
                field="depth",
                depth=comment.depth,
                expected=expected,
            )

        self.check_references(
            report,
            self.store.mention_ids(comment),
            EntityKind.USER,
            field="mentions",
            deleted_code=ErrorCodes.MENTIONS_DELETED,
            scope_code=ErrorCodes.MENTIONS_WRONG_ORG,
            organization_id=comment.organization_id,
        )


class AttachmentValidator(ParentedValidator):
    kind = EntityKind.ATTACHMENT

    def check_restoration(self, attachment: Attachment, report: ValidationReport) -> None:
        self.require_parent(attachment, report)
        self.require_scope_owners(attachment, report)

        uploader = self.store.load(EntityKind.USER, attachment.uploaded_by_id)
        if uploader is None or uploader.is_deleted:
            report.warning(
                ErrorCodes.UPLOADED_BY_DELETED,
                f"Uploader {attachment.uploaded_by_id} is deleted",
                field="uploaded_by_id",
                user_id=attachment.uploaded_by_id,
            )
        elif not same_tenant_and_department(uploader, attachment):
            report.error(
                ErrorCodes.UPLOADED_BY_WRONG_ORG_DEPT,
                "The uploader belongs to another organization or department",
                field="uploaded_by_id",
                user_id=uploader.id,
            )
