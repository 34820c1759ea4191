"""
Moderation Workflow

Subjects, videos and reference links share one lifecycle:

    pending --decide(approved)--> approved
    pending --decide(rejected)--> rejected

Administrators may re-decide an item at any time; the latest decision wins
and every decision is written to the audit log. Which items a viewer may
see is decided by ``visible_to`` alone, for every kind.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from studyhub.core.error_codes import ErrorCode
from studyhub.core.exceptions import NotFound, ValidationFailed
from studyhub.core.permissions import AccessControl, Action, Resource
from studyhub.core.security import Identity
from studyhub.db.store import DocumentStore
from studyhub.helpers.clock import Clock, utcnow
from studyhub.logging import get_logger
from studyhub.models import Content
from studyhub.schemas.content import PAYLOAD_MODELS
from studyhub.services.uploads import UploadRule, check_upload

logger = get_logger(__name__)


class ContentKind(str, Enum):
    SUBJECT = "subject"
    VIDEO = "video"
    REFERENCE_LINK = "reference_link"


class ModerationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


DECISIONS = (ModerationStatus.APPROVED, ModerationStatus.REJECTED)

# Payload fields carrying file metadata, and the upload rule each must satisfy
FILE_FIELDS = {
    ContentKind.SUBJECT: {"paper": UploadRule.PAPER},
    ContentKind.VIDEO: {"file": UploadRule.VIDEO},
    ContentKind.REFERENCE_LINK: {"notes": UploadRule.NOTES},
}


def visible_to(viewer_id: Optional[str], viewer_is_admin: bool) -> Callable[[Content], bool]:
    """
    Build the visibility predicate for a viewer.

    Administrators see everything, authenticated users see approved items
    and their own, anonymous viewers see approved items only.
    """
    def predicate(item: Content) -> bool:
        if viewer_is_admin:
            return True
        if item.status == ModerationStatus.APPROVED.value:
            return True
        return viewer_id is not None and item.owner_id == viewer_id

    return predicate


class ModerationWorkflow:
    def __init__(self, store: DocumentStore, access: AccessControl, clock: Clock = utcnow):
        self.store = store
        self.access = access
        self.clock = clock

    def _predicate_for(self, viewer: Optional[Identity]):
        return visible_to(
            viewer.user_id if viewer else None,
            self.access.is_administrator(viewer),
        )

    @staticmethod
    def validate_payload(kind: ContentKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a payload against its kind and gate any declared files.

        Raises:
            ValidationFailed: invalid fields, or a file the upload rules reject
        """
        try:
            model = PAYLOAD_MODELS[kind.value].model_validate(payload)
        except ValidationError as e:
            raise ValidationFailed(
                f"Invalid {kind.value} payload",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )

        for field, rule in FILE_FIELDS[kind].items():
            meta = getattr(model, field)
            if meta is None:
                continue
            decision = check_upload(rule, meta.filename, meta.mime_type, meta.size)
            if not decision.accepted:
                raise ValidationFailed(
                    decision.reason,
                    error_code=ErrorCode.UPLOAD_REJECTED,
                    details={"field": field},
                )

        return model.model_dump(mode="json", exclude_none=True)

    async def submit(self, owner: Identity, kind, payload: Dict[str, Any]) -> Content:
        """Create a content item; every kind starts pending."""
        self.access.require(owner, Resource.CONTENT, Action.SUBMIT)
        kind = ContentKind(kind)
        clean = self.validate_payload(kind, payload)

        now = self.clock()
        item = await self.store.create("content", {
            "kind": kind.value,
            "owner_id": owner.user_id,
            "status": ModerationStatus.PENDING.value,
            "payload": clean,
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Content submitted", content_id=item.id, kind=kind.value, owner_id=owner.user_id)
        return item

    async def decide(
        self,
        content_id: str,
        decision,
        moderator: Identity,
        reason: Optional[str] = None,
    ) -> Content:
        """
        Approve or reject an item. Administrators only.

        Raises:
            Forbidden: the moderator is not an administrator (status unchanged)
            NotFound: no such item
        """
        self.access.require(moderator, Resource.CONTENT, Action.DECIDE)
        decision = ModerationStatus(decision)
        if decision not in DECISIONS:
            raise ValidationFailed("Decision must be approved or rejected")

        item = await self.store.read("content", content_id)
        if item is None:
            raise NotFound("Content not found")

        previous = item.status
        now = self.clock()
        updated = await self.store.update("content", content_id, {
            "status": decision.value,
            "moderator_id": moderator.user_id,
            "decided_at": now,
            "rejection_reason": reason if decision == ModerationStatus.REJECTED else None,
            "updated_at": now,
        })
        if not updated:
            raise NotFound("Content not found")
        logger.audit(
            "Content decided",
            content_id=content_id,
            kind=item.kind,
            previous=previous,
            decision=decision.value,
            moderator_id=moderator.user_id,
        )
        decided = await self.store.read("content", content_id)
        if decided is None:
            raise NotFound("Content not found")
        return decided

    async def list(self, kind, viewer: Optional[Identity]) -> List[Content]:
        """Items of ``kind`` the viewer may see, newest first."""
        kind = ContentKind(kind)
        items = await self.store.find_many("content", order_by="-created_at", kind=kind.value)
        return [item for item in items if self._predicate_for(viewer)(item)]

    async def get(self, content_id: str, viewer: Optional[Identity]) -> Content:
        """
        Raises:
            NotFound: absent, or not visible to the viewer
        """
        item = await self.store.read("content", content_id)
        if item is None or not self._predicate_for(viewer)(item):
            raise NotFound("Content not found")
        return item

    async def pending(self, kind, moderator: Identity) -> List[Content]:
        """Review queue for administrators, oldest first."""
        self.access.require(moderator, Resource.CONTENT, Action.REVIEW)
        criteria = {"status": ModerationStatus.PENDING.value}
        if kind is not None:
            criteria["kind"] = ContentKind(kind).value
        return await self.store.find_many("content", order_by="created_at", **criteria)

    async def delete(self, content_id: str, requester: Identity) -> None:
        """
        Remove an item together with its answers, comments, votes and chat.

        Raises:
            NotFound: no such item
            Forbidden: requester is neither the owner nor an administrator
        """
        item = await self.store.read("content", content_id)
        if item is None:
            raise NotFound("Content not found")
        self.access.require(requester, Resource.CONTENT, Action.DELETE, owned=item)

        answers = await self.store.find_many("answers", content_id=content_id)
        async with self.store.transaction():
            for answer in answers:
                await purge_answer(self.store, answer.id)
            await self.store.delete_where("chat_messages", subject_id=content_id)
            await self.store.delete("content", content_id)

        logger.audit(
            "Content deleted",
            content_id=content_id,
            kind=item.kind,
            owner_id=item.owner_id,
            deleted_by=requester.user_id,
        )


async def purge_answer(store: DocumentStore, answer_id: str) -> None:
    """Delete an answer, its comments and every vote on either."""
    comments = await store.find_many("comments", answer_id=answer_id)
    for comment in comments:
        await store.delete_where("votes", target_kind="comment", target_id=comment.id)
    await store.delete_where("comments", answer_id=answer_id)
    await store.delete_where("votes", target_kind="answer", target_id=answer_id)
    await store.delete("answers", answer_id)
