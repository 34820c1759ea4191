"""
Chat Service

Per-subject message board. Messages are kept after deletion, flagged and
hidden from every listing, so replies keep pointing at a real record.
A subject's chat is exactly as visible as the subject itself.
"""

from typing import List, Optional, Tuple

from studyhub.core.exceptions import Conflict, NotFound, ValidationFailed
from studyhub.core.permissions import AccessControl, Action, Resource
from studyhub.core.security import Identity
from studyhub.db.store import DocumentStore
from studyhub.helpers.clock import Clock, utcnow
from studyhub.logging import get_logger
from studyhub.models import ChatMessage
from studyhub.services.moderation import ContentKind, ModerationWorkflow

logger = get_logger(__name__)

MESSAGE_TYPES = ("text", "image", "file")
REPLY = "reply"
DEFAULT_HISTORY_LIMIT = 50


class ChatService:
    def __init__(
        self,
        store: DocumentStore,
        access: AccessControl,
        moderation: ModerationWorkflow,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.access = access
        self.moderation = moderation
        self.clock = clock

    async def _visible_subject(self, subject_id: str, viewer: Optional[Identity]):
        try:
            subject = await self.moderation.get(subject_id, viewer)
        except NotFound:
            raise NotFound("Subject not found")
        if subject.kind != ContentKind.SUBJECT.value:
            raise NotFound("Subject not found")
        return subject

    async def _live_message(self, message_id: str) -> ChatMessage:
        message = await self.store.read("chat_messages", message_id)
        if message is None or message.is_deleted:
            raise NotFound("Message not found")
        return message

    async def _create(self, subject_id: str, sender: Identity, text: str, message_type: str,
                      reply_to: Optional[str] = None) -> ChatMessage:
        account = await self.store.read("users", sender.user_id)
        if account is None:
            raise NotFound("User not found")

        now = self.clock()
        message = await self.store.create("chat_messages", {
            "subject_id": subject_id,
            "sender_id": sender.user_id,
            "sender_name": account.username,
            "text": text,
            "message_type": message_type,
            "reply_to": reply_to,
            "is_deleted": False,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(
            "Chat message posted",
            message_id=message.id,
            subject_id=subject_id,
            sender_id=sender.user_id,
            reply_to=reply_to,
        )
        return message

    async def post_message(self, subject_id: str, sender: Identity, text: str,
                           message_type: str = "text") -> ChatMessage:
        """
        Raises:
            Unauthenticated: no sender
            NotFound: the subject is absent or hidden from the sender
        """
        self.access.require(sender, Resource.CHAT, Action.SUBMIT)
        if message_type not in MESSAGE_TYPES:
            raise ValidationFailed(f"message_type must be one of: {', '.join(MESSAGE_TYPES)}")
        await self._visible_subject(subject_id, sender)
        return await self._create(subject_id, sender, text, message_type)

    async def reply(self, message_id: str, sender: Identity, text: str) -> ChatMessage:
        """Answer a live message in the same subject."""
        self.access.require(sender, Resource.CHAT, Action.SUBMIT)
        original = await self._live_message(message_id)
        try:
            await self._visible_subject(original.subject_id, sender)
        except NotFound:
            raise NotFound("Message not found")
        return await self._create(original.subject_id, sender, text, REPLY, reply_to=original.id)

    async def list_messages(
        self,
        subject_id: str,
        viewer: Optional[Identity],
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Tuple[List[ChatMessage], int]:
        """Newest messages first, with the count of every live message."""
        self.access.require(viewer, Resource.CHAT, Action.READ)
        await self._visible_subject(subject_id, viewer)
        messages = await self.store.find_many(
            "chat_messages", order_by="-created_at", subject_id=subject_id, is_deleted=False
        )
        return messages[:limit], len(messages)

    async def participants(self, subject_id: str, viewer: Optional[Identity]) -> List[dict]:
        """
        Everyone with a live message in the subject, most recently active first.

        Each entry carries user_id, username, message_count and last_message_at.
        """
        self.access.require(viewer, Resource.CHAT, Action.READ)
        await self._visible_subject(subject_id, viewer)
        messages = await self.store.find_many(
            "chat_messages", order_by="-created_at", subject_id=subject_id, is_deleted=False
        )

        seen = {}
        for message in messages:
            entry = seen.get(message.sender_id)
            if entry is None:
                # newest first, so the first hit carries the latest name and time
                seen[message.sender_id] = {
                    "user_id": message.sender_id,
                    "username": message.sender_name,
                    "message_count": 1,
                    "last_message_at": message.created_at,
                }
            else:
                entry["message_count"] += 1
        return list(seen.values())

    async def delete_message(self, message_id: str, requester: Identity) -> None:
        """
        Hide a message. Its sender and administrators only.

        Raises:
            NotFound: absent or already deleted
            Forbidden: requester is neither the sender nor an administrator
            Conflict: a concurrent delete won
        """
        message = await self._live_message(message_id)
        self.access.require(requester, Resource.CHAT, Action.DELETE, owned=message.sender_id)

        now = self.clock()
        deleted = await self.store.compare_and_set(
            "chat_messages",
            message_id,
            {"is_deleted": False},
            {"is_deleted": True, "deleted_at": now, "deleted_by": requester.user_id, "updated_at": now},
        )
        if not deleted:
            raise Conflict("Message was already deleted")
        logger.audit(
            "Chat message deleted",
            message_id=message_id,
            subject_id=message.subject_id,
            sender_id=message.sender_id,
            deleted_by=requester.user_id,
        )
