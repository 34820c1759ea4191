"""
Discussion Service

Answers on content and comments on answers. Both are vote targets; listing
attaches the viewer's own vote to each entry.
"""

from typing import List, Optional, Tuple

from studyhub.core.exceptions import NotFound, ValidationFailed
from studyhub.core.permissions import AccessControl, Action, Resource
from studyhub.core.security import Identity
from studyhub.db.store import DocumentStore
from studyhub.helpers.clock import Clock, utcnow
from studyhub.logging import get_logger
from studyhub.services.moderation import ModerationWorkflow, purge_answer
from studyhub.services.votes import VoteLedger, VoteTargetKind

logger = get_logger(__name__)

SORT_VOTES = "votes"
SORT_NEWEST = "newest"
SORTS = (SORT_VOTES, SORT_NEWEST)


class DiscussionService:
    def __init__(
        self,
        store: DocumentStore,
        access: AccessControl,
        moderation: ModerationWorkflow,
        ledger: VoteLedger,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.access = access
        self.moderation = moderation
        self.ledger = ledger
        self.clock = clock

    async def _with_votes(self, items, kind: VoteTargetKind, viewer: Optional[Identity]) -> List[Tuple]:
        if viewer is None:
            return [(item, None) for item in items]
        return [
            (item, await self.ledger.get_user_vote(viewer.user_id, item.id, kind))
            for item in items
        ]

    # -----------------------------
    # Answers
    # -----------------------------
    async def create_answer(self, content_id: str, author: Identity, body: str):
        """
        Raises:
            NotFound: the content is absent or not visible to the author
        """
        self.access.require(author, Resource.ANSWER, Action.SUBMIT)
        await self.moderation.get(content_id, author)

        now = self.clock()
        answer = await self.store.create("answers", {
            "content_id": content_id,
            "author_id": author.user_id,
            "body": body,
            "upvotes": 0,
            "downvotes": 0,
            "total_votes": 0,
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Answer created", answer_id=answer.id, content_id=content_id)
        return answer

    async def list_answers(
        self,
        content_id: str,
        viewer: Optional[Identity],
        sort: str = SORT_VOTES,
    ) -> List[Tuple]:
        """Answers with the viewer's vote, best voted first or newest first."""
        if sort not in SORTS:
            raise ValidationFailed(f"sort must be one of: {', '.join(SORTS)}")
        await self.moderation.get(content_id, viewer)

        answers = await self.store.find_many("answers", order_by="-created_at", content_id=content_id)
        if sort == SORT_VOTES:
            # stable, so ties stay newest first
            answers.sort(key=lambda a: a.total_votes, reverse=True)
        return await self._with_votes(answers, VoteTargetKind.ANSWER, viewer)

    async def delete_answer(self, answer_id: str, requester: Identity) -> None:
        """Remove the answer with its comments and every related vote."""
        answer = await self.store.read("answers", answer_id)
        if answer is None:
            raise NotFound("Answer not found")
        self.access.require(requester, Resource.ANSWER, Action.DELETE, owned=answer)

        async with self.store.transaction():
            await purge_answer(self.store, answer_id)
        logger.audit("Answer deleted", answer_id=answer_id, deleted_by=requester.user_id)

    # -----------------------------
    # Comments
    # -----------------------------
    async def _visible_answer(self, answer_id: str, viewer: Optional[Identity]):
        answer = await self.store.read("answers", answer_id)
        if answer is None:
            raise NotFound("Answer not found")
        try:
            await self.moderation.get(answer.content_id, viewer)
        except NotFound:
            raise NotFound("Answer not found")
        return answer

    async def create_comment(self, answer_id: str, author: Identity, body: str):
        self.access.require(author, Resource.COMMENT, Action.SUBMIT)
        await self._visible_answer(answer_id, author)

        now = self.clock()
        comment = await self.store.create("comments", {
            "answer_id": answer_id,
            "author_id": author.user_id,
            "body": body,
            "upvotes": 0,
            "downvotes": 0,
            "total_votes": 0,
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Comment created", comment_id=comment.id, answer_id=answer_id)
        return comment

    async def list_comments(self, answer_id: str, viewer: Optional[Identity]) -> List[Tuple]:
        """Comments oldest first, so threads read top to bottom."""
        await self._visible_answer(answer_id, viewer)
        comments = await self.store.find_many("comments", order_by="created_at", answer_id=answer_id)
        return await self._with_votes(comments, VoteTargetKind.COMMENT, viewer)

    async def delete_comment(self, comment_id: str, requester: Identity) -> None:
        comment = await self.store.read("comments", comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        self.access.require(requester, Resource.COMMENT, Action.DELETE, owned=comment)

        async with self.store.transaction():
            await self.store.delete_where("votes", target_kind="comment", target_id=comment_id)
            await self.store.delete("comments", comment_id)
        logger.audit("Comment deleted", comment_id=comment_id, deleted_by=requester.user_id)
