"""
Vote Ledger

One vote per (voter, target). Casting toggles:

    no vote        + up   -> up      (upvotes +1)
    up             + up   -> no vote (upvotes -1)
    up             + down -> down    (upvotes -1, downvotes +1)

The vote record changes only through an insert on its deterministic key, a
conditional delete or a compare-and-set on its direction, and the tally
only through atomic increments, both inside one transaction. A caller that
loses a race gets Conflict; the tally always matches the vote records.

Answers and comments inherit the visibility of the content they hang off:
a target under content the caller cannot see is reported as absent, for
votes and tallies alike.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from studyhub.core.exceptions import Conflict, NotFound
from studyhub.core.permissions import AccessControl, Action, Resource
from studyhub.core.security import Identity
from studyhub.db.store import DocumentStore
from studyhub.helpers.clock import Clock, utcnow
from studyhub.models.vote import vote_key
from studyhub.services.moderation import ModerationWorkflow


class VoteTargetKind(str, Enum):
    ANSWER = "answer"
    COMMENT = "comment"


class VoteDirection(str, Enum):
    UP = "up"
    DOWN = "down"

    @property
    def counter(self) -> str:
        return "upvotes" if self is VoteDirection.UP else "downvotes"

    @property
    def sign(self) -> int:
        return 1 if self is VoteDirection.UP else -1


TARGET_COLLECTIONS = {
    VoteTargetKind.ANSWER: "answers",
    VoteTargetKind.COMMENT: "comments",
}


@dataclass(frozen=True)
class Tally:
    upvotes: int
    downvotes: int
    total_votes: int
    user_vote: Optional[str] = None


class VoteLedger:
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

    @staticmethod
    def _missing(kind: VoteTargetKind) -> NotFound:
        return NotFound(f"{kind.value.capitalize()} not found")

    async def _visible_target(self, target_id: str, kind: VoteTargetKind, viewer: Optional[Identity]):
        """
        Load the target and check the viewer may see the content above it.

        Raises:
            NotFound: absent, orphaned, or under content hidden from the viewer
        """
        target = await self.store.read(TARGET_COLLECTIONS[kind], target_id)
        if target is None:
            raise self._missing(kind)

        if kind is VoteTargetKind.COMMENT:
            answer = await self.store.read("answers", target.answer_id)
            if answer is None:
                raise self._missing(kind)
            content_id = answer.content_id
        else:
            content_id = target.content_id

        try:
            await self.moderation.get(content_id, viewer)
        except NotFound:
            raise self._missing(kind)
        return target

    async def _bump(self, kind: VoteTargetKind, target_id: str, **deltas: int) -> None:
        if not await self.store.increment(TARGET_COLLECTIONS[kind], target_id, **deltas):
            raise self._missing(kind)

    async def _tally(self, target_id: str, kind: VoteTargetKind) -> Tally:
        target = await self.store.read(TARGET_COLLECTIONS[kind], target_id)
        if target is None:
            raise self._missing(kind)
        return Tally(target.upvotes, target.downvotes, target.total_votes)

    async def cast_vote(self, voter: Identity, target_id: str, target_kind, direction) -> Tally:
        """
        Apply a vote and return the resulting tally with the voter's state.

        Raises:
            Unauthenticated: no voter
            NotFound: the target does not exist or is hidden from the voter
            Conflict: a concurrent vote by the same voter changed the record first
        """
        kind = VoteTargetKind(target_kind)
        direction = VoteDirection(direction)
        self.access.require(voter, Resource.VOTE, Action.CAST)
        await self._visible_target(target_id, kind, voter)

        key = vote_key(kind.value, target_id, voter.user_id)
        existing = await self.store.read("votes", key)
        now = self.clock()

        async with self.store.transaction():
            if existing is None:
                await self.store.create("votes", {
                    "voter_id": voter.user_id,
                    "target_id": target_id,
                    "target_kind": kind.value,
                    "direction": direction.value,
                    "created_at": now,
                    "updated_at": now,
                }, id=key)
                await self._bump(kind, target_id, **{direction.counter: 1, "total_votes": direction.sign})
                user_vote = direction.value

            elif existing.direction == direction.value:
                removed = await self.store.delete_where("votes", id=key, direction=direction.value)
                if removed != 1:
                    raise Conflict()
                await self._bump(kind, target_id, **{direction.counter: -1, "total_votes": -direction.sign})
                user_vote = None

            else:
                previous = VoteDirection(existing.direction)
                flipped = await self.store.compare_and_set(
                    "votes",
                    key,
                    {"direction": previous.value},
                    {"direction": direction.value, "updated_at": now},
                )
                if not flipped:
                    raise Conflict()
                await self._bump(kind, target_id, **{
                    direction.counter: 1,
                    previous.counter: -1,
                    "total_votes": 2 * direction.sign,
                })
                user_vote = direction.value

        tally = await self._tally(target_id, kind)
        return Tally(tally.upvotes, tally.downvotes, tally.total_votes, user_vote)

    async def remove_vote(self, voter: Identity, target_id: str, target_kind) -> Tally:
        """Withdraw the voter's vote, if any. Idempotent."""
        kind = VoteTargetKind(target_kind)
        self.access.require(voter, Resource.VOTE, Action.CAST)
        await self._visible_target(target_id, kind, voter)

        key = vote_key(kind.value, target_id, voter.user_id)
        existing = await self.store.read("votes", key)
        if existing is not None:
            direction = VoteDirection(existing.direction)
            async with self.store.transaction():
                removed = await self.store.delete_where("votes", id=key, direction=direction.value)
                if removed != 1:
                    raise Conflict()
                await self._bump(kind, target_id, **{direction.counter: -1, "total_votes": -direction.sign})

        return await self._tally(target_id, kind)

    async def get_tally(self, target_id: str, target_kind, viewer: Optional[Identity] = None) -> Tally:
        """Counters of a visible target, with the viewer's own vote when known."""
        kind = VoteTargetKind(target_kind)
        self.access.require(viewer, Resource.VOTE, Action.READ)
        target = await self._visible_target(target_id, kind, viewer)
        user_vote = None
        if viewer is not None:
            user_vote = await self.get_user_vote(viewer.user_id, target_id, kind)
        return Tally(target.upvotes, target.downvotes, target.total_votes, user_vote)

    async def get_user_vote(self, voter_id: str, target_id: str, target_kind) -> Optional[str]:
        """The voter's current direction on the target, or None."""
        kind = VoteTargetKind(target_kind)
        vote = await self.store.read("votes", vote_key(kind.value, target_id, voter_id))
        return vote.direction if vote is not None else None
