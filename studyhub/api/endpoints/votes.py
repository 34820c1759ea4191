"""
Voting on answers and comments.
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends

from studyhub.api.dependencies import get_current_identity, get_optional_identity, get_vote_ledger
from studyhub.core.security import Identity
from studyhub.schemas.vote import TallyOut, VoteIn
from studyhub.services.votes import Tally, VoteLedger

router = APIRouter()

TargetKind = Literal["answer", "comment"]


def _out(tally: Tally) -> TallyOut:
    return TallyOut(
        upvotes=tally.upvotes,
        downvotes=tally.downvotes,
        total_votes=tally.total_votes,
        user_vote=tally.user_vote,
    )


@router.post("", response_model=TallyOut)
async def cast_vote(
    payload: VoteIn,
    identity: Identity = Depends(get_current_identity),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    """
    Vote on a target. Repeating the same direction withdraws the vote,
    the opposite direction flips it.
    """
    tally = await ledger.cast_vote(identity, payload.target_id, payload.target_kind, payload.direction)
    return _out(tally)


@router.get("/{target_kind}/{target_id}", response_model=TallyOut)
async def get_tally(
    target_kind: TargetKind,
    target_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    return _out(await ledger.get_tally(target_id, target_kind, viewer=identity))


@router.delete("/{target_kind}/{target_id}", response_model=TallyOut)
async def remove_vote(
    target_kind: TargetKind,
    target_id: str,
    identity: Identity = Depends(get_current_identity),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    return _out(await ledger.remove_vote(identity, target_id, target_kind))
