"""
Answers on content and comments on answers.
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from studyhub.api.dependencies import get_current_identity, get_discussions, get_optional_identity
from studyhub.core.security import Identity
from studyhub.schemas.discussion import AnswerCreate, AnswerOut, CommentCreate, CommentOut
from studyhub.services.discussions import DiscussionService

router = APIRouter()


def _render(model, pairs):
    out = []
    for item, user_vote in pairs:
        row = model.model_validate(item)
        row.user_vote = user_vote
        out.append(row)
    return out


@router.post("/content/{content_id}/answers", response_model=AnswerOut, status_code=status.HTTP_201_CREATED)
async def create_answer(
    content_id: str,
    payload: AnswerCreate,
    identity: Identity = Depends(get_current_identity),
    discussions: DiscussionService = Depends(get_discussions),
):
    return await discussions.create_answer(content_id, identity, payload.body)


@router.get("/content/{content_id}/answers", response_model=List[AnswerOut])
async def list_answers(
    content_id: str,
    sort: Literal["votes", "newest"] = Query("votes"),
    identity: Optional[Identity] = Depends(get_optional_identity),
    discussions: DiscussionService = Depends(get_discussions),
):
    return _render(AnswerOut, await discussions.list_answers(content_id, identity, sort=sort))


@router.delete("/answers/{answer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_answer(
    answer_id: str,
    identity: Identity = Depends(get_current_identity),
    discussions: DiscussionService = Depends(get_discussions),
):
    await discussions.delete_answer(answer_id, identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/answers/{answer_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def create_comment(
    answer_id: str,
    payload: CommentCreate,
    identity: Identity = Depends(get_current_identity),
    discussions: DiscussionService = Depends(get_discussions),
):
    return await discussions.create_comment(answer_id, identity, payload.body)


@router.get("/answers/{answer_id}/comments", response_model=List[CommentOut])
async def list_comments(
    answer_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    discussions: DiscussionService = Depends(get_discussions),
):
    return _render(CommentOut, await discussions.list_comments(answer_id, identity))


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    identity: Identity = Depends(get_current_identity),
    discussions: DiscussionService = Depends(get_discussions),
):
    await discussions.delete_comment(comment_id, identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
