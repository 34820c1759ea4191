"""
Moderated content endpoints: subjects, videos and reference links.
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from studyhub.api.dependencies import get_current_identity, get_moderation, get_optional_identity
from studyhub.core.security import Identity
from studyhub.schemas.content import ContentCreate, ContentOut, DecisionIn
from studyhub.services.moderation import ModerationWorkflow

router = APIRouter()

KindQuery = Literal["subject", "video", "reference_link"]


@router.post("", response_model=ContentOut, status_code=status.HTTP_201_CREATED)
async def submit_content(
    payload: ContentCreate,
    identity: Identity = Depends(get_current_identity),
    moderation: ModerationWorkflow = Depends(get_moderation),
):
    """Submit an item; it stays pending until an administrator decides."""
    return await moderation.submit(identity, payload.kind, payload.payload)


@router.get("", response_model=List[ContentOut])
async def list_content(
    kind: KindQuery = Query(...),
    identity: Optional[Identity] = Depends(get_optional_identity),
    moderation: ModerationWorkflow = Depends(get_moderation),
):
    return await moderation.list(kind, identity)


@router.get("/pending", response_model=List[ContentOut])
async def review_queue(
    kind: Optional[KindQuery] = Query(None),
    identity: Identity = Depends(get_current_identity),
    moderation: ModerationWorkflow = Depends(get_moderation),
):
    return await moderation.pending(kind, identity)


@router.get("/{content_id}", response_model=ContentOut)
async def get_content(
    content_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    moderation: ModerationWorkflow = Depends(get_moderation),
):
    return await moderation.get(content_id, identity)


@router.put("/{content_id}/decision", response_model=ContentOut)
async def decide_content(
    content_id: str,
    payload: DecisionIn,
    identity: Identity = Depends(get_current_identity),
    moderation: ModerationWorkflow = Depends(get_moderation),
):
    return await moderation.decide(content_id, payload.decision, identity, reason=payload.reason)


@router.delete("/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_content(
    content_id: str,
    identity: Identity = Depends(get_current_identity),
    moderation: ModerationWorkflow = Depends(get_moderation),
):
    await moderation.delete(content_id, identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
