"""
Subject chat: messages, replies and participants.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from studyhub.api.dependencies import get_chat, get_current_identity, get_optional_identity
from studyhub.core.security import Identity
from studyhub.schemas.chat import ChatHistoryOut, ChatMessageCreate, ChatMessageOut, ChatReplyIn, ParticipantOut
from studyhub.services.chat import DEFAULT_HISTORY_LIMIT, ChatService

router = APIRouter()


@router.post("/subjects/{subject_id}/chat", response_model=ChatMessageOut, status_code=status.HTTP_201_CREATED)
async def post_message(
    subject_id: str,
    payload: ChatMessageCreate,
    identity: Identity = Depends(get_current_identity),
    chat: ChatService = Depends(get_chat),
):
    return await chat.post_message(subject_id, identity, payload.text, payload.message_type)


@router.get("/subjects/{subject_id}/chat", response_model=ChatHistoryOut)
async def list_messages(
    subject_id: str,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=200),
    identity: Optional[Identity] = Depends(get_optional_identity),
    chat: ChatService = Depends(get_chat),
):
    messages, total = await chat.list_messages(subject_id, identity, limit=limit)
    return ChatHistoryOut(
        messages=[ChatMessageOut.model_validate(m) for m in messages],
        total_messages=total,
    )


@router.get("/subjects/{subject_id}/chat/participants", response_model=List[ParticipantOut])
async def list_participants(
    subject_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    chat: ChatService = Depends(get_chat),
):
    return await chat.participants(subject_id, identity)


@router.post("/chat/{message_id}/reply", response_model=ChatMessageOut, status_code=status.HTTP_201_CREATED)
async def reply(
    message_id: str,
    payload: ChatReplyIn,
    identity: Identity = Depends(get_current_identity),
    chat: ChatService = Depends(get_chat),
):
    return await chat.reply(message_id, identity, payload.text)


@router.delete("/chat/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: str,
    identity: Identity = Depends(get_current_identity),
    chat: ChatService = Depends(get_chat),
):
    await chat.delete_message(message_id, identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
