from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.core.config import settings
from studyhub.core.permissions import AccessControl
from studyhub.core.security import Identity, SessionIssuer, build_session_issuer
from studyhub.db.session import SessionAsync
from studyhub.db.store import DocumentStore
from studyhub.services.accounts import AccountService
from studyhub.services.chat import ChatService
from studyhub.services.discussions import DiscussionService
from studyhub.services.mailer import MailDispatcher
from studyhub.services.moderation import ModerationWorkflow
from studyhub.services.password_reset import PasswordResetFlow
from studyhub.services.votes import VoteLedger

# auto_error is off so a missing token reaches AccessControl and gets the
# same 401 body as an invalid one
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/token",
    description="Authenticate with email and password",
    auto_error=False,
)

_issuer: Optional[SessionIssuer] = None


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionAsync() as session:
        yield session


async def get_redis():
    redis = aioredis.from_url(settings.REDIS_URL)
    try:
        yield redis
    finally:
        await redis.aclose()


def get_store(db: AsyncSession = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)


def get_session_issuer() -> SessionIssuer:
    global _issuer
    if _issuer is None:
        _issuer = build_session_issuer()
    return _issuer


def get_access_control(issuer: SessionIssuer = Depends(get_session_issuer)) -> AccessControl:
    return AccessControl(issuer, settings.admin_emails)


def get_mailer(request: Request) -> MailDispatcher:
    return request.app.state.mailer


# ==================== Identity ====================

async def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    access: AccessControl = Depends(get_access_control),
) -> Identity:
    return access.authenticate(token)


async def get_optional_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    access: AccessControl = Depends(get_access_control),
) -> Optional[Identity]:
    return access.authenticate_optional(token)


# ==================== Services ====================

def get_account_service(
    store: DocumentStore = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer),
    mailer: MailDispatcher = Depends(get_mailer),
) -> AccountService:
    return AccountService(store, issuer, mailer)


def get_password_reset_flow(
    store: DocumentStore = Depends(get_store),
    mailer: MailDispatcher = Depends(get_mailer),
) -> PasswordResetFlow:
    return PasswordResetFlow(store, mailer)


def get_moderation(
    store: DocumentStore = Depends(get_store),
    access: AccessControl = Depends(get_access_control),
) -> ModerationWorkflow:
    return ModerationWorkflow(store, access)


def get_vote_ledger(
    store: DocumentStore = Depends(get_store),
    access: AccessControl = Depends(get_access_control),
    moderation: ModerationWorkflow = Depends(get_moderation),
) -> VoteLedger:
    return VoteLedger(store, access, moderation)


def get_discussions(
    store: DocumentStore = Depends(get_store),
    access: AccessControl = Depends(get_access_control),
    moderation: ModerationWorkflow = Depends(get_moderation),
    ledger: VoteLedger = Depends(get_vote_ledger),
) -> DiscussionService:
    return DiscussionService(store, access, moderation, ledger)


def get_chat(
    store: DocumentStore = Depends(get_store),
    access: AccessControl = Depends(get_access_control),
    moderation: ModerationWorkflow = Depends(get_moderation),
) -> ChatService:
    return ChatService(store, access, moderation)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
