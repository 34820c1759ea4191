"""
Authentication and account endpoints.

- /signup, /signin: create an account or sign in, both return the profile and a bearer token
- /token: OAuth2 password form used by the interactive docs ("Authorize")
- /me: the caller's profile; /me/profile-image sets or clears the image reference
- /password-reset/{request,verify,commit}: three-step reset by emailed code

The reset endpoints are rate limited per (email, client ip) and answer
``request`` identically whether or not the email is registered.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from redis.asyncio import Redis

from studyhub.api.dependencies import (
    client_ip,
    get_access_control,
    get_account_service,
    get_current_identity,
    get_password_reset_flow,
    get_redis,
)
from studyhub.core.config import settings
from studyhub.core.exceptions import RateLimited
from studyhub.core.permissions import AccessControl
from studyhub.core.rate_limit import allow
from studyhub.core.security import Identity
from studyhub.schemas.auth import (
    AuthOut,
    Login,
    PasswordResetCommitIn,
    PasswordResetRequestIn,
    PasswordResetVerifyIn,
    Token,
)
from studyhub.schemas.common import Message
from studyhub.schemas.user import ProfileImageIn, UserCreate, UserOut
from studyhub.services.accounts import AccountService
from studyhub.services.password_reset import PasswordResetFlow

router = APIRouter()


def _user_out(user, access: AccessControl) -> UserOut:
    out = UserOut.model_validate(user)
    out.is_admin = access.is_administrator(Identity(user_id=user.id, email=user.email))
    return out


@router.post("/signup", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: UserCreate,
    accounts: AccountService = Depends(get_account_service),
    access: AccessControl = Depends(get_access_control),
):
    user, token = await accounts.signup(payload.username, payload.email, payload.password)
    return AuthOut(user=_user_out(user, access), token=token)


@router.post("/signin", response_model=AuthOut)
async def signin(
    payload: Login,
    accounts: AccountService = Depends(get_account_service),
    access: AccessControl = Depends(get_access_control),
):
    user, token = await accounts.signin(payload.email, payload.password)
    return AuthOut(user=_user_out(user, access), token=token)


@router.post("/token", response_model=Token)
async def oauth2_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Standard OAuth2 password endpoint used by the docs UI.

    The OAuth2 ``username`` field carries the email.
    """
    _, token = await accounts.signin(form_data.username, form_data.password)
    return Token(access_token=token)


@router.get("/me", response_model=UserOut)
async def read_me(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
    access: AccessControl = Depends(get_access_control),
):
    user = await accounts.profile(identity.user_id)
    return _user_out(user, access)


@router.put("/me/profile-image", response_model=UserOut)
async def set_profile_image(
    payload: ProfileImageIn,
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
    access: AccessControl = Depends(get_access_control),
):
    user = await accounts.set_profile_image(
        identity.user_id,
        payload.reference,
        payload.filename,
        payload.mime_type,
        payload.size,
    )
    return _user_out(user, access)


@router.delete("/me/profile-image", response_model=UserOut)
async def clear_profile_image(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
    access: AccessControl = Depends(get_access_control),
):
    user = await accounts.clear_profile_image(identity.user_id)
    return _user_out(user, access)


# ==================== Password reset ====================

@router.post("/password-reset/request", response_model=Message, status_code=status.HTTP_202_ACCEPTED)
async def password_reset_request(
    payload: PasswordResetRequestIn,
    request: Request,
    flow: PasswordResetFlow = Depends(get_password_reset_flow),
    redis: Redis = Depends(get_redis),
):
    if not await allow(
        redis, "pr:request", payload.email, client_ip(request),
        max_attempts=settings.RESET_REQUEST_MAX_ATTEMPTS,
        window_sec=settings.RESET_RATE_WINDOW_SECONDS,
    ):
        raise RateLimited()
    return Message(message=await flow.request(payload.email))


@router.post("/password-reset/verify", response_model=Message)
async def password_reset_verify(
    payload: PasswordResetVerifyIn,
    request: Request,
    flow: PasswordResetFlow = Depends(get_password_reset_flow),
    redis: Redis = Depends(get_redis),
):
    if not await allow(
        redis, "pr:verify", payload.email, client_ip(request),
        max_attempts=settings.RESET_VERIFY_MAX_ATTEMPTS,
        window_sec=settings.RESET_RATE_WINDOW_SECONDS,
    ):
        raise RateLimited("Too many attempts")
    return Message(message=await flow.verify(payload.email, payload.code))


@router.post("/password-reset/commit", response_model=Message)
async def password_reset_commit(
    payload: PasswordResetCommitIn,
    flow: PasswordResetFlow = Depends(get_password_reset_flow),
):
    return Message(message=await flow.commit(payload.email, payload.new_password))
