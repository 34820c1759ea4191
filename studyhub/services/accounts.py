"""
Account Service

Signup, signin and profile management on top of the document store.
"""

from functools import lru_cache
from typing import Tuple

from studyhub.core.error_codes import ErrorCode
from studyhub.core.exceptions import Conflict, InvalidCredentials, NotFound, ValidationFailed
from studyhub.core.security import SessionIssuer, get_password_hash, verify_password
from studyhub.db.store import DocumentStore, DuplicateDocument
from studyhub.helpers.clock import Clock, utcnow
from studyhub.logging import get_logger
from studyhub.models import User
from studyhub.services.mailer import MailDispatcher
from studyhub.services.uploads import UploadRule, check_upload

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Checked against when the email is unknown so both failures cost one bcrypt round
    return get_password_hash("studyhub-timing-guard")


class AccountService:
    def __init__(
        self,
        store: DocumentStore,
        issuer: SessionIssuer,
        mailer: MailDispatcher,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.issuer = issuer
        self.mailer = mailer
        self.clock = clock

    async def signup(self, username: str, email: str, password: str) -> Tuple[User, str]:
        """
        Register a new account and return it with a fresh token.

        Raises:
            Conflict: the email is already registered (case-insensitive)
        """
        email = email.strip().lower()
        if await self.store.find_one("users", email=email) is not None:
            raise Conflict("Email already registered", error_code=ErrorCode.EMAIL_ALREADY_REGISTERED)

        try:
            user = await self.store.create("users", {
                "username": username.strip(),
                "email": email,
                "password_hash": get_password_hash(password),
            })
        except DuplicateDocument:
            # lost a race with a concurrent signup for the same email
            raise Conflict("Email already registered", error_code=ErrorCode.EMAIL_ALREADY_REGISTERED)

        logger.info("User registered", user_id=user.id)
        self.mailer.send_welcome(user.email, user.username)
        return user, self.issuer.issue(user.id, user.email)

    async def signin(self, email: str, password: str) -> Tuple[User, str]:
        user = await self.store.find_one("users", email=email.strip().lower())
        if user is None:
            verify_password(password, _dummy_hash())
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return user, self.issuer.issue(user.id, user.email)

    async def profile(self, user_id: str) -> User:
        user = await self.store.read("users", user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def set_profile_image(
        self,
        user_id: str,
        reference: str,
        filename: str,
        mime_type: str,
        size: int,
    ) -> User:
        """Point the profile at an already stored image, after gating its metadata."""
        decision = check_upload(UploadRule.PROFILE_IMAGE, filename, mime_type, size)
        if not decision.accepted:
            raise ValidationFailed(decision.reason, error_code=ErrorCode.UPLOAD_REJECTED)

        if not await self.store.update("users", user_id, {"profile_image": reference, "updated_at": self.clock()}):
            raise NotFound("User not found")
        return await self.profile(user_id)

    async def clear_profile_image(self, user_id: str) -> User:
        if not await self.store.update("users", user_id, {"profile_image": None, "updated_at": self.clock()}):
            raise NotFound("User not found")
        return await self.profile(user_id)
