"""
Password Reset Flow

Three steps per email address:

    request(email)              -> a 6 digit code is mailed (60 min validity)
    verify(email, code)         -> the code is spent, a verification is opened (10 min)
    commit(email, new_password) -> the verification is spent, the password replaced

Codes and verifications are single use. Consumption is a compare-and-set on
the ``consumed`` flag, so two concurrent callers can never both spend the
same artifact, and each step's writes are applied in one transaction.
"""

from datetime import timedelta

from studyhub.core.config import settings
from studyhub.core.exceptions import CodeExpired, InvalidCode, NotVerified, VerificationExpired
from studyhub.core.security import generate_otp, get_password_hash, hash_otp
from studyhub.db.store import DocumentStore
from studyhub.helpers.clock import Clock, ensure_aware, utcnow
from studyhub.logging import get_logger
from studyhub.services.mailer import MailDispatcher

logger = get_logger(__name__)

GENERIC_ACK = "If the email exists, a verification code has been sent."
VERIFIED_ACK = "Code verified. You can now set a new password."
COMMITTED_ACK = "Password updated successfully."


class PasswordResetFlow:
    def __init__(
        self,
        store: DocumentStore,
        mailer: MailDispatcher,
        clock: Clock = utcnow,
        code_ttl: timedelta = timedelta(minutes=settings.RESET_CODE_TTL_MINUTES),
        verification_ttl: timedelta = timedelta(minutes=settings.RESET_VERIFICATION_TTL_MINUTES),
    ):
        self.store = store
        self.mailer = mailer
        self.clock = clock
        self.code_ttl = code_ttl
        self.verification_ttl = verification_ttl

    async def request(self, email: str) -> str:
        """
        Start a reset. The acknowledgement is identical whether or not the
        email is registered; earlier codes for the email stay valid.
        """
        email = email.strip().lower()
        user = await self.store.find_one("users", email=email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return GENERIC_ACK

        code = generate_otp()
        now = self.clock()
        await self.store.create("reset_requests", {
            "user_id": user.id,
            "email": email,
            "code_hash": hash_otp(code),
            "created_at": now,
            "expires_at": now + self.code_ttl,
            "consumed": False,
        })
        self.mailer.send_password_reset_code(email, code)
        logger.info("Password reset code issued", user_id=user.id)
        return GENERIC_ACK

    async def verify(self, email: str, code: str) -> str:
        """
        Spend a code and open a short verification window.

        Raises:
            InvalidCode: no unspent request matches, or another caller spent it first
            CodeExpired: the newest matching request is past its window (left unspent)
        """
        email = email.strip().lower()
        reset = await self.store.find_one(
            "reset_requests",
            order_by="-created_at",
            email=email,
            code_hash=hash_otp(code.strip()),
            consumed=False,
        )
        if reset is None:
            raise InvalidCode()

        now = self.clock()
        if now >= ensure_aware(reset.expires_at):
            raise CodeExpired()

        async with self.store.transaction():
            spent = await self.store.compare_and_set(
                "reset_requests",
                reset.id,
                {"consumed": False},
                {"consumed": True, "consumed_at": now},
            )
            if not spent:
                raise InvalidCode()
            await self.store.create("reset_verifications", {
                "email": email,
                "request_id": reset.id,
                "created_at": now,
                "expires_at": now + self.verification_ttl,
                "consumed": False,
            })

        logger.info("Password reset code verified", request_id=reset.id)
        return VERIFIED_ACK

    async def commit(self, email: str, new_password: str) -> str:
        """
        Replace the password using the newest open verification.

        Raises:
            NotVerified: no unspent verification, or another caller spent it first
            VerificationExpired: the verification window has closed
        """
        email = email.strip().lower()
        verification = await self.store.find_one(
            "reset_verifications",
            order_by="-created_at",
            email=email,
            consumed=False,
        )
        if verification is None:
            raise NotVerified()

        now = self.clock()
        if now >= ensure_aware(verification.expires_at):
            raise VerificationExpired()

        user = await self.store.find_one("users", email=email)
        if user is None:
            raise NotVerified()

        password_hash = get_password_hash(new_password)
        async with self.store.transaction():
            spent = await self.store.compare_and_set(
                "reset_verifications",
                verification.id,
                {"consumed": False},
                {"consumed": True, "consumed_at": now},
            )
            if not spent:
                raise NotVerified()
            await self.store.update("users", user.id, {"password_hash": password_hash, "updated_at": now})

        logger.info("Password reset committed", user_id=user.id)
        return COMMITTED_ACK
