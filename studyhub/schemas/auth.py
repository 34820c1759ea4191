"""
Pydantic schemas for authentication and the password reset flow.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from studyhub.schemas.user import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, UserOut, check_password


class _EmailIn(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class Login(_EmailIn):
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AuthOut(BaseModel):
    """Signup / signin result"""
    user: UserOut
    token: str
    token_type: str = "bearer"


class PasswordResetRequestIn(_EmailIn):
    pass


class PasswordResetVerifyIn(_EmailIn):
    code: str = Field(..., pattern=r"^\d{6}$")


class PasswordResetCommitIn(_EmailIn):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        return check_password(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
