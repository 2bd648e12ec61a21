import re
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

# Philippine mobile format: +63 followed by 10 digits
PHONE_RE = re.compile(r"^\+63\d{10}$")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    captcha_token: str | None = None


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    phone_number: str
    password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)
    captcha_token: str | None = None

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_complexity(cls, v: str) -> str:
        if not (
            any(c.islower() for c in v)
            and any(c.isupper() for c in v)
            and any(c.isdigit() for c in v)
        ):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number"
            )
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self

    def profile(self) -> dict[str, str]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
        }


class CaptchaVerifyRequest(BaseModel):
    captcha_token: str | None = None


class AttemptResponse(BaseModel):
    success: Literal[True] = True
    message: str
