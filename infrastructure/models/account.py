"""Account ORM and Pydantic models."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.db.mysql_client import Base


class AccountStatus(IntEnum):
    """Lifecycle status of an account."""

    INACTIVE = 0
    ACTIVE = 1


class Account(Base):
    """SQLAlchemy ORM model for a shop account keyed by phone number."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[int] = mapped_column(Integer, default=AccountStatus.INACTIVE, nullable=False)
    channel_id: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    activated_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)


class NewAccount(BaseModel):
    """Fields supplied by a flow when creating an account. The store assigns `id`."""

    phone: str
    password_hash: str = Field(repr=False)
    display_name: str
    status: AccountStatus = AccountStatus.ACTIVE
    channel_id: int = 0
    created_at: int
    activated_at: Optional[int] = None


class DBAccount(BaseModel):
    """Internal representation of an account including the password hash."""

    id: str
    phone: str
    password_hash: str = Field(repr=False)
    display_name: str
    status: AccountStatus
    channel_id: int = 0
    created_at: int
    activated_at: Optional[int] = None

    model_config = {"from_attributes": True}

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


class AccountResponse(BaseModel):
    """Public facing account payload. Never carries the password hash."""

    id: str
    phone: str
    display_name: str
    status: AccountStatus
    channel_id: int
    created_at: int
    activated_at: Optional[int] = None

    model_config = {"from_attributes": True}


class RegisterRequest(BaseModel):
    """Request body for explicit sign-up with an SMS code."""

    phone: str = Field(max_length=20)
    password: str = Field(max_length=128)
    code: str = Field(max_length=10)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        return value.strip()


class PasswordLoginRequest(BaseModel):
    """Request body for phone + password login."""

    phone: str = Field(max_length=20)
    password: str = Field(max_length=128)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        return value.strip()


class QuickLoginRequest(BaseModel):
    """Request body for passwordless phone + SMS code login."""

    phone: str = Field(max_length=20)
    code: str = Field(max_length=10)
    channel: str = Field(default="", max_length=64, description="Acquisition channel name")

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        return value.strip()


class TokenResponse(BaseModel):
    """Access token returned by password login."""

    token: str


class AuthResult(BaseModel):
    """Account plus freshly issued access token."""

    user: AccountResponse
    token: str
