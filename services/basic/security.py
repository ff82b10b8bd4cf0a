"""Password hashing and JWT access token services."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from core.config import settings
from core.exceptions import InvalidTokenError, SigningUnavailableError


class PasswordHasher(Protocol):
    async def hash_password(self, password: str) -> str: ...

    async def verify_password(self, password: str, password_hash: str) -> bool: ...


class BcryptPasswordHasher:
    """bcrypt hashing, run in a worker thread to keep the event loop free."""

    def __init__(self, rounds: Optional[int] = None) -> None:
        self._rounds = rounds or settings.BCRYPT_ROUNDS

    async def hash_password(self, password: str) -> str:
        return await asyncio.to_thread(self._hash, password)

    async def verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self._verify, password, password_hash)

    def _hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def _verify(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False


@dataclass
class TokenResult:
    """Represents a generated token and its metadata."""

    token: str
    expires_at: datetime


@dataclass
class TokenPayload:
    """Decoded JWT payload."""

    account_id: str
    token_type: str
    expires_at: datetime
    issued_at: datetime
    phone: Optional[str] = None


class TokenService:
    """Signs and decodes access tokens bound to an account identity.

    The full claim set carries `phone` and `name`; the light set used by
    quick login carries only the subject.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_expires_minutes: Optional[int] = None,
    ) -> None:
        self._secret_key = secret_key or settings.JWT_SECRET_KEY
        self._algorithm = algorithm or settings.JWT_ALGORITHM
        self._access_delta = timedelta(
            minutes=access_expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    def create_access_token(self, account: Any, light: bool = False) -> TokenResult:
        """Issue a token for any object exposing `id`, `phone` and `display_name`."""

        if not self._secret_key:
            raise SigningUnavailableError(detail="JWT secret key is not configured.")

        now = datetime.now(timezone.utc)
        expires_at = now + self._access_delta
        payload: Dict[str, Any] = {
            "sub": str(account.id),
            "exp": int(expires_at.timestamp()),
            "iat": int(now.timestamp()),
            "type": "access",
            "jti": uuid4().hex,
        }
        if not light:
            payload["phone"] = account.phone
            payload["name"] = account.display_name

        try:
            token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        except JWTError as exc:
            raise SigningUnavailableError(detail=str(exc)) from exc
        return TokenResult(token=token, expires_at=expires_at)

    def decode_token(self, token: str) -> TokenPayload:
        if not self._secret_key:
            raise SigningUnavailableError(detail="JWT secret key is not configured.")

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise InvalidTokenError(message="Token has expired.") from exc
        except JWTError as exc:
            raise InvalidTokenError(message="Invalid token signature or payload.") from exc

        if payload.get("type") != "access":
            raise InvalidTokenError(message="Token type mismatch.")

        account_id = payload.get("sub")
        if account_id is None:
            raise InvalidTokenError(message="Token payload missing subject.")

        try:
            exp_timestamp = int(payload["exp"])
            iat_timestamp = int(payload["iat"])
        except KeyError as exc:
            raise InvalidTokenError(message="Token payload missing required claim.") from exc
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError(message="Token timestamps are invalid.") from exc

        return TokenPayload(
            account_id=str(account_id),
            token_type="access",
            expires_at=datetime.fromtimestamp(exp_timestamp, tz=timezone.utc),
            issued_at=datetime.fromtimestamp(iat_timestamp, tz=timezone.utc),
            phone=payload.get("phone"),
        )
