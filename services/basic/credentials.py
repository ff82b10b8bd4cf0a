"""Structural checks on phone numbers and passwords, applied before any I/O."""

from __future__ import annotations

import re
from typing import Optional

from core.config import settings
from core.exceptions import InvalidCredentialFormatError

# bcrypt only considers (and bcrypt>=5 rejects) input past 72 bytes
PASSWORD_MAX_BYTES = 72


class CredentialValidator:
    def __init__(
        self,
        phone_pattern: Optional[str] = None,
        password_min_length: Optional[int] = None,
    ) -> None:
        self._phone_re = re.compile(phone_pattern or settings.PHONE_PATTERN)
        self._password_min_length = (
            password_min_length if password_min_length is not None else settings.PASSWORD_MIN_LENGTH
        )

    def validate(self, phone: str, password: Optional[str] = None) -> None:
        """Raise `InvalidCredentialFormatError` on a malformed phone or weak password.

        `password=None` skips the password rules (quick login has none).
        """
        if not phone or not self._phone_re.match(phone):
            raise InvalidCredentialFormatError(message="手机号格式错误。")
        if password is None:
            return
        if not password:
            raise InvalidCredentialFormatError(message="密码不能为空。")
        if len(password) < self._password_min_length:
            raise InvalidCredentialFormatError(
                message=f"密码长度需不小于{self._password_min_length}位。"
            )
        if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise InvalidCredentialFormatError(
                message=f"密码长度不能超过{PASSWORD_MAX_BYTES}字节。"
            )
