from infrastructure.models.account import (
    Account,
    AccountResponse,
    AccountStatus,
    AuthResult,
    DBAccount,
    NewAccount,
    PasswordLoginRequest,
    QuickLoginRequest,
    RegisterRequest,
    TokenResponse,
)
from infrastructure.models.channel import Channel, ChannelRecord
from infrastructure.models.sms_log import SmsLog, SmsLogEntry

__all__ = [
    "Account",
    "AccountResponse",
    "AccountStatus",
    "AuthResult",
    "DBAccount",
    "NewAccount",
    "PasswordLoginRequest",
    "QuickLoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "Channel",
    "ChannelRecord",
    "SmsLog",
    "SmsLogEntry",
]
