"""Authentication dependencies for HTTP endpoints."""

from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import InvalidTokenError
from core.logger import get_logger
from services.basic.security import TokenService

security = HTTPBearer(auto_error=False)
logger = get_logger(__name__)


def get_token_service() -> TokenService:
    """Provide the token service used for JWT operations."""

    return TokenService()


# ----------------------------------------------------
# HTTP: 验证 Access Token 并返回 account_id
# ----------------------------------------------------
async def get_current_account_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    x_auth_token: Optional[str] = Header(None, alias="X-Auth-Token"),
    token_service: TokenService = Depends(get_token_service),
) -> str:
    """Validate the access token from headers and return the account id (sub)."""

    token = _extract_http_token(credentials, x_auth_token)
    if not token or not token.strip():
        raise InvalidTokenError(
            message="Missing authentication token. Provide Authorization: Bearer <token> or X-Auth-Token header.",
        )

    token_prefix = token[:20] + "..." if len(token) > 20 else token
    try:
        payload = token_service.decode_token(token)
    except InvalidTokenError as exc:
        logger.warning(
            "Token validation failed: %s (Token prefix: %s)",
            exc.message,
            token_prefix,
        )
        raise
    logger.debug(f"Token validation successful: account_id={payload.account_id}")
    return payload.account_id


def _extract_http_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    x_auth_token: Optional[str],
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    if x_auth_token:
        return x_auth_token
    return None
