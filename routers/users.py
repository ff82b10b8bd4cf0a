"""User router exposing register / login / quick login / profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from core.exceptions import ForbiddenError
from dependencies.providers import AuthServiceDep, CurrentAccountIdDep
from infrastructure.models.account import (
    AccountResponse,
    AuthResult,
    PasswordLoginRequest,
    QuickLoginRequest,
    RegisterRequest,
    TokenResponse,
)


router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/reg",
    response_model=AuthResult,
    status_code=status.HTTP_201_CREATED,
    summary="注册（手机号+密码+短信验证码）",
    description="校验手机号与密码格式、核对最近一条短信验证码，创建账号并返回用户信息与access token。",
)
async def register_user(
    payload: RegisterRequest,
    auth_service: AuthServiceDep,
) -> AuthResult:
    return await auth_service.register(payload.phone, payload.password, payload.code)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="密码登录（手机号+密码）",
)
async def login_user(
    payload: PasswordLoginRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    return await auth_service.login(payload.phone, payload.password)


@router.post(
    "/quickLogin",
    response_model=AuthResult,
    summary="短信验证码快捷登录",
    description="验证码正确即登录；手机号未注册时自动创建账号，未激活账号会被激活。",
)
async def quick_login(
    payload: QuickLoginRequest,
    auth_service: AuthServiceDep,
) -> AuthResult:
    """Log in (or sign up) with an SMS code only."""

    return await auth_service.quick_login(payload.phone, payload.code, payload.channel)


@router.get(
    "/me",
    response_model=AccountResponse,
    summary="查询当前用户信息",
)
async def get_me(
    auth_service: AuthServiceDep,
    current_account_id: CurrentAccountIdDep,
) -> AccountResponse:
    return await auth_service.get_account(current_account_id)


@router.get(
    "/{user_id}",
    response_model=AccountResponse,
    summary="按ID查询用户（仅限本人）",
)
async def get_user(
    user_id: str,
    auth_service: AuthServiceDep,
    current_account_id: CurrentAccountIdDep,
) -> AccountResponse:
    if user_id != current_account_id:
        raise ForbiddenError()
    return await auth_service.get_account(user_id)
