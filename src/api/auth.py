"""Auth gateway routes.

Provides:
    POST /api/auth/sign-up/email  — Register with email + password.
    POST /api/auth/sign-in/email  — Log in.
    POST /api/auth/sign-out       — Revoke the current session.
    GET  /api/auth/get-session    — Current session and user, or ``null``.

These are the gateway's own endpoints; the frontend-facing wrappers live in
:mod:`src.api.auth_actions`.  Gateway errors propagate as
:class:`~src.exceptions.AuthGatewayError` and are rendered by the app handler.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import AuthGatewayDep
from src.schemas.auth import (
    AuthTokenResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from src.services.auth_gateway import AuthResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def to_response(result: AuthResult) -> JSONResponse:
    """Turn a gateway result into a response carrying its ``Set-Cookie`` headers verbatim."""
    response = JSONResponse(status_code=result.status_code, content=result.body)
    for cookie in result.set_cookies:
        response.headers.append("set-cookie", cookie)
    return response


@router.post(
    "/sign-up/email",
    summary="Register with email and password",
    responses={
        200: {"model": AuthTokenResponse},
        400: {"description": "Password policy violation"},
        409: {"description": "Email already registered"},
    },
)
async def sign_up_email(
    payload: SignUpRequest, request: Request, gateway: AuthGatewayDep
) -> JSONResponse:
    result = await gateway.sign_up_email(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role.value,
        image=payload.image,
        image_cld_pub_id=payload.image_cld_pub_id,
        headers=request.headers,
    )
    return to_response(result)


@router.post(
    "/sign-in/email",
    summary="Log in with email and password",
    responses={
        200: {"model": AuthTokenResponse},
        401: {"description": "Invalid email or password"},
    },
)
async def sign_in_email(
    payload: SignInRequest, request: Request, gateway: AuthGatewayDep
) -> JSONResponse:
    result = await gateway.sign_in_email(
        email=payload.email, password=payload.password, headers=request.headers
    )
    return to_response(result)


@router.post("/sign-out", summary="Revoke the current session")
async def sign_out(request: Request, gateway: AuthGatewayDep) -> JSONResponse:
    return to_response(await gateway.sign_out(request.headers))


@router.get(
    "/get-session",
    summary="Current session, or null",
    responses={200: {"model": SessionResponse}},
)
async def get_session(request: Request, gateway: AuthGatewayDep) -> JSONResponse:
    return to_response(await gateway.get_session(request.headers))
