"""Login/register/logout/me endpoints for the admin frontend.

Provides:
    POST /api/login     — Sign in; forwards the gateway's ``Set-Cookie``.
    POST /api/register  — Sign up as a student; forwards ``Set-Cookie``.
    POST /api/logout    — Sign out; forwards the cookie-clearing header.
    GET  /api/me        — The current user, or 401.

Errors are rendered as ``{"message": ...}``: gateway failures keep the
gateway's status, anything else becomes a 500.
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.api.auth import to_response
from src.api.dependencies import AuthGatewayDep
from src.exceptions import AuthGatewayError
from src.models.user import UserRole
from src.schemas.auth import AuthTokenResponse, IdentitySchema, RegisterRequest, SignInRequest
from src.services.auth_gateway import AuthResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


async def _forward(
    action: str, call: Callable[[], Awaitable[AuthResult]], body: object = None
) -> JSONResponse:
    """Run a gateway call and translate its outcome for the frontend.

    Args:
        action: Short label used in log lines.
        call: Zero-argument coroutine factory performing the gateway call.
        body: Replacement response body; the gateway's own body when ``None``.
    """
    try:
        result = await call()
    except AuthGatewayError as exc:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})
    except Exception:
        logger.exception("%s failed", action)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )

    if body is not None:
        result = AuthResult(
            status_code=result.status_code, body=body, set_cookies=result.set_cookies
        )
    return to_response(result)


@router.post(
    "/login",
    summary="Log in",
    responses={200: {"model": AuthTokenResponse}, 401: {"description": "Bad credentials"}},
)
async def login(
    payload: SignInRequest, request: Request, gateway: AuthGatewayDep
) -> JSONResponse:
    return await _forward(
        "login",
        lambda: gateway.sign_in_email(
            email=payload.email, password=payload.password, headers=request.headers
        ),
    )


@router.post(
    "/register",
    summary="Register a student account",
    responses={200: {"model": AuthTokenResponse}, 409: {"description": "Email taken"}},
)
async def register(
    payload: RegisterRequest, request: Request, gateway: AuthGatewayDep
) -> JSONResponse:
    return await _forward(
        "register",
        lambda: gateway.sign_up_email(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=UserRole.STUDENT.value,
            headers=request.headers,
        ),
    )


@router.post("/logout", summary="Log out")
async def logout(request: Request, gateway: AuthGatewayDep) -> JSONResponse:
    return await _forward(
        "logout", lambda: gateway.sign_out(request.headers), body={"message": "Logged out"}
    )


@router.get(
    "/me",
    summary="Current user",
    responses={200: {"model": IdentitySchema}, 401: {"description": "No session"}},
)
async def me(request: Request, gateway: AuthGatewayDep) -> JSONResponse:
    try:
        identity = await gateway.validate_session(request.headers)
    except AuthGatewayError as exc:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})
    except Exception:
        logger.exception("me failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )

    if identity is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"message": "Unauthorized"}
        )
    return JSONResponse(content=identity.to_json())
