"""JWT authentication for the operations API.

Users log in with username or email; the token carries the user id and
every request re-reads the user from the workspace, so deactivation and
permission edits take effect immediately.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
import uuid
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from src.api.deps import get_workspace
from src.config import get_settings
from src.core.errors import AuthenticationError
from src.core.models import User
from src.core.workspace import Workspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

_workspace_dep = Depends(get_workspace)


class LoginRequest(BaseModel):
    username: str  # username or email
    password: str


def _b64_encode(data: bytes) -> str:
    return urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64_decode(s: str) -> bytes:
    padding = 4 - len(s) % 4
    return urlsafe_b64decode(s + "=" * padding)


def create_jwt(payload: dict[str, Any], secret: str, expires_in: int = 43200) -> str:
    """Create an HS256 token."""
    now = int(time.time())
    header = {"alg": "HS256", "typ": "JWT"}
    claims = {**payload, "exp": now + expires_in, "iat": now, "jti": str(uuid.uuid4())}

    header_b64 = _b64_encode(json.dumps(header).encode())
    payload_b64 = _b64_encode(json.dumps(claims).encode())

    message = f"{header_b64}.{payload_b64}"
    signature = hmac.new(secret.encode(), message.encode(), hashlib.sha256).digest()
    return f"{message}.{_b64_encode(signature)}"


def verify_jwt(token: str, secret: str) -> dict[str, Any]:
    """Verify signature and expiry; raises ValueError on any failure."""
    parts = token.split(".")
    if len(parts) != 3:
        msg = "Invalid token format"
        raise ValueError(msg)

    message = f"{parts[0]}.{parts[1]}"
    expected_sig = hmac.new(secret.encode(), message.encode(), hashlib.sha256).digest()
    try:
        actual_sig = _b64_decode(parts[2])
        payload = json.loads(_b64_decode(parts[1]))
    except (ValueError, json.JSONDecodeError) as e:
        msg = "Malformed token"
        raise ValueError(msg) from e

    if not hmac.compare_digest(expected_sig, actual_sig):
        msg = "Invalid signature"
        raise ValueError(msg)
    if payload.get("exp", 0) < time.time():
        msg = "Token expired"
        raise ValueError(msg)

    result: dict[str, Any] = payload
    return result


async def require_user(request: Request, workspace: Workspace = _workspace_dep) -> User:
    """FastAPI dependency: resolve the acting user from the bearer token."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing authorization token")

    try:
        payload = verify_jwt(auth_header[7:], get_settings().admin.jwt_secret)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = workspace.users.get(payload.get("sub", ""))
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User is inactive or unknown")
    return user


_user_dep = Depends(require_user)


def require_global_permission(flag: str) -> Any:
    """Create a dependency that requires a global permission flag.

    Usage:
        _admin = Depends(require_global_permission(ACCESS_ADMIN_PANEL))
    """

    async def _check(user: User = _user_dep) -> User:
        if flag not in user.global_permissions:
            logger.warning("Global permission %s denied", flag, extra={"user_id": user.id})
            raise HTTPException(status_code=403, detail=f"Missing permission: {flag}")
        return user

    return _check


@router.post("/login")
async def login(login_data: LoginRequest, workspace: Workspace = _workspace_dep) -> dict[str, Any]:
    """Authenticate by username or email and return a JWT."""
    settings = get_settings()
    try:
        user = workspace.authenticate(login_data.username, login_data.password)
    except AuthenticationError as e:
        logger.info("Failed login for %s", login_data.username)
        raise HTTPException(status_code=401, detail="Invalid credentials") from e

    ttl_seconds = settings.admin.jwt_ttl_seconds
    token = create_jwt({"sub": user.id}, settings.admin.jwt_secret, expires_in=ttl_seconds)
    logger.info("User logged in", extra={"user_id": user.id})
    return {"token": token, "token_type": "bearer", "expires_in": ttl_seconds}


@router.get("/me")
async def me(user: User = _user_dep) -> dict[str, Any]:
    """Current user with assignments and permission flags."""
    return {"user": user.model_dump(mode="json")}
