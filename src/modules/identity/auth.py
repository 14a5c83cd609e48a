"""JWT authentication dependencies for FastAPI.

Tokens are issued by the external auth service. This module only validates
Bearer tokens, extracts the user claims and turns the role into an actor.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.config import settings
from src.exceptions import UnauthorizedException
from src.modules.identity.actors import Actor, actor_from_user

logger = logging.getLogger(__name__)

# FastAPI security scheme: extracts Bearer token from Authorization header
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Represents the authenticated user extracted from a JWT token."""

    id: uuid.UUID
    email: str
    role: str


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


def user_from_token(token: str) -> AuthenticatedUser:
    payload = decode_token(token)
    try:
        return AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload["email"],
            role=payload.get("role", "homeowner"),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    user = user_from_token(credentials.credentials)
    request.state.user = user
    return user


async def get_current_actor(
    user: AuthenticatedUser = Depends(get_current_user),
) -> Actor:
    """FastAPI dependency resolving the caller into its actor variant."""
    return actor_from_user(user)
