"""Identity module: JWT authentication and the closed actor variant."""

from src.modules.identity.actors import (
    Actor,
    Admin,
    CompanyAdmin,
    Homeowner,
    Professional,
    actor_from_user,
)
from src.modules.identity.auth import AuthenticatedUser, get_current_actor, get_current_user

__all__ = [
    "Actor",
    "Admin",
    "AuthenticatedUser",
    "CompanyAdmin",
    "Homeowner",
    "Professional",
    "actor_from_user",
    "get_current_actor",
    "get_current_user",
]
