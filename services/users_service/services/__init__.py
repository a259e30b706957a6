"""Users service business logic."""

from services.users_service.services.accounts import (
    authenticate,
    get_user_or_404,
    register_user,
    set_admin,
    set_disabled,
)

__all__ = [
    "authenticate",
    "get_user_or_404",
    "register_user",
    "set_admin",
    "set_disabled",
]
