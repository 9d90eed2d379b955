"""Business logic for authentication, such as user creation and retrieval."""
from typing import Optional
from . import models

async def get_user_by_username(username: str) -> Optional[models.User]:
    """Retrieves a user by their username.

    Args:
        username: The username of the user to retrieve.

    Returns:
        The User object if found, otherwise None.
    """
    user = await models.User.get_or_none(username=username)
    return user

async def get_user_by_email(email: str) -> Optional[models.User]:
    """Retrieves a user by their email address.

    Args:
        email: The email address of the user to retrieve.

    Returns:
        The User object if found, otherwise None.
    """
    user = await models.User.get_or_none(email=email)
    return user

async def create_user(user_in: dict, hashed_password_val: str) -> models.User:
    """Creates a new user in the database.

    Args:
        user_in: A dictionary containing the user data (excluding password).
        hashed_password_val: The hashed password for the new user.

    Returns:
        The newly created User object.
    """
    new_user = await models.User.create(
        **user_in,
        hashed_password=hashed_password_val
    )
    return new_user

def admin_role_rank(admin_role: Optional[str]) -> int:
    """Position of an admin role in the privilege hierarchy, -1 when unknown."""
    if admin_role not in models.ADMIN_ROLE_HIERARCHY:
        return -1
    return models.ADMIN_ROLE_HIERARCHY.index(admin_role)

def has_admin_role(user: models.User, required_role: str) -> bool:
    """Checks that an admin holds `required_role` or a higher one."""
    user_rank = admin_role_rank(user.admin_role)
    required_rank = admin_role_rank(required_role)
    return user.role == "admin" and user_rank >= 0 and required_rank >= 0 and user_rank >= required_rank
