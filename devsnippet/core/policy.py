"""
core/policy.py
--------------
Role and ownership rules, in one place.

The capability queries accept anything exposing `id` and `role`
(the User ORM model, UserRead, the client's cached user) and anything
exposing `author_id` for posts, so the API and the Python client gate
on exactly the same rules. Client-side checks are a UX convenience;
the server stays the authority.
"""

from typing import Any

from devsnippet.core.exceptions import BadRequest, Forbidden
from devsnippet.models.user import UserRole


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)


def can_moderate(identity: Any) -> bool:
    return identity is not None and _role_value(identity.role) == UserRole.admin.value


def is_self(identity: Any, user_id: str) -> bool:
    return identity is not None and str(identity.id) == str(user_id)


def can_edit_post(identity: Any, post: Any) -> bool:
    if identity is None:
        return False
    return is_self(identity, post.author_id) or can_moderate(identity)


def ensure_admin(identity: Any) -> None:
    if not can_moderate(identity):
        raise Forbidden("Access denied. Admin only.")


def ensure_can_edit_post(identity: Any, post: Any) -> None:
    if not can_edit_post(identity, post):
        raise Forbidden("Not authorized")


def ensure_not_self_demotion(identity: Any, user_id: str, new_role: Any) -> None:
    if (
        new_role is not None
        and _role_value(new_role) == UserRole.user.value
        and is_self(identity, user_id)
    ):
        raise BadRequest("Cannot demote yourself from admin")


def ensure_not_self_deletion(identity: Any, user_id: str) -> None:
    if is_self(identity, user_id):
        raise BadRequest("Cannot delete yourself")
