"""Authorization gates for RPC procedures.

Each gate is a plain predicate over the caller; `require()` turns any number
of predicates into a FastAPI dependency that runs before the handler, so a
failed check raises 403 before any read or write happens.
"""
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status

from .models import Role, User
from .users import current_active_user, current_optional_user

Predicate = Callable[[User], bool]


def has_role(*roles: Role) -> Predicate:
    allowed = frozenset(roles)

    def check(user: User) -> bool:
        return user.role in allowed

    check.__name__ = "has_role_" + "_".join(sorted(r.value.lower() for r in allowed))
    return check


is_teacher = has_role(Role.TEACHER, Role.ADMIN)
is_student = has_role(Role.STUDENT, Role.ADMIN)
is_admin = has_role(Role.ADMIN)


def require(*predicates: Predicate, message: str = "Access denied"):
    """Dependency that yields the authenticated user if every predicate holds."""

    async def dependency(user: User = Depends(current_active_user)) -> User:
        for predicate in predicates:
            if not predicate(user):
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return user

    return dependency


# Dependency to get the caller if there is one (public procedures)
async def get_current_user(user: Optional[User] = Depends(current_optional_user)) -> Optional[User]:
    return user


# Any authenticated caller (protected procedures)
require_authenticated_user = require()
require_teacher = require(is_teacher, message="Teacher access required")
require_student = require(is_student, message="Student access required")
require_admin_user = require(is_admin, message="Admin access required")
