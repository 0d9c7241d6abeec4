"""
Role-based route guard.

Every navigation is checked in a fixed order:

    unauthenticated -> role-mismatch -> profile-incomplete
        -> pending-approval (doctors only) -> authorized

The first failing check wins and maps to a redirect; only ``authorized``
lets the caller through.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .security import UserRole


class AccessState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    ROLE_MISMATCH = "role-mismatch"
    PROFILE_INCOMPLETE = "profile-incomplete"
    PENDING_APPROVAL = "pending-approval"
    AUTHORIZED = "authorized"


REDIRECTS = {
    AccessState.UNAUTHENTICATED: "/login",
    AccessState.ROLE_MISMATCH: "/403",
    AccessState.PROFILE_INCOMPLETE: "/setup-profile",
    AccessState.PENDING_APPROVAL: "/awaiting-approval",
}

PUBLIC_PATHS = {
    "/",
    "/login",
    "/patient/register",
    "/doctor/register",
    "/caregiver/register",
    "/setup-profile",
    "/awaiting-approval",
    "/403",
    "/forgot-password",
}

ROLE_PREFIXES = {
    "/patient": UserRole.PATIENT,
    "/doctor": UserRole.DOCTOR,
    "/caregiver": UserRole.CAREGIVER,
    "/admin": UserRole.ADMIN,
}


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    redirect: Optional[str] = None

    @property
    def authorized(self) -> bool:
        return self.state == AccessState.AUTHORIZED


def evaluate_access(user, allowed_roles: Iterable[UserRole]) -> AccessDecision:
    """Run the guard checks for ``user`` against ``allowed_roles``."""
    allowed = set(allowed_roles)

    if user is None or getattr(user, "blocked", False):
        return _deny(AccessState.UNAUTHENTICATED)

    role = user.role
    if role is not None and role not in allowed:
        return _deny(AccessState.ROLE_MISMATCH)

    if role != UserRole.ADMIN and not user.profile_completed:
        return _deny(AccessState.PROFILE_INCOMPLETE)

    if role == UserRole.DOCTOR and user.approved is False:
        return _deny(AccessState.PENDING_APPROVAL)

    return AccessDecision(AccessState.AUTHORIZED)


def allowed_roles_for_path(path: str) -> Optional[List[UserRole]]:
    """
    Map a page path to the roles allowed to view it.

    Returns None for public paths, which are never guarded.
    """
    normalized = "/" + path.strip("/")
    if normalized in PUBLIC_PATHS:
        return None

    for prefix, role in ROLE_PREFIXES.items():
        if normalized == prefix or normalized.startswith(prefix + "/"):
            return [role]

    return None


def resolve_path(user, path: str) -> AccessDecision:
    """Evaluate the guard for a page path."""
    roles = allowed_roles_for_path(path)
    if roles is None:
        return AccessDecision(AccessState.AUTHORIZED)
    return evaluate_access(user, roles)


def _deny(state: AccessState) -> AccessDecision:
    return AccessDecision(state, REDIRECTS[state])
