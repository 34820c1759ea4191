"""
Access control for the content, discussion, voting and chat surfaces.

Roles are not stored per user: a verified identity is an ADMIN when its
email is on the configured allow-list, otherwise a USER. Requests without
a usable token act as ANONYMOUS. Owners get extra grants on their own
resources through OWNER_PERMISSIONS.
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Set, Tuple

from studyhub.core.exceptions import Forbidden, Unauthenticated
from studyhub.core.security import Identity, SessionIssuer


class Role(str, Enum):
    """Roles derived from the caller's identity"""
    ANONYMOUS = "anonymous"
    USER = "user"
    ADMIN = "admin"


class Resource(str, Enum):
    """Resources that can be accessed"""
    CONTENT = "content"
    ANSWER = "answer"
    COMMENT = "comment"
    VOTE = "vote"
    PROFILE = "profile"
    CHAT = "chat"


class Action(str, Enum):
    """Actions that can be performed on resources"""
    READ = "read"
    SUBMIT = "submit"
    DECIDE = "decide"
    REVIEW = "review"
    DELETE = "delete"
    CAST = "cast"
    UPDATE = "update"


ROLE_PERMISSIONS: Dict[Role, Set[Tuple[Resource, Action]]] = {
    Role.ANONYMOUS: {
        (Resource.CONTENT, Action.READ),
        (Resource.ANSWER, Action.READ),
        (Resource.COMMENT, Action.READ),
        (Resource.VOTE, Action.READ),
        (Resource.CHAT, Action.READ),
    },
    Role.USER: {
        (Resource.CONTENT, Action.READ),
        (Resource.CONTENT, Action.SUBMIT),
        (Resource.ANSWER, Action.READ),
        (Resource.ANSWER, Action.SUBMIT),
        (Resource.COMMENT, Action.READ),
        (Resource.COMMENT, Action.SUBMIT),
        (Resource.VOTE, Action.READ),
        (Resource.VOTE, Action.CAST),
        (Resource.PROFILE, Action.READ),
        (Resource.PROFILE, Action.UPDATE),
        (Resource.CHAT, Action.READ),
        (Resource.CHAT, Action.SUBMIT),
    },
}

# Administrators can do everything a user can, plus moderation
ROLE_PERMISSIONS[Role.ADMIN] = ROLE_PERMISSIONS[Role.USER] | {
    (Resource.CONTENT, Action.DECIDE),
    (Resource.CONTENT, Action.REVIEW),
    (Resource.CONTENT, Action.DELETE),
    (Resource.ANSWER, Action.DELETE),
    (Resource.COMMENT, Action.DELETE),
    (Resource.CHAT, Action.DELETE),
}

# Extra grants on resources the caller owns
OWNER_PERMISSIONS: Set[Tuple[Resource, Action]] = {
    (Resource.CONTENT, Action.DELETE),
    (Resource.ANSWER, Action.DELETE),
    (Resource.COMMENT, Action.DELETE),
    (Resource.CHAT, Action.DELETE),
}


def has_permission(
    role: Role,
    resource: Resource,
    action: Action,
    is_owner: bool = False
) -> bool:
    """
    Check if a role has permission to perform an action on a resource.

    Args:
        role: Caller role (ANONYMOUS, USER, ADMIN)
        resource: Resource being accessed
        action: Action being performed
        is_owner: Whether the caller owns the resource

    Returns:
        True if permission is granted, False otherwise
    """
    if (resource, action) in ROLE_PERMISSIONS.get(role, set()):
        return True
    return is_owner and role != Role.ANONYMOUS and (resource, action) in OWNER_PERMISSIONS


class AccessControl:
    """
    Capability checks consumed by the services before any mutation.

    Usage:
        access = AccessControl(issuer, settings.admin_emails)
        identity = access.authenticate(token)
        access.require(identity, Resource.CONTENT, Action.DECIDE)
    """

    def __init__(self, issuer: SessionIssuer, admin_emails: Iterable[str]):
        self.issuer = issuer
        self.admin_emails = frozenset(e.strip().lower() for e in admin_emails if e.strip())

    def authenticate(self, token: Optional[str]) -> Identity:
        """Resolve a bearer token or raise Unauthenticated."""
        if not token:
            raise Unauthenticated("missing")
        identity = self.issuer.verify(token)
        if identity is None:
            raise Unauthenticated("invalid")
        return identity

    def authenticate_optional(self, token: Optional[str]) -> Optional[Identity]:
        """Like authenticate, but a missing or invalid token means anonymous."""
        try:
            return self.authenticate(token)
        except Unauthenticated:
            return None

    def is_administrator(self, identity: Optional[Identity]) -> bool:
        return identity is not None and identity.email.lower() in self.admin_emails

    @staticmethod
    def is_owner(identity: Optional[Identity], resource) -> bool:
        """
        True when the resource belongs to the identity.

        Accepts an owner id string or any object exposing ``owner_id`` or
        ``author_id``.
        """
        if identity is None or resource is None:
            return False
        if isinstance(resource, str):
            owner_id = resource
        else:
            owner_id = getattr(resource, "owner_id", None) or getattr(resource, "author_id", None)
        return owner_id is not None and owner_id == identity.user_id

    def role_of(self, identity: Optional[Identity]) -> Role:
        if identity is None:
            return Role.ANONYMOUS
        if self.is_administrator(identity):
            return Role.ADMIN
        return Role.USER

    def can(
        self,
        identity: Optional[Identity],
        resource: Resource,
        action: Action,
        owned=None
    ) -> bool:
        return has_permission(
            self.role_of(identity),
            resource,
            action,
            is_owner=self.is_owner(identity, owned),
        )

    def require(
        self,
        identity: Optional[Identity],
        resource: Resource,
        action: Action,
        owned=None
    ) -> None:
        """
        Raise when the identity lacks the capability.

        Raises:
            Unauthenticated: anonymous caller on a capability anonymous lacks
            Forbidden: authenticated caller lacking the capability
        """
        if self.can(identity, resource, action, owned):
            return
        if identity is None:
            raise Unauthenticated("missing")
        raise Forbidden(f"Insufficient permissions: {action.value} on {resource.value}")
