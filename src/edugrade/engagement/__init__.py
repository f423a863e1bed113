"""
Parent Engagement

Invitation codes and parent-child linking.
"""

from .invitation_codes import (
    InvitationCodeError,
    find_invitation,
    generate_invitation_code,
    validate_invitation_code,
)
from .parent_binding import (
    BindingTarget,
    ChildBindingError,
    find_child,
    link_child,
    list_children,
    list_parents,
    resolve_binding_target,
    unlink_child,
)

__all__ = [
    "InvitationCodeError",
    "find_invitation",
    "generate_invitation_code",
    "validate_invitation_code",
    "BindingTarget",
    "ChildBindingError",
    "find_child",
    "link_child",
    "list_children",
    "list_parents",
    "resolve_binding_target",
    "unlink_child",
]
