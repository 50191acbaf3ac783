#hapa/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Set

from hapa.models.enums import UserRole


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str
    role: UserRole
    display_name: str


# --- Core action constants ---
ACTION_READ_SUBMISSIONS = "READ_SUBMISSIONS"
ACTION_UPDATE_SUBMISSIONS = "UPDATE_SUBMISSIONS"
ACTION_DELETE_SUBMISSIONS = "DELETE_SUBMISSIONS"
ACTION_MANAGE_CONTENT = "MANAGE_CONTENT"
ACTION_MANAGE_CONTACT = "MANAGE_CONTACT"
ACTION_MANAGE_MEDIA = "MANAGE_MEDIA"
ACTION_RUN_MAINTENANCE = "RUN_MAINTENANCE"


def allowed_actions(role: UserRole) -> Set[str]:
    """
    Pure RBAC: which actions a role may attempt.
    """

    if role == UserRole.ADMIN:
        return {
            ACTION_READ_SUBMISSIONS,
            ACTION_UPDATE_SUBMISSIONS,
            ACTION_DELETE_SUBMISSIONS,
            ACTION_MANAGE_CONTENT,
            ACTION_MANAGE_CONTACT,
            ACTION_MANAGE_MEDIA,
            ACTION_RUN_MAINTENANCE,
        }

    if role == UserRole.MODERATOR:
        return {
            ACTION_READ_SUBMISSIONS,
            ACTION_UPDATE_SUBMISSIONS,
            ACTION_MANAGE_CONTACT,
            ACTION_MANAGE_MEDIA,
        }

    if role == UserRole.EDITOR:
        return {
            ACTION_READ_SUBMISSIONS,
            ACTION_MANAGE_CONTENT,
            ACTION_MANAGE_MEDIA,
        }

    return set()


def can(principal: Principal, action: str) -> bool:
    return action in allowed_actions(principal.role)
