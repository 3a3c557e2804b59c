"""
Policy Configuration
This config defines the entities, operations and membership roles used by the
policy evaluator, together with a human-readable rule matrix that the API
exposes for frontend UI decisions.
"""

from enum import Enum


class Operation(str, Enum):
    READ = "read"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    # Invitee accepting/declining their own invitation
    RESPOND = "respond"


class Entity(str, Enum):
    PROJECT = "project"
    PROJECT_MEMBER = "project_member"
    TASK = "task"
    ITEM = "item"
    EVENT = "event"
    BADGE = "badge"
    BADGE_QUEST = "badge_quest"
    USER_BADGE = "user_badge"
    PROFILE = "profile"
    NOTIFICATION = "notification"


class Role(str, Enum):
    VIEWER = "viewer"
    CONTRIBUTOR = "contributor"
    ADMIN = "admin"
    OWNER = "owner"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


# Roles allowed to mutate a project and its roster
MANAGER_ROLES = frozenset({Role.ADMIN, Role.OWNER})

# pending is the only non-terminal invitation state
INVITATION_TRANSITIONS = {
    InvitationStatus.PENDING: frozenset({
        InvitationStatus.ACCEPTED,
        InvitationStatus.DECLINED,
        InvitationStatus.EXPIRED,
    }),
    InvitationStatus.ACCEPTED: frozenset(),
    InvitationStatus.DECLINED: frozenset(),
    InvitationStatus.EXPIRED: frozenset(),
}

PROJECT_ACCESS = "creator, accepted member or legacy team member of the project"

RULES = {
    Entity.PROJECT: {
        Operation.READ: "creator or accepted member (project_members or legacy team)",
        Operation.INSERT: "actor sets self as creator",
        Operation.UPDATE: "creator or accepted admin/owner",
        Operation.DELETE: "creator only",
    },
    Entity.PROJECT_MEMBER: {
        Operation.READ: "project creator, accepted member, or the invitee of this row",
        Operation.INSERT: "project creator or accepted admin/owner",
        Operation.UPDATE: "project creator or accepted admin/owner",
        Operation.DELETE: "project creator or accepted admin/owner",
        Operation.RESPOND: "the invitee of this row",
    },
    Entity.TASK: {
        Operation.READ: f"creator, assignee, or {PROJECT_ACCESS}",
        Operation.INSERT: f"actor sets self as creator and, for project tasks, is {PROJECT_ACCESS}",
        Operation.UPDATE: f"creator, assignee, or {PROJECT_ACCESS}",
        Operation.DELETE: "creator or project creator",
    },
    Entity.ITEM: {
        Operation.READ: f"adder, assignee, or {PROJECT_ACCESS}",
        Operation.INSERT: f"actor sets self as adder and, for project items, is {PROJECT_ACCESS}",
        Operation.UPDATE: f"adder, assignee, or {PROJECT_ACCESS}",
        Operation.DELETE: "adder or project creator",
    },
    Entity.EVENT: {
        Operation.READ: f"creator, attendee, or {PROJECT_ACCESS}",
        Operation.INSERT: f"actor sets self as creator and, for project events, is {PROJECT_ACCESS}",
        Operation.UPDATE: f"creator, attendee, or {PROJECT_ACCESS}",
        Operation.DELETE: "creator or project creator",
    },
    Entity.BADGE: {
        Operation.READ: "any authenticated user",
        Operation.INSERT: "actor sets self as creator",
        Operation.UPDATE: "creator",
        Operation.DELETE: "creator",
    },
    Entity.BADGE_QUEST: {
        Operation.READ: "any authenticated user",
        Operation.INSERT: "actor sets self as creator",
        Operation.UPDATE: "creator",
        Operation.DELETE: "creator",
    },
    Entity.USER_BADGE: {
        Operation.READ: "any authenticated user",
        Operation.INSERT: "the recipient, or the creator of the task the badge is earned through",
    },
    Entity.PROFILE: {
        Operation.READ: "any authenticated user",
        Operation.INSERT: "own profile",
        Operation.UPDATE: "own profile",
    },
    Entity.NOTIFICATION: {
        Operation.READ: "recipient",
        Operation.UPDATE: "recipient",
    },
}


def get_policy_matrix():
    """
    Returns the rule matrix in a serializable form
    Format: {
        "roles": ["viewer", ...],
        "manager_roles": ["admin", "owner"],
        "entities": [
            {"entity": "project", "operations": {"read": "...", ...}},
            ...
        ]
    }
    """
    entities = []
    for entity, operations in RULES.items():
        entities.append({
            "entity": entity.value,
            "operations": {op.value: rule for op, rule in operations.items()}
        })

    return {
        "roles": [role.value for role in Role],
        "manager_roles": sorted(role.value for role in MANAGER_ROLES),
        "entities": entities
    }


POLICY_MATRIX = get_policy_matrix()
