"""
Roles Configuration
This config defines the platform roles and the capabilities each role unlocks.
Used by route dependencies (require_capability) and the /auth/me payload.
"""

# Platform roles, ordered by privilege
ROLES = {
    "user": {
        "level": 0,
        "description": "Player: joins matches and clubs, charges points, chats"
    },
    "admin": {
        "level": 1,
        "description": "Organizer: manages matches, rinks and clubs"
    },
    "superuser": {
        "level": 2,
        "description": "Operator: confirms charges, manages users and platform settings"
    }
}

# Capability -> minimum role
CAPABILITIES = {
    "matches:create": "admin",
    "matches:manage": "admin",
    "matches:read_all": "superuser",
    "rinks:manage": "admin",
    "clubs:create": "admin",
    "points:review": "superuser",
    "points:adjust": "superuser",
    "settings:update": "superuser",
    "users:manage": "superuser",
    "audit:read": "superuser",
    "push:test": "superuser"
}

CLUB_MEMBER_ROLES = ("member", "admin")
MEMBERSHIP_STATUSES = ("pending", "approved", "rejected")


def role_level(role: str) -> int:
    """Unknown or missing roles rank as plain users."""
    return ROLES.get(role or "user", ROLES["user"])["level"]


def has_role(role: str, required_role: str) -> bool:
    """superuser includes admin, admin includes user"""
    return role_level(role) >= role_level(required_role)


def can(role: str, capability: str) -> bool:
    required = CAPABILITIES.get(capability)
    if required is None:
        return False
    return has_role(role, required)


def get_capabilities(role: str) -> list:
    return sorted(name for name in CAPABILITIES if can(role, name))


def get_capability_matrix():
    """
    Returns the role/capability matrix.
    Format: {
        "roles": [{"name": "admin", "level": 1, "description": "...", "capabilities": [...]}, ...],
        "capabilities": [{"name": "matches:create", "min_role": "admin"}, ...]
    }
    """
    roles = []
    for name, config in ROLES.items():
        roles.append({
            "name": name,
            "level": config["level"],
            "description": config["description"],
            "capabilities": get_capabilities(name)
        })
    capabilities = [
        {"name": name, "min_role": min_role}
        for name, min_role in CAPABILITIES.items()
    ]
    return {
        "roles": roles,
        "capabilities": capabilities
    }
