"""Role registry: the ordered nomination slots of a committee."""

import logging

from signa.errors import NotFound, ValidationError
from signa.storage.base import Query, eq

logger = logging.getLogger(__name__)

# (name, max_selections) in display order
DEFAULT_ROLES = [
    ("Elders", 4),
    ("Secretaries", 2),
    ("Treasurers", 2),
    ("Deacons", 2),
    ("Deaconesses", 2),
    ("Sabbath School", 2),
    ("Personal Ministries", 2),
    ("Stewardship", 2),
    ("Publishing Ministries", 2),
    ("Family Ministries", 2),
    ("Women's Ministries", 2),
    ("Music Ministry", 2),
    ("Health Ministries", 2),
    ("Children's Ministries", 2),
    ("Adolescent Ministries", 2),
    ("Hospitality", 2),
    ("Youth Ministries", 2),
    ("Community Services", 2),
    ("Adventurer Club", 2),
    ("Pathfinder Club", 2),
    ("Communication", 2),
    ("Interested Persons", 2),
    ("Property", 2),
    ("Sound and Media", 2),
    ("Public Affairs and Religious Liberty", 2),
    ("Self-nomination", 1),
    ("Participant Name", 1),
]


def _parse_max_selections(value):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Maximum selections must be a whole number.") from None
    if parsed < 1:
        raise ValidationError("Maximum selections must be at least 1.")
    return parsed


def sort_roles(roles):
    return sorted(roles, key=lambda role: (role["display_order"], role["id"]))


class RoleRegistry:
    def __init__(self, storage):
        self.storage = storage

    def list_roles(self, commission_id, include_inactive=False):
        filters = [eq("commission_id", commission_id)]
        if not include_inactive:
            filters.append(eq("is_active", True))
        return sort_roles(self.storage.query(Query("commission_roles", tuple(filters))))

    def get_role(self, role_id):
        role = self.storage.get("commission_roles", role_id)
        if role is None:
            raise NotFound("Role not found.", role_id=role_id)
        return role

    def _next_order(self, commission_id):
        roles = self.list_roles(commission_id, include_inactive=True)
        return max((role["display_order"] for role in roles), default=0) + 1

    def add_role(self, commission_id, name, max_selections=1):
        name = (name or "").strip()
        if not name:
            raise ValidationError("Role name is required.")
        max_selections = _parse_max_selections(max_selections)

        with self.storage.transaction():
            if self.storage.get("commissions", commission_id) is None:
                raise NotFound("Committee not found.", commission_id=commission_id)
            role = self.storage.insert(
                "commission_roles",
                {
                    "commission_id": commission_id,
                    "name": name,
                    "max_selections": max_selections,
                    "display_order": self._next_order(commission_id),
                    "is_active": True,
                },
            )
        logger.info("Role %s added to committee %s", role["id"], commission_id)
        return role

    def update_role(self, role_id, name=None, max_selections=None):
        """Rename and/or change the limit of a role in a single write.

        Both values are validated before anything is stored.
        """
        patch = {}
        if name is not None:
            name = name.strip() if isinstance(name, str) else ""
            if not name:
                raise ValidationError("Role name is required.")
            patch["name"] = name
        if max_selections is not None:
            patch["max_selections"] = _parse_max_selections(max_selections)
        if not patch:
            raise ValidationError("Nothing to update; send name or max_selections.")

        with self.storage.transaction():
            self.get_role(role_id)
            (role,) = self.storage.update("commission_roles", {"id": role_id}, patch)
        return role

    def update_max_selections(self, role_id, max_selections):
        return self.update_role(role_id, max_selections=max_selections)

    def rename_role(self, role_id, name):
        return self.update_role(role_id, name=name or "")

    def remove_role(self, role_id):
        # soft delete: ballots already cast keep pointing at the row
        self.get_role(role_id)
        (role,) = self.storage.update(
            "commission_roles", {"id": role_id}, {"is_active": False}
        )
        logger.info("Role %s deactivated", role_id)
        return role

    def move_role(self, role_id, direction):
        if direction not in ("up", "down"):
            raise ValidationError("Direction must be 'up' or 'down'.")
        role = self.get_role(role_id)
        with self.storage.transaction():
            roles = self.list_roles(role["commission_id"])
            positions = [item["id"] for item in roles]
            if role_id not in positions:
                raise ValidationError("Only active roles can be reordered.")
            index = positions.index(role_id)
            neighbour_index = index - 1 if direction == "up" else index + 1
            if neighbour_index < 0 or neighbour_index >= len(roles):
                return roles
            neighbour = roles[neighbour_index]
            self.storage.update(
                "commission_roles", {"id": role_id}, {"display_order": neighbour["display_order"]}
            )
            self.storage.update(
                "commission_roles", {"id": neighbour["id"]}, {"display_order": role["display_order"]}
            )
            return self.list_roles(role["commission_id"])

    def import_default_roles(self, commission_id):
        """Deactivate the current roles and load the standard nomination roles."""
        with self.storage.transaction():
            if self.storage.get("commissions", commission_id) is None:
                raise NotFound("Committee not found.", commission_id=commission_id)
            base = self._next_order(commission_id) - 1
            self.storage.update(
                "commission_roles", {"commission_id": commission_id}, {"is_active": False}
            )
            self.storage.insert(
                "commission_roles",
                [
                    {
                        "commission_id": commission_id,
                        "name": name,
                        "max_selections": max_selections,
                        "display_order": base + position,
                        "is_active": True,
                    }
                    for position, (name, max_selections) in enumerate(DEFAULT_ROLES, start=1)
                ],
            )
        logger.info("Default roles imported into committee %s", commission_id)
        return self.list_roles(commission_id)
