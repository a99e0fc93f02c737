"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Organization roles.

    - STAFF: Day-to-day clinic/agency work
    - HR: Leave approvals and people data
    - MANAGER: Pipeline, workflows, projects
    - ADMIN: Everything, including user management and support inbox
    """

    STAFF = "staff"
    HR = "hr"
    MANAGER = "manager"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


# Role sets used by permission helpers
ROLES_CAN_MANAGE_USERS = {Role.ADMIN}
ROLES_CAN_REVIEW_LEAVE = {Role.ADMIN, Role.HR, Role.MANAGER}
ROLES_CAN_VIEW_ALL_LEAVE = {Role.ADMIN, Role.HR, Role.MANAGER}
ROLES_CAN_FILE_LEAVE_FOR_OTHERS = {Role.ADMIN, Role.HR}
ROLES_CAN_MANAGE_PIPELINE = {Role.ADMIN, Role.MANAGER}
ROLES_CAN_MANAGE_SUPPORT = {Role.ADMIN}
