from enum import Enum


class Role(str, Enum):
    owner = "owner"
    admin = "admin"
    staff = "staff"


ADMIN_ROLES = {Role.owner, Role.admin}
