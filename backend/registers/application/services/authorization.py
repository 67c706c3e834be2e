"""Authorization gate — one policy table consulted before every register operation."""

from enum import Enum

from registers.domain.entities import Role
from registers.domain.exceptions import PermissionDeniedError


class Operation(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REORDER = "reorder"


WRITE_OPERATIONS = frozenset(
    {Operation.CREATE, Operation.UPDATE, Operation.DELETE, Operation.REORDER}
)

# role -> allowed operations. Reorder is a write and is gated like one.
# The gamer role only unlocks non-register features and holds nothing here.
POLICY: dict[Role, frozenset[Operation]] = {
    Role.ADMIN: frozenset(Operation),
    Role.VIEWER: frozenset({Operation.READ}),
    Role.GAMER: frozenset(),
}


def permit(role: Role, operation: Operation) -> bool:
    """Pure lookup: may *role* perform *operation*?"""
    return operation in POLICY.get(role, frozenset())


def authorize(role: Role, operation: Operation) -> None:
    """Raise PermissionDeniedError unless the policy allows the operation."""
    if not permit(role, operation):
        raise PermissionDeniedError(role.value, operation.value)
