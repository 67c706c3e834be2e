"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class AuthenticationFailure(Exception):
    """Raised on a failed credential check.

    The message is deliberately generic: an unknown username and a wrong
    password produce the same error.
    """

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class SessionExpiredError(Exception):
    """Raised when a session token is missing, unknown, or past its window."""

    def __init__(self, message: str = "Session expired or not authenticated"):
        super().__init__(message)


class PermissionDeniedError(Exception):
    """Raised when a role is not allowed to perform an operation."""

    def __init__(self, role: str, operation: str):
        self.role = role
        self.operation = operation
        super().__init__(f"Role '{role}' may not perform '{operation}'")


class StoreFailureError(Exception):
    """Raised when the backing store fails to read or commit."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store failure during {operation}")


class ChannelAuthRejectedError(Exception):
    """Raised when a realtime channel handshake lacks its session token."""


class InvalidRoomError(ValueError):
    """Raised for a malformed room identifier."""

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Invalid room '{room_id}'")


class InvalidFinancialYearError(ValueError):
    """Raised when a financial year is not of the form YYYY-YYYY+1."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid financial year '{value}', expected e.g. '2024-2025'")


class InvalidMoveError(Exception):
    """Raised when an entry cannot be moved in the requested direction."""

    def __init__(self, entry_id: int, direction: str):
        self.entry_id = entry_id
        self.direction = direction
        super().__init__(f"Cannot move entry {entry_id} {direction}")


class RegisterApiError(Exception):
    """Raised by the client when the registers API answers with an error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")
