"""Domain errors raised by services and translated at the API boundary."""


class BizMunchError(Exception):
    """Base exception for all service errors."""


class NotFoundError(BizMunchError):
    """Raised when a referenced user, company or restaurant does not exist."""


class ConflictError(BizMunchError):
    """Raised when a create would duplicate an existing record."""


class CollaboratorUnavailableError(BizMunchError):
    """Raised when the catalog or store cannot be reached."""


class InvariantViolationError(BizMunchError):
    """Raised when a computed value breaks a domain invariant."""
