class LedgerException(Exception):
    """Base exception for the household ledger"""

    code = "ledger_error"


class DomainException(LedgerException):
    """Business rule violation. Reported to the caller verbatim, never retried."""

    code = "domain_error"


class AuthenticationException(LedgerException):
    """Raised when JWT validation fails"""

    code = "authentication_failed"


class UnauthorizedException(DomainException):
    """Raised when the actor lacks the role required for an action"""

    code = "unauthorized"


class InsufficientRoleException(DomainException):
    """Raised when a role assignment exceeds the actor's privilege"""

    code = "insufficient_role"


class NotFoundException(DomainException):
    """Raised when resource not found"""

    code = "not_found"


class ValidationException(DomainException):
    """Raised for business logic validation errors"""

    code = "validation_error"


class AlreadyMemberException(ValidationException):
    """Raised when inviting an account that already has an active membership"""

    code = "already_member"


class CannotDemoteOwnerException(DomainException):
    """Raised when a role change would leave the ledger without an active owner"""

    code = "cannot_demote_owner"


class CannotRemoveSoleOwnerException(DomainException):
    """Raised when removing the owner's membership; ownership must be transferred first"""

    code = "cannot_remove_sole_owner"


class CannotLeaveAsSoleOwnerException(DomainException):
    """Raised when the active owner tries to leave their own ledger"""

    code = "cannot_leave_as_sole_owner"


class ConfirmTextMismatchException(DomainException):
    """Raised when the deletion confirmation phrase does not match"""

    code = "confirm_text_mismatch"


class HasOwnedLedgersException(DomainException):
    """Raised when account deletion is blocked by owned, non-deleted ledgers"""

    code = "has_owned_ledgers"

    def __init__(self, owned_ledger_count: int):
        self.owned_ledger_count = owned_ledger_count
        super().__init__(
            f"Account owns {owned_ledger_count} ledger(s). "
            "Delete them or transfer ownership before deleting the account"
        )


class AccountPermanentlyDeletedException(DomainException):
    """Raised when authenticating an account whose grace period has elapsed"""

    code = "account_permanently_deleted"


class InfrastructureException(LedgerException):
    """Store or provider failure. Eligible for caller-side retry with backoff."""

    code = "infrastructure_error"


class ConcurrencyConflictException(InfrastructureException):
    """Raised when a concurrent transaction changed the rows this one checked"""

    code = "concurrency_conflict"
