class CarCheckDomainError(Exception):
    """Base class for all user-displayable domain errors."""

    code = "domain_error"


class Unauthorized(CarCheckDomainError):
    """Raised when an operation needs an authenticated user and there is none."""

    code = "unauthorized"


class Forbidden(CarCheckDomainError):
    """Raised when the caller is authenticated but their role does not allow the operation."""

    code = "forbidden"


class LastOwnerError(Forbidden):
    """Raised when a revoke or role change would leave a car without an owner."""

    code = "last_owner"


class NotFound(CarCheckDomainError):
    """Raised when a token, car, permission or other row does not exist."""

    code = "not_found"


class Expired(CarCheckDomainError):
    """Raised when an invitation or share link is past its expiry."""

    code = "expired"


class EmailMismatch(CarCheckDomainError):
    """Raised when an invitation is accepted by a user whose email differs from the invited one."""

    code = "email_mismatch"


class DuplicateGrant(CarCheckDomainError):
    """Raised when a permission already exists for the (car, user) pair."""

    code = "duplicate_grant"


class DuplicateCar(CarCheckDomainError):
    """Raised when a car with the same registration number already exists."""

    code = "duplicate_car"


class QuotaExceeded(CarCheckDomainError):
    """Raised when the user has used up their AI query quota."""

    code = "quota_exceeded"


class UpstreamFailure(CarCheckDomainError):
    """Raised when the external completion API is unavailable or errors out."""

    code = "upstream_failure"
