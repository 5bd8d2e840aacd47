from fastapi import HTTPException


class LoyaltyError(HTTPException):
    """HTTPException carrying a machine-readable ``code`` next to the message."""

    status_code = 400
    default_code = "error"

    def __init__(self, detail: str, code: str | None = None, status_code: int | None = None):
        super().__init__(status_code=status_code or self.status_code, detail=detail)
        self.code = code or self.default_code


class ValidationFailed(LoyaltyError):
    status_code = 400
    default_code = "validation_error"


class AuthenticationFailed(LoyaltyError):
    status_code = 401
    default_code = "not_authenticated"


class PermissionDenied(LoyaltyError):
    status_code = 403
    default_code = "forbidden"


class NotFound(LoyaltyError):
    status_code = 404
    default_code = "not_found"


class DomainRuleViolation(LoyaltyError):
    status_code = 400
    default_code = "rule_violation"
