"""
Error types raised by the service layer.

Routes translate these into JSON error responses using `status_code`;
the message is shown to the user as-is.
"""


class JCEPError(Exception):
    """Base class for all expected service failures"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(JCEPError):
    """No identity could be resolved"""
    status_code = 401


class AuthorizationError(JCEPError):
    """Identity resolved but lacks the role required"""
    status_code = 403


class NotFoundError(JCEPError):
    """Record absent, or a token that matches nothing"""
    status_code = 404


class TokenExpiredError(JCEPError):
    """Token matched a form but its expiry has passed"""
    status_code = 410


class ValidationError(JCEPError):
    """Missing or malformed input"""
    status_code = 400


class StateConflictError(JCEPError):
    """Operation not allowed in the record's current state"""
    status_code = 409
