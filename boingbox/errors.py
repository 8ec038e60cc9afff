"""
Error taxonomy shared by the HTTP handlers.
Each error carries the status code it maps to; main.py turns them into JSON.
"""


class BoingBoxError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BoingBoxError):
    """Missing or malformed request fields"""
    status_code = 400


class AuthorizationError(BoingBoxError):
    """Actor lacks the role or ownership the action needs"""
    status_code = 403


class NotFoundError(BoingBoxError):
    status_code = 404


class StateConflictError(BoingBoxError):
    """Action not allowed in the record's current state, e.g. joining an ended call"""
    status_code = 400


class ServiceUnavailableError(BoingBoxError):
    """A background facility the request depends on is not running"""
    status_code = 503
