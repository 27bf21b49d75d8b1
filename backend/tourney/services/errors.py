"""
Fixture engine errors.

Raised by the services and turned into the uniform
``{"success": false, "code", "message"}`` envelope by the app's exception handlers.
"""


class FixtureEngineError(Exception):
    """Base exception for fixture engine errors"""

    code = "FIXTURE_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"success": False, "code": self.code, "message": self.message}


class InvalidIdentifierError(FixtureEngineError):
    """Malformed scope or entity reference"""

    code = "INVALID_IDENTIFIER"
    status_code = 400


class NotFoundError(FixtureEngineError):
    """Referenced tournament/event/fixture does not exist"""

    code = "NOT_FOUND"
    status_code = 404


class InsufficientParticipantsError(FixtureEngineError):
    code = "INSUFFICIENT_PARTICIPANTS"
    status_code = 422


class PreconditionError(FixtureEngineError):
    code = "PRECONDITION_FAILED"
    status_code = 422


class AlreadyExistsError(FixtureEngineError):
    """Fixtures exist and regeneration was not forced"""

    code = "ALREADY_EXISTS"
    status_code = 409
