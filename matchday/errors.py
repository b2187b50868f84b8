"""
Domain errors raised by the services layer.

Routes translate them into HTTPException via http_error(); the app renders every
HTTP error as {"success": false, "error": "<message>"}.
"""
from fastapi import HTTPException


class MatchdayError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MatchdayError):
    status_code = 404


class ConflictError(MatchdayError):
    status_code = 409


class InvalidStateError(MatchdayError):
    status_code = 400


class ValidationFailedError(MatchdayError):
    status_code = 422


def http_error(exc: MatchdayError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
