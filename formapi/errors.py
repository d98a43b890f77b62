from typing import Any, Dict, List, Optional

from fastapi import status


class APIError(Exception):
    """Base class for errors that map onto an HTTP status and a ``{message, errors?}`` body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class ValidationFailed(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request data"


class Unauthenticated(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InvalidToken(Unauthenticated):
    # same body as a missing token
    pass


class Forbidden(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You don't have permission to access this resource"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Resource already exists"
