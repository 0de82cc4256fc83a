import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ContactsAPIException(Exception):
    """
    Base exception for the contacts API.

    Subclasses fix the code and status; the message is the human-readable part.
    """

    code = "CONTACTS_API_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message}


# =============================================================================
# Validation
# =============================================================================

class ValidationError(ContactsAPIException):
    """Malformed or missing fields."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


# =============================================================================
# Not found
# =============================================================================
# Ownership failures raise the same errors as absence, so callers cannot
# discover other users' records.

class NotFoundError(ContactsAPIException):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class TagNotFoundError(NotFoundError):
    code = "TAG_NOT_FOUND"

    def __init__(self, tag_id: int):
        super().__init__(f"Tag not found: {tag_id}")
        self.tag_id = tag_id


class ContactNotFoundError(NotFoundError):
    code = "CONTACT_NOT_FOUND"

    def __init__(self, contact_id: int):
        super().__init__(f"Contact not found: {contact_id}")
        self.contact_id = contact_id


class NoContactsWithTagError(NotFoundError):
    """The tag exists but no contact carries it."""

    code = "NO_CONTACTS_WITH_TAG"

    def __init__(self, tag_name: str):
        super().__init__(f'No contacts found with tag "{tag_name}"')
        self.tag_name = tag_name


class NoTagsFoundError(NotFoundError):
    code = "NO_TAGS_FOUND"

    def __init__(self):
        super().__init__("No tags found")


class NoContactsFoundError(NotFoundError):
    code = "NO_CONTACTS_FOUND"

    def __init__(self, message: str = "No contacts found"):
        super().__init__(message)


class NoFavoritesFoundError(NotFoundError):
    code = "NO_FAVORITES_FOUND"

    def __init__(self):
        super().__init__("No favorite contacts found")


# =============================================================================
# Conflicts
# =============================================================================

class ConflictError(ContactsAPIException):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class TagNameConflictError(ConflictError):
    code = "TAG_NAME_EXISTS"

    def __init__(self, name: str):
        super().__init__(f'A tag named "{name}" already exists for this user')
        self.name = name


class UserAlreadyExistsError(ConflictError):
    code = "USER_ALREADY_EXISTS"

    def __init__(self):
        super().__init__("A user with this email already exists")


# =============================================================================
# Association state
# =============================================================================

class AssociationError(ContactsAPIException):
    code = "ASSOCIATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class TagAlreadyAssignedError(AssociationError):
    code = "TAG_ALREADY_ASSIGNED"

    def __init__(self):
        super().__init__("This contact already has this tag")


class TagNotAssignedError(AssociationError):
    code = "TAG_NOT_ASSIGNED"

    def __init__(self):
        super().__init__("This contact doesn't have this tag")


# =============================================================================
# Authentication
# =============================================================================

class AuthenticationError(ContactsAPIException):
    code = "AUTHENTICATION_REQUIRED"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid email or password")


class WrongCurrentPasswordError(AuthenticationError):
    code = "WRONG_CURRENT_PASSWORD"

    def __init__(self):
        super().__init__("Current password is incorrect")


class SamePasswordError(ValidationError):
    code = "SAME_PASSWORD"

    def __init__(self):
        super().__init__("New password must be different from current password")


class InternalError(ContactsAPIException):
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


# =============================================================================
# Exception Handlers
# =============================================================================

async def contacts_api_exception_handler(request: Request, exc: ContactsAPIException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors.

    Field errors are flattened into one message, e.g.
    "body.name: Field required, path.tag_id: Input should be a valid integer".
    """
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": ValidationError.code,
            "message": ", ".join(messages) or "Validation failed",
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        code = AuthenticationError.code
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        code = NotFoundError.code
    else:
        code = f"HTTP_{exc.status_code}"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": code, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError().to_dict(),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(ContactsAPIException, contacts_api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
