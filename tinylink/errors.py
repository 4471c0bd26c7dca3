from fastapi import status


class LinkError(Exception):
    """Base for failures reported back to API callers."""

    kind = "LinkError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidUrl(LinkError):
    kind = "InvalidUrl"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid URL format"


class InvalidCode(LinkError):
    kind = "InvalidCode"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Code must be 6-8 alphanumeric characters"


class CodeConflict(LinkError):
    kind = "CodeConflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Code already exists"


class CodeSpaceExhausted(LinkError):
    kind = "CodeSpaceExhausted"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to generate unique code"


class NotFound(LinkError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Link not found"


class StoreUnavailable(LinkError):
    kind = "StoreUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Link store unavailable"
