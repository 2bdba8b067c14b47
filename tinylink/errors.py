"""Error kinds raised by the link service and stores.

Each error carries the HTTP status the API answers with, so the web layer
can translate them with one handler.
"""


class LinkError(Exception):
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class ValidationError(LinkError):
    """Malformed target URL or short code."""

    status_code = 400


class ConflictError(LinkError):
    """The code is already taken by another link."""

    status_code = 409


class NotFound(LinkError):
    status_code = 404


class ExhaustedError(LinkError):
    """No free code was found within the attempt budget."""

    status_code = 500


class StorageError(LinkError):
    status_code = 500
