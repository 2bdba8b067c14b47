"""Business logic for creating and resolving short links."""

import logging

from . import models
from .errors import ConflictError, ExhaustedError, NotFound, ValidationError
from .link_utils import generate_code, is_reserved_code, is_valid_code, is_valid_url
from .store import LinkStore

DEFAULT_MAX_ATTEMPTS = 10


class LinkService:
    """Code allocation, redirects and the plain CRUD pass-throughs.

    Args:
        store: storage backend the service reads and writes
        code_length: length of generated codes
        max_attempts: how many generated candidates to try before giving up
        logger: optional logger, defaults to the module logger
    """

    def __init__(
        self,
        store: LinkStore,
        code_length: int = 6,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        logger: logging.Logger | None = None,
    ):
        self.store = store
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger(__name__)

    def create_link(self, target_url, code=None) -> models.Link:
        if not is_valid_url(target_url):
            raise ValidationError("Invalid URL format")

        if isinstance(code, str):
            code = code.strip()
        if code:
            if not is_valid_code(code):
                raise ValidationError("Code must be 6-8 alphanumeric characters")
            if is_reserved_code(code):
                raise ValidationError(f"Code '{code}' is reserved")
            link = self.store.insert(code, target_url)
        else:
            link = self._insert_generated(target_url)

        self.logger.info("Created link %s -> %s", link.code, target_url)
        return link

    def _insert_generated(self, target_url: str) -> models.Link:
        for attempt in range(1, self.max_attempts + 1):
            candidate = generate_code(self.code_length)
            if is_reserved_code(candidate):
                continue
            if self.store.find_by_code(candidate) is not None:
                self.logger.warning("Generated code %s already taken (attempt %d)", candidate, attempt)
                continue
            try:
                return self.store.insert(candidate, target_url)
            except ConflictError:
                # Lost a race with a concurrent insert of the same code
                self.logger.warning("Generated code %s taken at insert (attempt %d)", candidate, attempt)

        self.logger.error(
            "Could not allocate a free code after %d attempts; codespace exhausted or store unhealthy",
            self.max_attempts,
        )
        raise ExhaustedError("Could not generate a unique code")

    def resolve(self, code: str) -> str:
        """Count a click on ``code`` and return its target URL."""
        if not is_valid_code(code):
            raise NotFound("Link not found")
        target_url = self.store.increment_clicks(code)
        if target_url is None:
            self.logger.debug("Redirect miss for %s", code)
            raise NotFound("Link not found")
        return target_url

    def list_links(self, q: str | None = None) -> list[models.Link]:
        return self.store.list_all(q or None)

    def get_link(self, code: str) -> models.Link:
        link = self.store.find_by_code(code)
        if link is None:
            raise NotFound("Link not found")
        return link

    def delete_link(self, code: str) -> None:
        if not self.store.delete_by_code(code):
            raise NotFound("Link not found")
        self.logger.info("Deleted link %s", code)
