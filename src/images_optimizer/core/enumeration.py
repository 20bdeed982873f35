"""Enumeration of the source image keys from the project listing endpoint."""

from typing import Any, List, Optional, Union

import requests
from pydantic import TypeAdapter, ValidationError

from .exceptions import EnumerationError
from .models import Project, ProjectEnvelope
from .observability import LogContext
from .protocols import LoggerProtocol

_ENTRIES = TypeAdapter(List[Union[ProjectEnvelope, Project]])


def parse_project_keys(payload: Any) -> List[str]:
    """
    Flatten a project listing into image keys.

    Each entry contributes its icon key followed by its image keys. Entries may
    be bare ``{"icon": ..., "images": [...]}`` objects or wrapped in a
    ``{"project": {...}}`` envelope.

    Raises:
        EnumerationError: If the payload does not match the listing schema
    """
    try:
        entries = _ENTRIES.validate_python(payload)
    except ValidationError as e:
        raise EnumerationError(
            f"Project listing does not match the expected schema: "
            f"{e.error_count()} validation error(s)"
        ) from e

    keys: List[str] = []
    for entry in entries:
        project = entry.project if isinstance(entry, ProjectEnvelope) else entry
        keys.extend(project.keys())
    return keys


class HttpKeyProvider:
    """Fetches the key list with a single HTTP GET."""

    def __init__(
        self,
        url: str,
        logger: LoggerProtocol,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 30.0,
    ):
        self._url = url
        self._logger = logger
        self._session = session or requests.Session()
        self._timeout = timeout

    def list_keys(self) -> List[str]:
        """Return every image key in listing order."""
        context = LogContext(operation="list_keys", component="key_provider").with_metadata(
            url=self._url
        )
        self._logger.debug("Requesting project listing", context)

        try:
            response = self._session.get(self._url, timeout=self._timeout)
        except requests.RequestException as e:
            raise EnumerationError(f"Project listing request failed: {e}") from e

        if not response.ok:
            raise EnumerationError(
                f"Project listing returned HTTP status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise EnumerationError(f"Project listing is not valid JSON: {e}") from e

        keys = parse_project_keys(payload)
        self._logger.info(f"Found {len(keys)} image keys", context)
        return keys
