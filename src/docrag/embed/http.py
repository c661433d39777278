"""JSON-over-HTTP helper shared by the embedding providers."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from docrag.exceptions import EmbeddingError

__all__ = ["DEFAULT_TIMEOUT", "post_json"]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120  # seconds


def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    service: str,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """POST ``payload`` as JSON and return the decoded JSON object.

    ``service`` names the backend in error messages.

    Raises:
        EmbeddingError: If the server is unreachable, answers with an HTTP
            error, or returns something other than a JSON object.
    """
    request = Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", **(headers or {})},
    )
    logger.debug("POST %s (%s)", url, service)

    try:
        with urlopen(request, timeout=timeout) as resp:
            data = json.loads(resp.read())
    except json.JSONDecodeError as e:
        raise EmbeddingError(f"{service} returned invalid JSON from {url}") from e
    # HTTPError subclasses URLError, so it must be caught first
    except HTTPError as e:
        if e.code == 429:
            raise EmbeddingError(f"{service} rate limit exceeded (HTTP 429)") from e
        raise EmbeddingError(f"{service} error (HTTP {e.code}): {e.reason}") from e
    except (ConnectionError, URLError) as e:
        raise EmbeddingError(f"{service} not reachable at {url}: {e}") from e

    if not isinstance(data, dict):
        raise EmbeddingError(f"{service} returned a JSON {type(data).__name__}, expected an object")
    return data
