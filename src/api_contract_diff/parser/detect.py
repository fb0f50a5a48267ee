"""Detect and read a contract source: URL, file path, or raw content."""

import logging
from pathlib import Path

import requests

from api_contract_diff.config import Settings
from api_contract_diff.errors import RetrievalFailure

logger = logging.getLogger(__name__)


def detect_source(value: str) -> str:
    """Detect what kind of contract source a string is.

    Returns: 'url', 'file', or 'text'.
    """
    stripped = value.strip()
    if stripped.startswith(("http://", "https://")):
        return "url"

    # Raw documents span several lines; only short single-line values can be paths
    if "\n" not in stripped and stripped:
        try:
            if Path(stripped).is_file():
                return "file"
        except OSError:
            pass

    return "text"


def read_source(value: str, settings: Settings | None = None) -> str:
    """Return the document text behind a URL, a file path, or raw content."""
    kind = detect_source(value)

    if kind == "url":
        return fetch_url(value.strip(), settings or Settings.from_env())
    elif kind == "file":
        path = Path(value.strip())
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RetrievalFailure(str(path), str(e)) from e
    return value


def fetch_url(url: str, settings: Settings) -> str:
    logger.info("Fetching contract from %s", url)
    try:
        resp = requests.get(
            url,
            timeout=settings.fetch_timeout,
            headers={"User-Agent": settings.user_agent},
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        raise RetrievalFailure(url, str(e)) from e
    return resp.text
