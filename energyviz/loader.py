"""
energyviz.loader — Fetch and validate the raw energy dataset.

A source is either a filesystem path or an http(s) URL. The document is
parsed as JSON and validated against the raw schema in energyviz.models.

Design contract:
    - load_dataset() is the ONLY function that performs I/O.
    - Every failure (unreachable source, bad JSON, wrong shape) surfaces
      as LoadError. No retry, no fallback, no partial result.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import requests
from pydantic import ValidationError

from energyviz.models import DATASET_ADAPTER, RawYearRecord

logger = logging.getLogger("energyviz.loader")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

FETCH_TIMEOUT: float = float(os.getenv("ENERGYVIZ_FETCH_TIMEOUT", "30"))
"""Timeout in seconds for HTTP sources. Controlled by ENERGYVIZ_FETCH_TIMEOUT."""

_HTTP_SCHEMES = ("http://", "https://")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LoadError(Exception):
    """Raised when the raw dataset cannot be fetched or parsed."""

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Failed to load energy data from {source}: {detail}")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_dataset(payload: Any, source: str = "<payload>") -> list[RawYearRecord]:
    """Validate an already-decoded JSON payload as a list of year records.

    Raises:
        LoadError: if the payload does not match the raw schema.
    """
    try:
        return DATASET_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(p) for p in first.get("loc", ()))
        raise LoadError(
            source,
            f"{exc.error_count()} validation error(s); first at "
            f"'{location or '<root>'}': {first.get('msg', 'invalid')}",
        ) from exc


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

def _is_url(source: str) -> bool:
    return source.lower().startswith(_HTTP_SCHEMES)


def _fetch_url(url: str) -> Any:
    try:
        response = requests.get(url, timeout=FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise LoadError(url, f"{type(exc).__name__}: {exc}") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise LoadError(url, "Response body is not valid JSON.") from exc


def _read_file(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except OSError as exc:
        raise LoadError(str(path), f"{type(exc).__name__}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise LoadError(str(path), f"Invalid JSON at line {exc.lineno}: {exc.msg}") from exc


def load_dataset(source: str | Path) -> list[RawYearRecord]:
    """Fetch a dataset from a path or URL and validate it.

    Returns:
        Year records in feed order.

    Raises:
        LoadError: on any fetch, decode or validation failure.
    """
    source_str = str(source)
    if isinstance(source, str) and _is_url(source):
        payload = _fetch_url(source)
    else:
        payload = _read_file(Path(source))

    records = parse_dataset(payload, source_str)
    logger.info(json.dumps({
        "event": "dataset_loaded",
        "source": source_str,
        "years": len(records),
    }))
    return records
