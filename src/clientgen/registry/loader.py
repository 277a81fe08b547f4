"""Read model documents from a file, an HTTP(S) URL or stdin.

A model document is a JSON or YAML mapping whose top-level ``clientgen`` key
names the document format version. :func:`load_model` only reads and parses
it; :func:`validate_model_version` checks the version and
:func:`~clientgen.registry.extractor.registry_from_document` turns the
mapping into a registry.

The format is picked from the file suffix or the response content type when
one is available. Otherwise JSON is tried first, since every JSON document is
also YAML and the JSON error is more precise.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from clientgen.exceptions import ModelLoadError

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1",)

_SUFFIX_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def load_model(source: str) -> dict[str, Any]:
    """Load the model document named by *source*.

    Args:
        source: ``-`` for stdin, an ``http://`` or ``https://`` URL, or a
            file path.

    Returns:
        The document as a mapping.

    Raises:
        ModelLoadError: If the source cannot be read, is empty, or does not
            hold a JSON/YAML mapping.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source)
    return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise ModelLoadError(f"Failed to read from stdin: {exc}") from exc
    if not content.strip():
        raise ModelLoadError("No input received from stdin")
    return _parse_content(content)


def _load_from_url(url: str) -> dict[str, Any]:
    logger.debug("Fetching model from %s", url)
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ModelLoadError(f"HTTP {exc.response.status_code} fetching model from {url}") from exc
    except httpx.RequestError as exc:
        raise ModelLoadError(f"Failed to fetch model from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "").lower()
    hint = next((fmt for fmt in ("json", "yaml") if fmt in content_type), "")
    if not hint and "yml" in content_type:
        hint = "yaml"
    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise ModelLoadError(f"Model file not found: {path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModelLoadError(f"Failed to read model file {path}: {exc}") from exc
    if not content.strip():
        raise ModelLoadError(f"Model file is empty: {path}")
    return _parse_content(content, hint=_SUFFIX_FORMATS.get(file_path.suffix.lower(), ""))


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as the hinted format, or as JSON and then YAML.

    A ``json`` hint is final: a JSON syntax error is reported as such instead
    of being retried as YAML.
    """
    failures: list[str] = []

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise ModelLoadError(f"Invalid JSON: {exc}") from exc
            failures.append(f"JSON error: {exc}")

    try:
        return _require_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        failures.append(f"YAML error: {exc}")

    raise ModelLoadError(
        "Failed to parse model as JSON or YAML" + "".join(f"\n  {f}" for f in failures)
    )


def _require_mapping(document: Any) -> dict[str, Any]:
    if isinstance(document, dict):
        return document
    got = "empty document" if document is None else type(document).__name__
    raise ModelLoadError(f"Model must be a JSON/YAML object (got {got})")


def validate_model_version(document: dict[str, Any]) -> str:
    """Return the document's format version as a string.

    Raises:
        ModelLoadError: If the ``clientgen`` key is missing or names a
            version this release cannot read.
    """
    if "clientgen" not in document:
        raise ModelLoadError("Missing 'clientgen' field. Is this a clientgen model document?")
    version = str(document["clientgen"])
    if version not in SUPPORTED_VERSIONS:
        raise ModelLoadError(
            f"Unsupported model version: {version}. "
            f"Supported versions: {', '.join(SUPPORTED_VERSIONS)}."
        )
    return version
