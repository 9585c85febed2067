# sqlgram_gen/io.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import requests
import yaml

from .constants import HTTP_TIMEOUT_SECONDS
from .exceptions import LoadError, ParseError
from .spec_model import StmtSpec
from .validate import build_specs


def is_remote(location: str) -> bool:
    return location.startswith("http")


def load_resource(location: str) -> bytes:
    """Fetch raw bytes from a local path or an http(s) address."""
    if is_remote(location):
        try:
            resp = requests.get(location, timeout=HTTP_TIMEOUT_SECONDS)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise LoadError(f"failed to fetch {location}: {e}") from e
        return resp.content

    try:
        return Path(location).read_bytes()
    except OSError as e:
        raise LoadError(f"failed to read {location}: {e}") from e


def _load_yaml_document(location: str) -> Any:
    raw = load_resource(location)
    try:
        return yaml.safe_load(raw.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        raise ParseError(f"failed to parse {location}: {e}") from e


def load_specs(location: str) -> list[StmtSpec]:
    """Load the statement specs (YAML or JSON) in document order.

    An empty location yields no specs; only the top-level production is then
    processed.
    """
    if not location:
        return []

    doc = _load_yaml_document(location)
    return build_specs(doc, source=location)


def load_preprocess_document(location: str) -> dict[str, Any]:
    doc = _load_yaml_document(location)
    if not isinstance(doc, dict):
        raise ParseError(
            f"Top-level YAML must be a mapping in {location}, got {type(doc).__name__}"
        )
    return doc
