"""Reading and writing lorebook documents.

A document is either a bare list of entries or an envelope
``{"entries": [...]}``. Envelopes written by this package carry a
``schemaVersion`` naming the relationship variant: character
relationships live in a nested ``knows`` mapping. Untagged documents are
read as that variant; documents tagged with anything else are refused.
"""

import json
from pathlib import Path
from typing import Any

from ..errors import LorebookFormatError

SCHEMA_VERSION = "knows-map/1"


def extract_entries(document: Any) -> list[Any]:
    """Return the entry list of a bare or enveloped document."""
    if isinstance(document, list):
        return document

    if isinstance(document, dict) and isinstance(document.get("entries"), list):
        version = document.get("schemaVersion")
        if version is not None and version != SCHEMA_VERSION:
            raise LorebookFormatError(
                f"Unsupported lorebook schema {version!r} (expected {SCHEMA_VERSION})"
            )
        return document["entries"]

    raise LorebookFormatError(
        "Invalid lorebook format: expected a list of entries or an object with an 'entries' list"
    )


def read_document(path: Path | str) -> Any:
    """Read a lorebook document from a JSON file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise LorebookFormatError(f"Failed to parse JSON in {path}: {e}") from e
    except OSError as e:
        raise LorebookFormatError(f"Cannot read {path}: {e}") from e


def write_document(path: Path | str, document: Any, indent: int = 2) -> Path:
    """Write a lorebook document as JSON."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=indent, ensure_ascii=False)
        f.write("\n")
    return path
