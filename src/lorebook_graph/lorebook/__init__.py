"""Lorebook compilation: graph to lorebook and back."""

from lorebook_graph.lorebook.compiler import clean_images, compile_document, compile_graph
from lorebook_graph.lorebook.content import decode, encode
from lorebook_graph.lorebook.document import (
    SCHEMA_VERSION,
    extract_entries,
    read_document,
    write_document,
)
from lorebook_graph.lorebook.loader import LorebookLoader, load_lorebook

__all__ = [
    "SCHEMA_VERSION",
    "LorebookLoader",
    "clean_images",
    "compile_document",
    "compile_graph",
    "decode",
    "encode",
    "extract_entries",
    "load_lorebook",
    "read_document",
    "write_document",
]
