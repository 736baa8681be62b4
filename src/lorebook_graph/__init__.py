"""Lorebook Graph - author world graphs and compile them into lorebooks."""

__version__ = "0.1.0"
