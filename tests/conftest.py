"""Shared fixtures for Lorebook Graph tests."""

import random

import pytest

from lorebook_graph.config import Settings
from lorebook_graph.graph import GraphStore


@pytest.fixture
def settings():
    return Settings(default_spawn_probability=0.1, default_global_spawn_chance=0.1)


@pytest.fixture
def store(settings):
    """An empty store with deterministic node placement."""
    return GraphStore(settings=settings, rng=random.Random(0))


@pytest.fixture
def add(store):
    """Factory: add a named node with keywords and return its id."""

    def _add(node_type: str, name: str, *keywords: str, **fields) -> str:
        node_id = store.add_node(node_type)
        store.update_element(node_id, name=name, keywords=list(keywords), **fields)
        return node_id

    return _add


@pytest.fixture
def sample_lorebook():
    """A small lorebook touching every derived field."""
    return [
        {
            "keywords": ["forest", "woods"],
            "category": "location",
            "name": "Forest",
            "content": "\nForest=[Tall pines and damp moss.]",
            "contentShort": "\nForest=[Pines.]",
            "triggers": ["cave"],
            "images": {"day": ["http://img/forest.png"]},
            "filters": {},
            "enabled": True,
            "subLocations": {
                "Clearing": {"images": {"day": ["http://img/clearing.png"]}},
            },
        },
        {
            "keywords": ["cave"],
            "category": "location",
            "name": "Cave",
            "content": "",
            "contentShort": "",
            "triggers": ["forest"],
            "images": {},
            "filters": {},
            "enabled": True,
        },
        {
            "keywords": ["bob"],
            "category": "character",
            "name": "Bob",
            "content": "\nBob=[He is tall]",
            "contentShort": "",
            "triggers": ["alice"],
            "canSpawnAt": {"forest": 0.3, "Clearing": 0.6},
            "images": {},
            "filters": {"requiresAny": ["daytime"]},
            "disabledFor": [],
            "enabled": True,
            "knows": {"alice": {"relationship": "siblings", "thoughts": "She worries too much"}},
        },
        {
            "keywords": ["alice"],
            "category": "character",
            "name": "Alice",
            "content": "",
            "contentShort": "",
            "triggers": ["bob"],
            "canSpawnAt": {"cave": 0},
            "images": {},
            "filters": {},
            "disabledFor": ["storm"],
            "enabled": True,
            "knows": {"bob": {"relationship": "siblings", "thoughts": "He never listens"}},
        },
        {
            "keywords": ["storm"],
            "category": "event",
            "name": "Storm",
            "content": "\nCurrent event=[Rain hammers down]",
            "contentShort": "",
            "triggers": [],
            "canSpawnAt": {"any": 0.05},
            "timeFilter": ["night"],
            "images": {},
            "filters": {},
            "disabledFor": [],
            "enabled": True,
        },
        {
            "keywords": ["cave-in"],
            "category": "event",
            "name": "Cave-in",
            "content": "",
            "contentShort": "",
            "triggers": [],
            "canSpawnAt": {"cave": 0.2},
            "timeFilter": [],
            "images": {},
            "filters": {},
            "disabledFor": [],
            "enabled": True,
        },
    ]
