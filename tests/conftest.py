"""Shared fixtures for the modelgen tests.

The petstore document is small but covers the common shapes: a component
struct with a date-time field, an inline request body object and
responses that point back at component schemas.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

PETSTORE: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {"name": {"type": "string"}},
                                "required": ["name"],
                            }
                        }
                    },
                },
                "responses": {
                    "201": {
                        "description": "Created",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    }
                },
            },
            "get": {
                "operationId": "listPets",
                "responses": {
                    "200": {
                        "description": "A list of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                }
                            }
                        },
                    }
                },
            },
        }
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "name": {"type": "string"},
                    "born": {"type": "string", "format": "date-time"},
                },
                "required": ["id", "name"],
            }
        }
    },
}


@pytest.fixture
def petstore() -> dict[str, Any]:
    """A fresh copy of the petstore document; tests may mutate it."""
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def petstore_file(tmp_path: Path) -> Path:
    """The petstore document written to disk as JSON."""
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(PETSTORE))
    return path


# A nullable component field and an inline body whose only field is optional
PET_EXAMPLE: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Pets", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {"name": {"type": "string"}},
                            }
                        }
                    }
                },
                "responses": {"201": {"description": "Created"}},
            }
        }
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "tag": {"type": "string", "nullable": True},
                },
                "required": ["name"],
            }
        }
    },
}


@pytest.fixture
def pet_example() -> dict[str, Any]:
    """Pet with a nullable tag plus the createPet operation."""
    return copy.deepcopy(PET_EXAMPLE)
