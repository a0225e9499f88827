#flowarchive/structural/schema.py
from typing import Any, Dict

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from flowarchive.errors import SchemaLoadError
from flowarchive.utils.io import PathLike, read_json, to_path

UUID_PATTERN = "^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

WORKFLOW_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "n8n workflow",
    "type": "object",
    "required": ["nodes", "connections"],
    "properties": {
        "name": {"type": "string"},
        "active": {"type": "boolean"},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "name", "type", "typeVersion", "position", "parameters"],
                "properties": {
                    "id": {
                        "type": "string",
                        "pattern": UUID_PATTERN
                    },
                    "name": {
                        "type": "string",
                        "minLength": 1
                    },
                    "type": {
                        "type": "string",
                        # dotted node type, optionally scoped: "@n8n/n8n-nodes-langchain.openAi"
                        "pattern": "^(@[A-Za-z0-9_-]+/)?[A-Za-z0-9_-]+\\.[A-Za-z0-9_.-]+$"
                    },
                    "typeVersion": {
                        "type": "number",
                        "minimum": 0
                    },
                    # n8n exports position as [x, y]
                    "position": {
                        "type": "array",
                        "items": {"type": "number"},
                        "minItems": 2,
                        "maxItems": 2
                    },
                    "parameters": {
                        "type": "object"
                    },
                    "continueOnFail": {"type": "boolean"},
                    "onError": {"type": "string"},
                    "disabled": {"type": "boolean"},
                    "credentials": {"type": "object"}
                },
                "additionalProperties": True
            }
        },
        "connections": {
            "type": "object",
            # source node name -> output stream -> list of paths -> list of hops
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {
                    "type": "array",
                    "items": {
                        "anyOf": [
                            {"type": "null"},
                            {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "required": ["node"],
                                    "properties": {
                                        "node": {"type": "string"},
                                        "type": {"type": "string"},
                                        "index": {"type": "integer", "minimum": 0}
                                    }
                                }
                            }
                        ]
                    }
                }
            }
        },
        "settings": {"type": "object"},
        "tags": {"type": "array"}
    },
    "additionalProperties": True
}


def load_schema(path: PathLike) -> Dict[str, Any]:
    """
    Read a JSON Schema document from disk and check it is itself a valid schema.
    Any failure is fatal for a validation run, so it surfaces as SchemaLoadError.
    """
    p = to_path(path)
    if not p.is_file():
        raise SchemaLoadError(p, "schema file not found")
    try:
        schema = read_json(p)
    except (ValueError, OSError) as e:
        raise SchemaLoadError(p, f"cannot parse schema: {e}") from e
    check_schema(schema, p)
    return schema


def validator_class(schema: Dict[str, Any]):
    """Validator class for the draft named by `$schema`; draft-07 when it names none."""
    return validator_for(schema, default=Draft7Validator)


def check_schema(schema: Any, source: PathLike = "<schema>"):
    """Check `schema` against its own metaschema and return the matching validator class."""
    if not isinstance(schema, dict):
        raise SchemaLoadError(source, "schema must be a JSON object")
    cls = validator_class(schema)
    try:
        cls.check_schema(schema)
    except SchemaError as e:
        raise SchemaLoadError(source, f"invalid schema: {e.message}") from e
    return cls
