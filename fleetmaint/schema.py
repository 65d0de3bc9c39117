"""JSON-schema validation for fleet files and API payloads."""

import json
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from jsonschema import validate
from jsonschema import ValidationError as SchemaError

from .errors import ValidationError

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


@lru_cache(maxsize=1)
def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def normalize(data: Any) -> Any:
    """Turn YAML-native dates into ISO strings so they validate as strings."""
    return json.loads(json.dumps(data, default=lambda o: o.isoformat() if isinstance(o, date) else str(o)))


def _definition_schema(name: str, schema: dict) -> Dict[str, Any]:
    return {
        "$schema": schema.get("$schema"),
        "$defs": schema["$defs"],
        "$ref": f"#/$defs/{name}",
    }


def validate_definition(instance: Any, name: str, schema: Optional[dict] = None) -> None:
    """
    Validate an instance against one of the schema's $defs entries.

    Raises the domain ValidationError with the schema message and path.
    """
    schema = schema or load_schema()
    try:
        validate(instance=normalize(instance), schema=_definition_schema(name, schema))
    except SchemaError as e:
        location = ".".join(str(p) for p in e.path)
        message = f"{e.message} (at {location})" if location else e.message
        raise ValidationError(message) from e


def validate_rule_payload(payload: Dict[str, Any]) -> None:
    validate_definition(payload, "rule")
