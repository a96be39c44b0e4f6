"""Schema loading and validation using package data."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib.resources import files
from typing import Any

from jsonschema.validators import Draft202012Validator

SCHEMA_PACKAGE = "safe_push.schemas"


@lru_cache(maxsize=None)
def get_schema(schema_name: str) -> dict[str, Any]:
    """Load a packaged schema by name (without the ``.schema.json`` suffix).

    Raises:
        KeyError: If the schema is not shipped with the package
    """
    resource = files(SCHEMA_PACKAGE).joinpath(f"{schema_name}.schema.json")
    if not resource.is_file():
        raise KeyError(f"Schema not found in package data: {schema_name}")
    return json.loads(resource.read_text(encoding="utf-8"))


def validate_data(data: Any, schema_name: str) -> list[str]:
    """Validate data against a packaged schema and return error messages.

    An empty list means the data is valid. Messages are prefixed with the
    dotted path of the offending value when there is one.
    """
    validator = Draft202012Validator(get_schema(schema_name))
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    return [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]
