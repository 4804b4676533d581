"""Translate stored JSON-Schema text into runtime argument validators.

The capability bridge only talks to ``ArgumentContract``; the schema dialect
lives behind ``build_contract`` and can be swapped here.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from jsonschema import exceptions as jsonschema_exceptions
from jsonschema import validators as jsonschema_validators
from jsonschema import Draft202012Validator
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012, specification_with

logger = logging.getLogger(__name__)

# Advertised when a tool declares no usable schema
EMPTY_OBJECT_SCHEMA: Dict[str, Any] = {"type": "object"}


def parse_input_schema(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse stored schema text.

    Returns:
        The schema object, or None if the text is empty, not JSON, or not an object
    """
    if not text or not text.strip():
        return None
    try:
        schema = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring unparsable input schema: {e}")
        return None
    if not isinstance(schema, dict):
        logger.warning(f"Ignoring input schema of type {type(schema).__name__}, expected object")
        return None
    return schema


class ArgumentContract:
    """Validates caller-supplied arguments."""

    schema: Optional[Dict[str, Any]] = None

    def validate(self, arguments: Mapping[str, Any]) -> List[str]:
        """Return readable validation errors; empty means the arguments are accepted."""
        raise NotImplementedError

    @property
    def advertised_schema(self) -> Dict[str, Any]:
        """Schema exposed to protocol callers in tools/list."""
        return self.schema if self.schema is not None else dict(EMPTY_OBJECT_SCHEMA)


class PermissiveContract(ArgumentContract):
    """Accepts any arguments. Used when the tool has no valid schema."""

    def validate(self, arguments: Mapping[str, Any]) -> List[str]:
        return []


class JsonSchemaContract(ArgumentContract):
    """Validates arguments with a jsonschema validator."""

    MAX_REPORTED_ERRORS = 5

    def __init__(self, schema: Dict[str, Any]):
        self.schema = schema
        validator_cls = jsonschema_validators.validator_for(schema, default=Draft202012Validator)
        self._validator = validator_cls(schema)

    def validate(self, arguments: Mapping[str, Any]) -> List[str]:
        try:
            errors = sorted(self._validator.iter_errors(dict(arguments)), key=lambda err: list(err.path))
        except Unresolvable as e:
            return [f"<root>: schema reference cannot be resolved ({e})"]
        return [
            f"{'/'.join(map(str, err.path)) or '<root>'}: {err.message}"
            for err in errors[: self.MAX_REPORTED_ERRORS]
        ]


def _iter_references(node: Any, is_root: bool = True) -> Iterator[str]:
    """
    Yield $ref values resolved against the root document.

    Subschemas declaring their own $id start a new base URI and are skipped.
    """
    if isinstance(node, dict):
        if not is_root and "$id" in node:
            return
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref
        for value in node.values():
            yield from _iter_references(value, is_root=False)
    elif isinstance(node, list):
        for item in node:
            yield from _iter_references(item, is_root=False)


def check_references(schema: Dict[str, Any]) -> None:
    """
    Resolve every $ref of a schema without network access.

    Raises:
        Unresolvable: If a reference points nowhere or at a remote document
    """
    specification = specification_with(schema.get("$schema", ""), default=DRAFT202012)
    resource = specification.create_resource(schema)
    base_uri = resource.id() or ""
    resolver = Registry().with_resource(base_uri, resource).resolver(base_uri=base_uri)
    for ref in _iter_references(schema):
        resolver.lookup(ref)


def build_contract(schema: Optional[Dict[str, Any]]) -> ArgumentContract:
    """Compile a parsed schema into a contract, falling back to no validation."""
    if schema is None:
        return PermissiveContract()
    try:
        validator_cls = jsonschema_validators.validator_for(schema, default=Draft202012Validator)
        validator_cls.check_schema(schema)
        check_references(schema)
    except jsonschema_exceptions.SchemaError as e:
        logger.warning(f"Input schema is not a valid JSON Schema, arguments will not be validated: {e.message}")
        return PermissiveContract()
    except Unresolvable as e:
        logger.warning(f"Input schema has an unresolvable reference, arguments will not be validated: {e}")
        return PermissiveContract()
    return JsonSchemaContract(schema)


def contract_from_text(text: Optional[str]) -> ArgumentContract:
    return build_contract(parse_input_schema(text))
