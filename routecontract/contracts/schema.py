"""
Schema capability - the validate-and-coerce unit every contract check runs through.

A schema is anything exposing:
    parse(raw) -> parsed value     (raises on invalid input)
    dump(parsed) -> JSON-ready value

Route tables are authored with plain pydantic types; as_schema() adapts them:
- BaseModel subclasses, TypedDicts, dataclasses, list[int], ... -> TypeAdapter
- Objects that already expose parse() are used as-is

Key invariant: an undeclared request slot is not "skip", it is "must be empty".
EMPTY_OBJECT and OPTIONAL_EMPTY_OBJECT encode that assertion.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic_core import to_jsonable_python


class Schema:
    """pydantic-backed schema built from any type TypeAdapter accepts."""

    __slots__ = ('source', '_adapter')

    def __init__(self, source: Any):
        self.source = source
        self._adapter = TypeAdapter(source)

    def parse(self, raw: Any) -> Any:
        return self._adapter.validate_python(raw)

    def dump(self, value: Any) -> Any:
        return self._adapter.dump_python(value, mode='json')

    def __repr__(self) -> str:
        return f"Schema({getattr(self.source, '__name__', self.source)!r})"


class ParserSchema:
    """Wraps a foreign object that only knows how to parse()."""

    __slots__ = ('source', '_parse')

    def __init__(self, source: Any, parse: Callable[[Any], Any]):
        self.source = source
        self._parse = parse

    def parse(self, raw: Any) -> Any:
        return self._parse(raw)

    def dump(self, value: Any) -> Any:
        return to_jsonable_python(value)

    def __repr__(self) -> str:
        return f"ParserSchema({self.source!r})"


class EmptyObject(BaseModel):
    """An object with no keys. Anything extra is a validation error."""
    model_config = ConfigDict(extra='forbid')


class _EmptyObjectSchema:
    """Asserts that a request part carries no keys; parses to {}."""

    __slots__ = ('optional',)

    def __init__(self, optional: bool = False):
        # optional: a missing value (None) is also accepted, e.g. no request body
        self.optional = optional

    def parse(self, raw: Any) -> Optional[dict]:
        if raw is None and self.optional:
            return None
        EmptyObject.model_validate(raw)
        return {}

    def dump(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return 'OPTIONAL_EMPTY_OBJECT' if self.optional else 'EMPTY_OBJECT'


EMPTY_OBJECT = _EmptyObjectSchema()
OPTIONAL_EMPTY_OBJECT = _EmptyObjectSchema(optional=True)


def is_schema(obj: Any) -> bool:
    """True when obj already implements the schema capability."""
    if isinstance(obj, type):
        return False
    return callable(getattr(obj, 'parse', None)) and callable(getattr(obj, 'dump', None))


def as_schema(obj: Any) -> Optional[Any]:
    """
    Adapt an authored schema slot to the schema capability.

    Args:
        obj: None, a schema, an object with parse(), or a pydantic-compatible type

    Returns:
        None (slot not declared) or an object with parse()/dump()

    Raises:
        pydantic.PydanticSchemaGenerationError: If obj is not a type pydantic understands
    """
    if obj is None:
        return None
    if is_schema(obj):
        return obj
    if callable(getattr(obj, 'parse', None)) and not isinstance(obj, type):
        return ParserSchema(obj, obj.parse)
    return Schema(obj)
