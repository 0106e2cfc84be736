"""Schema introspection for Pydantic models.

This module analyzes Pydantic models and maps every field annotation to a
value kind of the wire format. The resulting schema tree drives the encoder
and decoder walkers; the engines themselves never look at Python types.
"""

from __future__ import annotations

import enum
import threading
import types
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    Dict,
    FrozenSet,
    List,
    Optional,
    Tuple,
    Type,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..exceptions import SchemaError
from ..models.fields import CharMarker, FloatWidth, IntWidth
from .kinds import ValueKind

_NONE_TYPE = type(None)
_SEQUENCE_CONTAINERS = (list, set, frozenset)

# Longest sequence or map whose elements may encode to zero bytes. The input
# length cannot bound such counts, so this does.
MAX_ZERO_WIDTH_ELEMENTS = 1 << 16

# Kinds whose encoding always takes at least one byte.
_NON_EMPTY_KINDS = frozenset(
    {
        ValueKind.BOOL,
        ValueKind.CHAR,
        ValueKind.STR,
        ValueKind.BYTES,
        ValueKind.OPTION,
        ValueKind.SEQ,
        ValueKind.MAP,
        ValueKind.ENUM,
    }
)


@dataclass(frozen=True)
class TypeSchema:
    """Wire-level description of one Python type.

    Attributes:
        kind: Value kind the type encodes as
        items: Child schemas (option inner, seq element, map key and value, tuple members)
        container: Builder for decoded sequences (list, tuple, set, frozenset)
        enum_type: Python enum class for unit-variant enums
        models: Message schemas for structs (one) or tagged unions (one per variant)
        custom: Encodable class that produces/consumes itself
    """

    kind: ValueKind
    items: Tuple[TypeSchema, ...] = ()
    container: Optional[type] = None
    enum_type: Optional[Type[enum.Enum]] = None
    models: Tuple[MessageSchema, ...] = ()
    custom: Optional[type] = None

    def min_size(self, _active: FrozenSet[MessageSchema] = frozenset()) -> int:
        """Smallest number of bytes any value of this type encodes to.

        Encodable types report 0 since their layout is opaque. A struct that
        is already being measured further up counts as 0 where it recurses.
        """
        if self.custom is not None:
            return 0
        if self.kind.is_integer or self.kind in _NON_EMPTY_KINDS:
            return 1
        if self.kind is ValueKind.F32:
            return 4
        if self.kind is ValueKind.F64:
            return 8
        if self.kind is ValueKind.TUPLE:
            return sum(item.min_size(_active) for item in self.items)
        if self.kind is ValueKind.STRUCT:
            model_schema = self.models[0]
            if model_schema in _active:
                return 0
            active = _active | {model_schema}
            return sum(
                field_schema.type_schema.min_size(active) for field_schema in model_schema.fields
            )
        return 0

    def variant_count(self) -> int:
        """Number of variants of an enum schema."""
        if self.enum_type is not None:
            return len(self.enum_type)
        return len(self.models)

    def variant_index(self, value: Any) -> Optional[int]:
        """Return the union variant index for a model instance, or None."""
        for index, model_schema in enumerate(self.models):
            if type(value) is model_schema.model_class:
                return index
        for index, model_schema in enumerate(self.models):
            if isinstance(value, model_schema.model_class):
                return index
        return None


@dataclass(frozen=True)
class FieldSchema:
    """Schema information for a single message field.

    Attributes:
        name: Field name
        annotation: Python type annotation as seen by Pydantic
        type_schema: Wire-level schema of the field
    """

    name: str
    annotation: Any
    type_schema: TypeSchema


@dataclass(eq=False)
class MessageSchema:
    """Schema information for an entire message.

    Fields are kept in declaration order, which is the order they appear on
    the wire. Schemas are cached per model class and published only once fully
    built; a model that refers to itself (directly or through other models)
    reuses the entry under construction.

    Example:
        >>> schema = MessageSchema.from_model(StatusReport)
        >>> for field in schema.fields:
        ...     print(f"{field.name}: {field.type_schema.kind.value}")
    """

    model_class: Type[BaseModel]
    fields: List[FieldSchema] = field(default_factory=list)

    @classmethod
    def from_model(cls, model_class: Type[BaseModel]) -> MessageSchema:
        """Create (or fetch the cached) schema for a Pydantic model.

        Args:
            model_class: Pydantic model class

        Returns:
            MessageSchema instance

        Raises:
            SchemaError: If a field annotation is not supported
        """
        cached = _SCHEMA_CACHE.get(model_class)
        if cached is not None:
            return cached

        with _SCHEMA_LOCK:
            schema = _SCHEMA_CACHE.get(model_class)
            if schema is None:
                schema = _PENDING.get(model_class)
            if schema is not None:
                return schema

            # Everything reached from the outermost build is published together.
            outermost = not _PENDING
            schema = cls(model_class)
            _PENDING[model_class] = schema
            try:
                schema._introspect()
                if outermost:
                    _SCHEMA_CACHE.update(_PENDING)
            finally:
                if outermost:
                    _PENDING.clear()
            return schema

    def _introspect(self) -> None:
        """Introspect the model and populate field schemas."""
        # Pydantic v2 API; model_fields preserves declaration order
        for field_name, field_info in self.model_class.model_fields.items():
            self.fields.append(self._extract_field_schema(field_name, field_info))

    def _extract_field_schema(self, name: str, field_info: FieldInfo) -> FieldSchema:
        annotation = field_info.annotation
        try:
            type_schema = type_schema_for(annotation, tuple(field_info.metadata))
        except SchemaError as err:
            raise SchemaError(f"{self.model_class.__name__}.{name}: {err}") from err
        return FieldSchema(name=name, annotation=annotation, type_schema=type_schema)


_SCHEMA_CACHE: Dict[type, MessageSchema] = {}
_PENDING: Dict[type, MessageSchema] = {}
_SCHEMA_LOCK = threading.RLock()


def type_schema_for(annotation: Any, metadata: Tuple[Any, ...] = ()) -> TypeSchema:
    """Map a Python type annotation to its wire-level schema.

    Args:
        annotation: Type annotation (may be Annotated, Optional, generic, ...)
        metadata: Extra Annotated metadata collected from an outer layer

    Returns:
        TypeSchema for the annotation

    Raises:
        SchemaError: If the annotation cannot be encoded
    """
    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        return type_schema_for(args[0], metadata + tuple(args[1:]))

    for marker in metadata:
        if isinstance(marker, IntWidth):
            if annotation is not int:
                raise SchemaError(f"integer width marker applied to {annotation!r}")
            return TypeSchema(ValueKind.for_integer(marker.bits, marker.signed))
        if isinstance(marker, FloatWidth):
            if annotation is not float:
                raise SchemaError(f"float width marker applied to {annotation!r}")
            return TypeSchema(ValueKind.F32 if marker.bits == 32 else ValueKind.F64)
        if isinstance(marker, CharMarker):
            if annotation is not str:
                raise SchemaError(f"char marker applied to {annotation!r}")
            return TypeSchema(ValueKind.CHAR)

    if annotation is None or annotation is _NONE_TYPE:
        return TypeSchema(ValueKind.UNIT)
    if annotation is bool:
        return TypeSchema(ValueKind.BOOL)
    if annotation is int:
        return TypeSchema(ValueKind.I64)
    if annotation is float:
        return TypeSchema(ValueKind.F64)
    if annotation is str:
        return TypeSchema(ValueKind.STR)
    if annotation is bytes:
        return TypeSchema(ValueKind.BYTES)

    if origin is Union or origin is types.UnionType:
        return _union_schema(args)

    if origin in _SEQUENCE_CONTAINERS:
        if len(args) != 1:
            raise SchemaError(f"{origin.__name__} needs an element type")
        return TypeSchema(ValueKind.SEQ, items=(type_schema_for(args[0]),), container=origin)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeSchema(ValueKind.SEQ, items=(type_schema_for(args[0]),), container=tuple)
        if args == ((),):
            args = ()
        return TypeSchema(ValueKind.TUPLE, items=tuple(type_schema_for(arg) for arg in args))

    if origin is dict:
        if len(args) != 2:
            raise SchemaError("dict needs key and value types")
        return TypeSchema(ValueKind.MAP, items=(type_schema_for(args[0]), type_schema_for(args[1])))

    if isinstance(annotation, type):
        if issubclass(annotation, enum.Enum):
            if len(annotation) == 0:
                raise SchemaError(f"enum {annotation.__name__} has no members")
            return TypeSchema(ValueKind.ENUM, enum_type=annotation)
        if issubclass(annotation, BaseModel):
            return TypeSchema(ValueKind.STRUCT, models=(MessageSchema.from_model(annotation),))
        if callable(getattr(annotation, "produce", None)) and callable(
            getattr(annotation, "consume", None)
        ):
            return TypeSchema(ValueKind.STRUCT, custom=annotation)

    raise SchemaError(
        f"unsupported type {annotation!r}. Supported: None, bool, int, float, str, bytes, "
        f"width aliases, Optional, list/set/tuple/dict, enums, models and Encodable types."
    )


def _union_schema(args: Tuple[Any, ...]) -> TypeSchema:
    """Map Optional[T] to an option and a union of models to a tagged enum."""
    non_none = tuple(arg for arg in args if arg is not _NONE_TYPE)

    if len(non_none) < len(args):
        inner = non_none[0] if len(non_none) == 1 else Union[non_none]
        return TypeSchema(ValueKind.OPTION, items=(type_schema_for(inner),))

    if all(isinstance(arg, type) and issubclass(arg, BaseModel) for arg in non_none):
        return TypeSchema(
            ValueKind.ENUM, models=tuple(MessageSchema.from_model(arg) for arg in non_none)
        )

    raise SchemaError(f"unions are only supported over models, got {non_none!r}")
