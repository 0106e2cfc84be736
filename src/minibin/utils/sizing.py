"""Message size calculation utilities.

Most kinds are variable length, so sizes depend on the field values and are
measured by encoding. fixed_size() reports the size of a message class whose
every field has a value-independent encoding.
"""

from __future__ import annotations

from pydantic import BaseModel

from ..codec.encoder import Encoder, encode_value, encode
from ..codec.kinds import ValueKind
from ..codec.schema import MessageSchema, TypeSchema
from ..exceptions import SchemaError

_FIXED_SIZES = {
    ValueKind.UNIT: 0,
    ValueKind.BOOL: 1,
    ValueKind.F32: 4,
    ValueKind.F64: 8,
}


def encoded_size(message: BaseModel) -> int:
    """Calculate the encoded size of a message in bytes.

    Args:
        message: Message instance to measure

    Returns:
        Size in bytes

    Raises:
        SchemaError: If the schema cannot be mapped to the wire format
        EncodeError: If a field value cannot be encoded

    Example:
        >>> class Status(BaseMessage):
        ...     vehicle_id: U16
        ...     active: bool
        >>> encoded_size(Status(vehicle_id=42, active=True))
        2
        >>> encoded_size(Status(vehicle_id=300, active=True))
        3
    """
    return len(encode(message))


def field_sizes(message: BaseModel) -> dict[str, int]:
    """Get the encoded size in bytes of each field of a message.

    Args:
        message: Message instance to analyze

    Returns:
        Dictionary mapping field names to their size in bytes

    Example:
        >>> field_sizes(Status(vehicle_id=300, active=True))
        {'vehicle_id': 2, 'active': 1}
    """
    schema = MessageSchema.from_model(type(message))

    sizes: dict[str, int] = {}
    for field_schema in schema.fields:
        encoder = Encoder()
        encode_value(encoder, field_schema.type_schema, getattr(message, field_schema.name))
        sizes[field_schema.name] = len(encoder.getvalue())
    return sizes


def fixed_size(message_class: type[BaseModel]) -> int:
    """Calculate the size of a message class whose encoding never varies.

    Only unit, bool, floats, fixed tuples and nested messages made of those
    qualify; integers, strings and collections are variable length.

    Args:
        message_class: Message class to analyze

    Returns:
        Size in bytes

    Raises:
        SchemaError: If any field has a value-dependent size
    """
    schema = MessageSchema.from_model(message_class)
    return sum(
        _fixed_type_size(field_schema.type_schema, f"{message_class.__name__}.{field_schema.name}")
        for field_schema in schema.fields
    )


def _fixed_type_size(schema: TypeSchema, where: str) -> int:
    if schema.custom is None:
        if schema.kind in _FIXED_SIZES:
            return _FIXED_SIZES[schema.kind]
        if schema.kind is ValueKind.TUPLE:
            return sum(_fixed_type_size(item, where) for item in schema.items)
        if schema.kind is ValueKind.STRUCT:
            return fixed_size(schema.models[0].model_class)
    raise SchemaError(f"{where}: {schema.kind.value} has a value-dependent size")
