"""Serialization of documents and typed values into INI.

Values are pushed into a serializer through the serialize() function,
which calls the serialize_* method for the value's type.
An INI document can only hold a map of sections (or top-level properties),
each a map of scalar properties.
"""

import abc
import dataclasses
import enum
import functools
import io
import logging
from collections.abc import Mapping
from typing import IO, Any, NoReturn

import attrs
import cattrs

from . import _conv
from .de import DEFAULT_SECTION
from .exceptions import SerializeError, SerializeErrorKind, UnsupportedType
from .parse import Item, Section, Value
from .write import LineEnding, Writer

_log = logging.getLogger(__name__)


@functools.singledispatch
def serialize(value: Any, serializer: Any) -> Any:
    """Serialize a value by calling the matching method on the serializer.

    Register more types with serialize.register.
    attrs classes and dataclasses are unstructured with serializer.converter and serialized as the result.

    Args:
        value: The value to serialize.
        serializer: The serializer to push the value into.

    Returns:
        Whatever the serializer method returns.

    Raises:
        SerializeError: The value cannot be serialized at this position.
    """

    cls = type(value)
    if attrs.has(cls) or dataclasses.is_dataclass(cls):
        return serialize(serializer.converter.unstructure(value), serializer)

    raise SerializeError(
        SerializeErrorKind.CUSTOM, f"cannot serialize {cls.__name__} into INI"
    )


@serialize.register
def _(value: bool, serializer: Any) -> Any:
    return serializer.serialize_bool(value)


@serialize.register
def _(value: int, serializer: Any) -> Any:
    return serializer.serialize_int(value)


@serialize.register
def _(value: float, serializer: Any) -> Any:
    return serializer.serialize_float(value)


@serialize.register
def _(value: str, serializer: Any) -> Any:
    return serializer.serialize_str(value)


@serialize.register(bytes)
@serialize.register(bytearray)
def _(value: bytes, serializer: Any) -> Any:
    return serializer.serialize_bytes(value)


@serialize.register(type(None))
def _(value: None, serializer: Any) -> Any:
    return serializer.serialize_none()


@serialize.register
def _(value: enum.Enum, serializer: Any) -> Any:
    return serialize(value.value, serializer)


@serialize.register(Mapping)
def _mapping(value: Any, serializer: Any) -> Any:
    mapping = serializer.serialize_map(len(value))
    for key, field in value.items():
        mapping.serialize_key(key)
        mapping.serialize_value(field)

    return mapping.end()


@serialize.register(list)
@serialize.register(tuple)
@serialize.register(set)
@serialize.register(frozenset)
def _(value: Any, serializer: Any) -> Any:
    return serializer.serialize_seq(len(value))


class _Impossible(abc.ABC):
    # Rejects every shape; subclasses override what they accept.

    converter: cattrs.Converter = _conv.converter

    def _unsupported(self, unsupported: UnsupportedType) -> NoReturn:
        raise SerializeError(SerializeErrorKind.UNSUPPORTED_TYPE, unsupported=unsupported)

    def serialize_bool(self, value: bool) -> Any:
        self._unsupported(UnsupportedType.BOOL)

    def serialize_int(self, value: int) -> Any:
        self._unsupported(UnsupportedType.SCALAR)

    def serialize_float(self, value: float) -> Any:
        self._unsupported(UnsupportedType.SCALAR)

    def serialize_str(self, value: str) -> Any:
        self._unsupported(UnsupportedType.SCALAR)

    def serialize_bytes(self, value: bytes) -> Any:
        self._unsupported(UnsupportedType.BYTES)

    def serialize_none(self) -> Any:
        self._unsupported(UnsupportedType.NONE)

    def serialize_seq(self, length: int | None = None) -> Any:
        self._unsupported(UnsupportedType.SEQ)

    @abc.abstractmethod
    def serialize_map(self, length: int | None = None) -> Any:
        """Start serializing a map."""

    def serialize_struct(self, name: str, length: int | None = None) -> Any:
        return self.serialize_map(length)


class Serializer(_Impossible):
    """Serializes a whole INI document to a writer.

    Only maps (and classes) are accepted at the top level.

    Args:
        writer: The writer to write items to.
        converter: Unstructures attrs classes and dataclasses met while serializing.
    """

    def __init__(self, writer: Writer, converter: cattrs.Converter = _conv.converter):
        self._writer = writer
        self.converter = converter

        # Top-level properties cannot follow a section.
        self.allow_values = True

    def write(self, item: Item):
        try:
            self._writer.write(item)
        except OSError as e:
            raise SerializeError(SerializeErrorKind.IO, f"failed to write INI: {e}") from e
        except ValueError as e:
            raise SerializeError(SerializeErrorKind.CUSTOM, str(e)) from e

    def serialize_map(self, length: int | None = None) -> "MapSerializer":
        return MapSerializer(self, top_level=True)

    def into_inner(self) -> Writer:
        return self._writer


class KeySerializer(_Impossible):
    """Accepts only strings, as INI keys and section names."""

    def _unsupported(self, unsupported: UnsupportedType) -> NoReturn:
        raise SerializeError(SerializeErrorKind.NON_STRING_KEY)

    def serialize_str(self, value: str) -> str:
        return value

    def serialize_map(self, length: int | None = None) -> NoReturn:
        raise SerializeError(SerializeErrorKind.NON_STRING_KEY)


class MapSerializer:
    """Serializes the entries of a map, either the document's top level or a section.

    At the top level, scalar values are written immediately as properties and map values become sections.
    In a section, properties are buffered and written after the section header on end().

    Attributes:
        section: The name of the section, or None for the top level and the default section.
        top_level: Whether or not this is the document's top level.
    """

    def __init__(self, serializer: Serializer, section: str | None = None, top_level: bool = False):
        self.serializer = serializer
        self.section = section
        self.top_level = top_level

        self._key: str | None = None
        self._values: list[Value] = []

    @property
    def converter(self) -> cattrs.Converter:
        return self.serializer.converter

    def serialize_key(self, key: Any):
        if not isinstance(key, (str, enum.Enum)):
            raise SerializeError(
                SerializeErrorKind.NON_STRING_KEY, f"got a key of type {type(key).__name__}"
            )

        self._key = serialize(key, KeySerializer())

    def serialize_value(self, value: Any):
        if self._key is None:
            raise SerializeError(SerializeErrorKind.MAP_KEY_MISSING)

        key, self._key = self._key, None
        serialize(value, ValueSerializer(self, key))

    def serialize_field(self, key: str, value: Any):
        self.serialize_key(key)
        self.serialize_value(value)

    def add(self, key: str, value: str):
        """Add a property to the map."""

        item = Value(key, value)

        if not self.top_level:
            self._values.append(item)
        elif self.serializer.allow_values:
            self.serializer.write(item)
        else:
            raise SerializeError(SerializeErrorKind.ORPHAN_VALUE)

    def end(self):
        if self._key is not None:
            raise SerializeError(
                SerializeErrorKind.MAP_KEY_MISSING, f"no value serialized for key '{self._key}'"
            )

        if self.top_level:
            return

        if self.section is not None:
            _log.debug("writing section %s", self.section)
            self.serializer.write(Section(self.section))

        for item in self._values:
            self.serializer.write(item)

        self._values.clear()


class ValueSerializer(_Impossible):
    """Serializes the value of a map entry."""

    def __init__(self, parent: MapSerializer, key: str):
        self.parent = parent
        self.key = key

    @property
    def converter(self) -> cattrs.Converter:
        return self.parent.converter

    def serialize_bool(self, value: bool):
        self.parent.add(self.key, _conv.format_bool(value))

    def serialize_int(self, value: int):
        self.parent.add(self.key, str(value))

    def serialize_float(self, value: float):
        self.parent.add(self.key, str(value))

    def serialize_str(self, value: str):
        self.parent.add(self.key, value)

    def serialize_map(self, length: int | None = None) -> MapSerializer:
        if not self.parent.top_level:
            raise SerializeError(
                SerializeErrorKind.TOP_LEVEL_MAP, f"map under key '{self.key}' is nested too deep"
            )

        serializer = self.parent.serializer
        if self.key == DEFAULT_SECTION:
            # The default section has no header, so it must come first.
            if not serializer.allow_values:
                raise SerializeError(SerializeErrorKind.ORPHAN_VALUE)

            return MapSerializer(serializer)

        serializer.allow_values = False
        return MapSerializer(serializer, section=self.key)


def dump(
    value: Any,
    file: IO[str] | IO[bytes],
    *,
    line_ending: LineEnding = LineEnding.LINEFEED,
    encoding: str | None = None,
    converter: cattrs.Converter = _conv.converter,
):
    """Serialize a value as INI to a file.

    attrs classes and dataclasses anywhere in the value are unstructured by the converter first.

    Args:
        value: A map of sections and/or top-level properties, or a class.
        file: The file to write to.
        line_ending: Defaults to LineEnding.LINEFEED.
        encoding: If not None, the file is binary and lines are encoded with it.
        converter: The converter used to unstructure classes.

    Raises:
        SerializeError: The value cannot be represented as INI, or writing failed.
    """

    writer = Writer(file, line_ending=line_ending, encoding=encoding)
    serialize(value, Serializer(writer, converter))


def dumps(
    value: Any,
    *,
    line_ending: LineEnding = LineEnding.LINEFEED,
    converter: cattrs.Converter = _conv.converter,
) -> str:
    """Serialize a value as INI to a string.

    Args:
        value: See dump().
        line_ending: See dump().
        converter: See dump().

    Returns:
        The INI as a string.
    """

    with io.StringIO(newline="") as buf:
        dump(value, buf, line_ending=line_ending, converter=converter)
        return buf.getvalue()


def dump_bytes(
    value: Any,
    *,
    encoding: str = "utf-8",
    line_ending: LineEnding = LineEnding.LINEFEED,
    converter: cattrs.Converter = _conv.converter,
) -> bytes:
    """Serialize a value as INI to bytes.

    Args:
        value: See dump().
        encoding: Defaults to UTF-8.
        line_ending: See dump().
        converter: See dump().

    Returns:
        The encoded INI.
    """

    with io.BytesIO() as buf:
        dump(value, buf, line_ending=line_ending, encoding=encoding, converter=converter)
        return buf.getvalue()
