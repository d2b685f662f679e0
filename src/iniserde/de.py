"""Deserialization of INI into documents and typed values.

A deserializer presents an INI file as a map of sections, each a map of string values.
Callers pull values out of it by requesting a shape (deserialize_map, deserialize_int, ...)
and handing over a Visitor which receives what was decoded.
"""

import abc
import dataclasses
import logging
import typing
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import IO, Any, Generic, Self, TypeVar

import attrs
import cattrs
from cattrs.errors import BaseValidationError, StructureHandlerNotFoundError

from . import _conv
from .exceptions import DeserializeError, DeserializeErrorKind, ParseError, ReadError
from .parse import Item, Parser, Section, Value

_log = logging.getLogger(__name__)

T = TypeVar("T")
D = TypeVar("D")

Document = dict[str, dict[str, str]]

# The section that keys before the first section header belong to.
DEFAULT_SECTION = ""


class Visitor(Generic[T]):
    """Receives values decoded by a deserializer.

    Subclasses override the visit methods for the shapes they accept.
    The rest raise DeserializeError(INVALID_STATE).

    Attributes:
        expecting: What the visitor expects, used in error messages.
    """

    expecting: str = "a value"

    def _invalid(self, what: str) -> DeserializeError:
        return DeserializeError(
            DeserializeErrorKind.INVALID_STATE,
            f"invalid type: {what}, expected {self.expecting}",
        )

    def visit_bool(self, value: bool) -> T:
        raise self._invalid("bool")

    def visit_int(self, value: int) -> T:
        raise self._invalid("integer")

    def visit_float(self, value: float) -> T:
        raise self._invalid("float")

    def visit_str(self, value: str) -> T:
        raise self._invalid("string")

    def visit_none(self) -> T:
        raise self._invalid("None")

    def visit_some(self, deserializer: Any) -> T:
        raise self._invalid("optional value")

    def visit_map(self, access: "MapAccess") -> T:
        raise self._invalid("map")


class MapAccess(Generic[D]):
    """Pull access to the entries of a map.

    Call next_key() until it returns None, calling next_value() after each key
    to get the deserializer for the entry's value.
    Iterating yields (key, deserializer) pairs.
    """

    def __init__(self, entries: Iterable[tuple[str, D]]):
        self._entries = iter(entries)
        self._value: D | None = None
        self._pending = False

    def next_key(self) -> str | None:
        try:
            key, self._value = next(self._entries)
        except StopIteration:
            self._pending = False
            return None

        self._pending = True
        return key

    def next_value(self) -> D:
        if not self._pending:
            raise DeserializeError(
                DeserializeErrorKind.UNEXPECTED_EOF, "map value requested without a key"
            )

        self._pending = False
        return self._value  # type: ignore[return-value]

    def __iter__(self) -> Iterator[tuple[str, D]]:
        while (key := self.next_key()) is not None:
            yield key, self.next_value()


class _MapDeserializer(abc.ABC):
    what = "map"

    @abc.abstractmethod
    def _access(self) -> MapAccess:
        """Access the entries of the map."""

    def deserialize_any(self, visitor: Visitor[T]) -> T:
        return visitor.visit_map(self._access())

    def deserialize_map(self, visitor: Visitor[T]) -> T:
        return visitor.visit_map(self._access())

    def deserialize_struct(self, name: str, fields: Iterable[str], visitor: Visitor[T]) -> T:
        return visitor.visit_map(self._access())

    def deserialize_option(self, visitor: Visitor[T]) -> T:
        return visitor.visit_some(self)

    def _invalid(self, shape: str) -> DeserializeError:
        return DeserializeError(
            DeserializeErrorKind.INVALID_STATE,
            f"cannot deserialize an INI {self.what} as {shape}",
        )

    def deserialize_bool(self, visitor: Visitor[T]) -> T:
        raise self._invalid("a bool")

    def deserialize_int(self, visitor: Visitor[T]) -> T:
        raise self._invalid("an integer")

    def deserialize_float(self, visitor: Visitor[T]) -> T:
        raise self._invalid("a float")

    def deserialize_str(self, visitor: Visitor[T]) -> T:
        raise self._invalid("a string")

    def deserialize_seq(self, visitor: Visitor[T]) -> T:
        raise self._invalid("a sequence")


class Deserializer(_MapDeserializer):
    """Deserializes a stream of INI items as a map of sections.

    Sections are visited in the order their names first appear.
    Repeated section headers are merged, and a repeated key keeps its first position but takes its last value.
    Keys before any section header belong to DEFAULT_SECTION.

    The item stream is read once, on the first request.

    Args:
        items: The INI items, usually a Parser.
    """

    what = "document"

    def __init__(self, items: Iterable[Item]):
        self._items = items
        self._consumed = False

    @classmethod
    def from_str(cls, text: str) -> Self:
        return cls(Parser.from_str(text))

    @classmethod
    def from_lines(cls, file: Iterable[str]) -> Self:
        return cls(Parser.from_lines(file))

    @classmethod
    def from_read(cls, file: IO[bytes], encoding: str = "utf-8") -> Self:
        return cls(Parser.from_read(file, encoding=encoding))

    def _read(self) -> Document:
        if self._consumed:
            raise DeserializeError(
                DeserializeErrorKind.UNEXPECTED_EOF, "INI input has already been consumed"
            )

        self._consumed = True

        document: Document = {}
        section: dict[str, str] | None = None

        items = iter(self._items)
        while True:
            try:
                item = next(items)
            except StopIteration:
                break
            except ParseError as e:
                raise DeserializeError(DeserializeErrorKind.SYNTAX, str(e)) from e
            except ReadError as e:
                raise DeserializeError(DeserializeErrorKind.IO, str(e)) from e

            if isinstance(item, Section):
                section = document.setdefault(item.name, {})
            elif isinstance(item, Value):
                if section is None:
                    section = document.setdefault(DEFAULT_SECTION, {})

                section[item.key] = item.value

        _log.debug("read %d INI sections", len(document))
        return document

    def _access(self) -> MapAccess["SectionDeserializer"]:
        document = self._read()
        return MapAccess(
            (name, SectionDeserializer(name, pairs)) for name, pairs in document.items()
        )


class SectionDeserializer(_MapDeserializer):
    """Deserializes the properties of a single section as a map.

    Attributes:
        name: The section name.
        pairs: The section's properties.
    """

    what = "section"

    def __init__(self, name: str, pairs: dict[str, str]):
        self.name = name
        self.pairs = pairs

    def _access(self) -> MapAccess["ValueDeserializer"]:
        return MapAccess((key, ValueDeserializer(value)) for key, value in self.pairs.items())


class ValueDeserializer:
    """Deserializes a single property value.

    The value is kept as a string and only parsed when a type is requested.
    Failures to parse are raised as DeserializeError(CUSTOM).

    Attributes:
        value: The raw property value.
    """

    def __init__(self, value: str):
        self.value = value

    def _convert(self, func: Callable[[str], T]) -> T:
        try:
            return func(self.value)
        except ValueError as e:
            raise DeserializeError(DeserializeErrorKind.CUSTOM, str(e)) from e

    def deserialize_any(self, visitor: Visitor[T]) -> T:
        return visitor.visit_str(self.value)

    def deserialize_str(self, visitor: Visitor[T]) -> T:
        return visitor.visit_str(self.value)

    def deserialize_bool(self, visitor: Visitor[T]) -> T:
        return visitor.visit_bool(self._convert(_conv.parse_bool))

    def deserialize_int(self, visitor: Visitor[T]) -> T:
        return visitor.visit_int(self._convert(int))

    def deserialize_float(self, visitor: Visitor[T]) -> T:
        return visitor.visit_float(self._convert(float))

    def deserialize_option(self, visitor: Visitor[T]) -> T:
        # An empty value means the property is unset.
        if not self.value:
            return visitor.visit_none()

        return visitor.visit_some(self)

    def deserialize_enum(self, name: str, variants: Iterable[str], visitor: Visitor[T]) -> T:
        variants = list(variants)
        if self.value not in variants:
            raise DeserializeError(
                DeserializeErrorKind.CUSTOM,
                f"unknown variant '{self.value}' of {name}, expected one of {variants}",
            )

        return visitor.visit_str(self.value)

    def _invalid(self, shape: str) -> DeserializeError:
        return DeserializeError(
            DeserializeErrorKind.INVALID_STATE, f"cannot deserialize an INI value as {shape}"
        )

    def deserialize_map(self, visitor: Visitor[T]) -> T:
        raise self._invalid("a map")

    def deserialize_struct(self, name: str, fields: Iterable[str], visitor: Visitor[T]) -> T:
        raise self._invalid(name)

    def deserialize_seq(self, visitor: Visitor[T]) -> T:
        raise self._invalid("a sequence")


class _StrVisitor(Visitor[str]):
    expecting = "a string"

    def visit_str(self, value: str) -> str:
        return value


class _SectionVisitor(Visitor[dict[str, str]]):
    expecting = "a section"

    def visit_map(self, access: MapAccess) -> dict[str, str]:
        return {key: value.deserialize_str(_StrVisitor()) for key, value in access}


class DocumentVisitor(Visitor[Document]):
    """Builds a Document (a dict of sections mapped to their properties)."""

    expecting = "an INI document"

    def visit_map(self, access: MapAccess) -> Document:
        return {name: section.deserialize_map(_SectionVisitor()) for name, section in access}


def _field_names(cl: type) -> list[str]:
    if attrs.has(cl):
        return [f.name for f in attrs.fields(cl)]

    return [f.name for f in dataclasses.fields(cl)]


def _is_mapping(cl: Any) -> bool:
    origin = typing.get_origin(cl) or cl
    return typing.is_typeddict(cl) or (isinstance(origin, type) and issubclass(origin, Mapping))


def deserialize(
    de: Deserializer, cl: Any = None, converter: cattrs.Converter = _conv.converter
) -> Any:
    """Deserialize INI as a document or a typed value.

    If cl is an attrs class or dataclass, keys before the first section are the class's own fields
    and each section is a nested class (or mapping) field.
    If cl is a mapping type, the document is structured as is, with DEFAULT_SECTION as a key.

    Args:
        de: The deserializer to read from.
        cl: The type to deserialize as. If None, the Document itself is returned.
        converter: The converter used to structure the document into cl.

    Returns:
        The deserialized value.

    Raises:
        DeserializeError: The INI is malformed or does not fit cl.
    """

    if cl is None:
        return de.deserialize_map(DocumentVisitor())

    if attrs.has(cl) or dataclasses.is_dataclass(cl):
        document = de.deserialize_struct(cl.__name__, _field_names(cl), DocumentVisitor())
        data: dict[str, Any] = {**document.pop(DEFAULT_SECTION, {}), **document}
    elif _is_mapping(cl):
        data = de.deserialize_map(DocumentVisitor())
    else:
        raise DeserializeError(
            DeserializeErrorKind.INVALID_STATE,
            f"an INI document can only be deserialized as a map or class, not {cl!r}",
        )

    try:
        return converter.structure(data, cl)
    except BaseValidationError as e:
        raise DeserializeError(
            DeserializeErrorKind.CUSTOM, "; ".join(cattrs.transform_error(e))
        ) from e
    except (StructureHandlerNotFoundError, ValueError, TypeError, KeyError) as e:
        raise DeserializeError(DeserializeErrorKind.CUSTOM, str(e)) from e


def load(
    file: Iterable[str], cl: Any = None, converter: cattrs.Converter = _conv.converter
) -> Any:
    """Deserialize an INI text file.

    Args:
        file: The file to read.
        cl: See deserialize().
        converter: See deserialize().

    Returns:
        See deserialize().

    Raises:
        See deserialize().
    """

    return deserialize(Deserializer.from_lines(file), cl, converter)


def loads(text: str, cl: Any = None, converter: cattrs.Converter = _conv.converter) -> Any:
    """Deserialize INI text.

    Args:
        text: The text to parse.
        cl: See deserialize().
        converter: See deserialize().

    Returns:
        See deserialize().

    Raises:
        See deserialize().
    """

    return deserialize(Deserializer.from_str(text), cl, converter)


def load_bytes(
    file: IO[bytes],
    cl: Any = None,
    encoding: str = "utf-8",
    converter: cattrs.Converter = _conv.converter,
) -> Any:
    """Deserialize an INI binary file.

    Args:
        file: The file to read.
        cl: See deserialize().
        encoding: The file's encoding. Defaults to UTF-8.
        converter: See deserialize().
    """

    return deserialize(Deserializer.from_read(file, encoding=encoding), cl, converter)
