"""Serialize and deserialize INI files to and from documents, attrs classes and dataclasses."""

from ._conv import converter
from .de import (
    DEFAULT_SECTION,
    Deserializer,
    Document,
    DocumentVisitor,
    MapAccess,
    SectionDeserializer,
    ValueDeserializer,
    Visitor,
    deserialize,
    load,
    load_bytes,
    loads,
)
from .exceptions import (
    DeserializeError,
    DeserializeErrorKind,
    IniError,
    ParseError,
    ReadError,
    SerializeError,
    SerializeErrorKind,
    SyntaxErrorKind,
    UnsupportedType,
)
from .parse import Comment, Empty, Item, Parser, Section, Value
from .ser import MapSerializer, Serializer, dump, dump_bytes, dumps, serialize
from .write import LineEnding, Writer
