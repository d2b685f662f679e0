import enum


class IniError(Exception):
    pass


class SyntaxErrorKind(enum.Enum):
    """The ways a single INI line can be malformed.

    The value of each member is its error message.
    """

    SECTION_NOT_CLOSED = "section missing ']'"
    SECTION_NAME = "section name contains '[', ']' or a control character"
    MISSING_EQUALS = "variable assignment missing '='"


class ParseError(IniError, ValueError):
    """Exception raised when a line of INI fails to parse.

    Attributes:
        kind: Why the line is malformed.
        line: The line which failed to parse.
        line_number: The line number, starting from 1 (0 if unknown).
    """

    kind: SyntaxErrorKind
    line: str
    line_number: int

    def __init__(self, kind: SyntaxErrorKind, line: str = "", line_number: int = 0):
        super().__init__(f"INI syntax error on line {line_number}: {kind.value}")

        self.kind = kind
        self.line = line
        self.line_number = line_number


class ReadError(IniError):
    """Exception raised when a line could not be read or decoded.

    The underlying error is chained as __cause__.

    Attributes:
        line_number: The number of the line that failed to read.
    """

    line_number: int

    def __init__(self, message: str, line_number: int = 0):
        super().__init__(message)

        self.line_number = line_number


class DeserializeErrorKind(enum.Enum):
    SYNTAX = enum.auto()
    IO = enum.auto()
    UNEXPECTED_EOF = enum.auto()
    INVALID_STATE = enum.auto()
    CUSTOM = enum.auto()


_DE_MESSAGES = {
    DeserializeErrorKind.SYNTAX: "INI syntax error",
    DeserializeErrorKind.IO: "failed to read INI",
    DeserializeErrorKind.UNEXPECTED_EOF: "unexpected end of INI input",
    DeserializeErrorKind.INVALID_STATE: "INI data does not have the requested shape",
    DeserializeErrorKind.CUSTOM: "INI deserialization error",
}


class DeserializeError(IniError):
    """Exception raised when INI could not be deserialized.

    Attributes:
        kind: What went wrong. Syntax, I/O and conversion failures chain the underlying error.
    """

    kind: DeserializeErrorKind

    def __init__(self, kind: DeserializeErrorKind, message: str = ""):
        super().__init__(message or _DE_MESSAGES[kind])

        self.kind = kind


class UnsupportedType(enum.Enum):
    """Shapes that cannot be represented at some position in an INI document."""

    BOOL = "bool"
    BYTES = "bytes"
    NONE = "None"
    SEQ = "sequence"
    SCALAR = "scalar"


class SerializeErrorKind(enum.Enum):
    CUSTOM = enum.auto()
    UNSUPPORTED_TYPE = enum.auto()
    NON_STRING_KEY = enum.auto()
    TOP_LEVEL_MAP = enum.auto()
    ORPHAN_VALUE = enum.auto()
    MAP_KEY_MISSING = enum.auto()
    IO = enum.auto()


_SER_MESSAGES = {
    SerializeErrorKind.CUSTOM: "INI serialization error",
    SerializeErrorKind.UNSUPPORTED_TYPE: "type cannot be serialized into INI",
    SerializeErrorKind.NON_STRING_KEY: "INI map keys must be a string type",
    SerializeErrorKind.TOP_LEVEL_MAP: "INI maps can only be nested one level deep (as sections)",
    SerializeErrorKind.ORPHAN_VALUE: "top-level INI values must be serialized before any map sections",
    SerializeErrorKind.MAP_KEY_MISSING: "serializer consistency error: map entry without key or value",
    SerializeErrorKind.IO: "failed to write INI",
}


class SerializeError(IniError):
    """Exception raised when a value could not be serialized as INI.

    Attributes:
        kind: What went wrong.
        unsupported: The rejected shape if kind is UNSUPPORTED_TYPE, otherwise None.
    """

    kind: SerializeErrorKind
    unsupported: UnsupportedType | None

    def __init__(
        self,
        kind: SerializeErrorKind,
        message: str = "",
        *,
        unsupported: UnsupportedType | None = None,
    ):
        if not message:
            message = _SER_MESSAGES[kind]
            if unsupported is not None:
                message = f"{unsupported.value} cannot be serialized into INI here"

        super().__init__(message)

        self.kind = kind
        self.unsupported = unsupported
