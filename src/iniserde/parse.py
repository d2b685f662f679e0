import dataclasses
import io
import logging
import unicodedata
from collections.abc import Iterable, Iterator
from typing import IO, Self

from .exceptions import ParseError, ReadError, SyntaxErrorKind

_log = logging.getLogger(__name__)

COMMENT_MARKERS = (";", "#")


@dataclasses.dataclass(frozen=True, slots=True)
class Empty:
    """A blank INI line."""


@dataclasses.dataclass(frozen=True, slots=True)
class Section:
    """An INI section, i.e. [name]."""

    name: str


@dataclasses.dataclass(frozen=True, slots=True)
class Value:
    """An INI property, i.e. key=value."""

    key: str
    value: str


@dataclasses.dataclass(frozen=True, slots=True)
class Comment:
    """An INI comment, i.e. ; text or # text.

    Attributes:
        text: Everything after the comment marker.
        marker: The comment marker the line started with.
    """

    text: str
    marker: str = ";"


Item = Empty | Section | Value | Comment


def is_section_name(name: str) -> bool:
    return not any(c in "[]" or unicodedata.category(c) == "Cc" for c in name)


def parse(line: str, line_number: int = 0) -> Item:
    """Parse a single INI line.

    Args:
        line: The line to parse. A trailing line terminator is ignored.
        line_number: The line's number, used in error reporting.

    Returns:
        The parsed item.

    Raises:
        ParseError: The line is malformed.
    """

    text = line.removesuffix("\n").removesuffix("\r").strip()

    if not text:
        return Empty()

    if text.startswith(COMMENT_MARKERS):
        return Comment(text[1:], marker=text[0])

    if text.startswith("["):
        if len(text) < 2 or not text.endswith("]"):
            raise ParseError(SyntaxErrorKind.SECTION_NOT_CLOSED, line, line_number)

        name = text[1:-1]
        if not is_section_name(name):
            raise ParseError(SyntaxErrorKind.SECTION_NAME, line, line_number)

        return Section(name)

    # Only the first equals sign separates the key from the value.
    key, sep, value = text.partition("=")
    if not sep:
        raise ParseError(SyntaxErrorKind.MISSING_EQUALS, line, line_number)

    return Value(key.strip(), value.strip())


class Parser(Iterator[Item]):
    """A lazy stream of INI items, one per line of the source.

    A malformed line raises ParseError from next(), but the parser remains usable:
    calling next() again continues with the following line.
    The header [] names the implicit section, so it may not follow a named section.

    Attributes:
        line_number: The number of lines consumed so far.
        encoding: The encoding used to decode lines read as bytes.

    Args:
        source: An iterable of lines, either str or bytes.
        encoding: The encoding of bytes lines. Defaults to UTF-8.
    """

    line_number: int
    encoding: str

    def __init__(self, source: Iterable[str] | Iterable[bytes], encoding: str = "utf-8"):
        self._source = source
        self._lines = iter(source)

        self.line_number = 0
        self.encoding = encoding

        self._named = False

    @classmethod
    def from_str(cls, text: str) -> Self:
        """Create a parser over INI text.

        Both \\n and \\r\\n line endings are accepted.
        """

        return cls(io.StringIO(text))

    @classmethod
    def from_lines(cls, file: Iterable[str]) -> Self:
        """Create a parser over a text file or any other iterable of lines."""

        return cls(file)

    @classmethod
    def from_read(cls, file: IO[bytes], encoding: str = "utf-8") -> Self:
        """Create a parser over a binary file.

        Lines are split on b"\\n" and decoded one at a time.

        Args:
            file: The binary file to read.
            encoding: The encoding of the file. Defaults to UTF-8.
        """

        return cls(file, encoding=encoding)

    def _next_line(self) -> str:
        try:
            line = next(self._lines)
        except (OSError, UnicodeDecodeError) as e:
            self.line_number += 1
            raise ReadError(f"failed to read line {self.line_number}: {e}", self.line_number) from e

        self.line_number += 1

        if isinstance(line, bytes):
            try:
                return line.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise ReadError(
                    f"line {self.line_number} is not valid {self.encoding}: {e}", self.line_number
                ) from e

        return line

    def __next__(self) -> Item:
        line = self._next_line()
        item = parse(line, self.line_number)

        if isinstance(item, Section):
            if item.name:
                self._named = True
            elif self._named:
                raise ParseError(SyntaxErrorKind.SECTION_NAME, line, self.line_number)

        return item

    def __iter__(self) -> Self:
        return self

    def results(self) -> Iterator[Item | ParseError]:
        """Iterate over the remaining items without stopping at malformed lines.

        Yields:
            An item, or the ParseError for a malformed line.

        Raises:
            ReadError: A line could not be read.
        """

        while True:
            try:
                result: Item | ParseError = next(self)
            except StopIteration:
                return
            except ParseError as e:
                _log.debug("malformed line %d: %s", e.line_number, e.kind.value)
                result = e

            yield result

    def into_inner(self) -> Iterable[str] | Iterable[bytes]:
        """Give up the wrapped source. Unread lines remain in it."""

        return self._source

    def close(self):
        if close := getattr(self._source, "close", None):
            close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc):
        self.close()
