import enum
from collections.abc import Iterable
from typing import IO, Self

from .parse import COMMENT_MARKERS, Comment, Empty, Item, Section, Value, is_section_name


class LineEnding(enum.Enum):
    LINEFEED = "\n"
    CRLF = "\r\n"


class Writer:
    """Writes INI items to a file, one line per item.

    Text files should be opened with newline="" so the line ending is not translated again.

    Attributes:
        line_ending: The terminator written after each line.
        encoding: If not None, lines are encoded and written to a binary file.

    Args:
        file: The file to write to.
        line_ending: Defaults to LineEnding.LINEFEED.
        encoding: Defaults to None (text file).
    """

    line_ending: LineEnding
    encoding: str | None

    def __init__(
        self,
        file: IO[str] | IO[bytes],
        line_ending: LineEnding = LineEnding.LINEFEED,
        encoding: str | None = None,
    ):
        self._file = file

        self.line_ending = line_ending
        self.encoding = encoding

    def format(self, item: Item) -> str:
        """Format an item as a line, including the line terminator.

        Args:
            item: The item to format.

        Returns:
            The line.

        Raises:
            ValueError: The item would not read back as the same item.
        """

        if isinstance(item, Section):
            if not is_section_name(item.name):
                raise ValueError(f"invalid INI section name: {item.name!r}")

            line = f"[{item.name}]"
        elif isinstance(item, Value):
            if "=" in item.key or item.key.lstrip().startswith(("[", *COMMENT_MARKERS)):
                raise ValueError(f"invalid INI key: {item.key!r}")

            line = f"{item.key}={item.value}"
        elif isinstance(item, Comment):
            if item.marker not in COMMENT_MARKERS:
                raise ValueError(f"invalid INI comment marker: {item.marker!r}")

            line = f"{item.marker}{item.text}"
        elif isinstance(item, Empty):
            line = ""
        else:
            raise TypeError(f"not an INI item: {item!r}")

        if "\n" in line or "\r" in line:
            raise ValueError(f"INI item spans more than one line: {item!r}")

        return line + self.line_ending.value

    def write(self, item: Item):
        """Write an item as exactly one line.

        The whole line is passed to the file in a single write call.

        Args:
            item: The item to write.

        Raises:
            ValueError: The item cannot be written as a single, equivalent line.
            OSError: Writing to the file failed.
        """

        line = self.format(item)

        if self.encoding is not None:
            self._file.write(line.encode(self.encoding))  # type: ignore[arg-type]
        else:
            self._file.write(line)  # type: ignore[arg-type]

    def write_all(self, items: Iterable[Item]):
        for item in items:
            self.write(item)

    def into_inner(self) -> IO[str] | IO[bytes]:
        """Give up the wrapped file."""

        return self._file

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc):
        self._file.flush()
