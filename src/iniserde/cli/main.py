import logging
import pathlib
from typing import Annotated, NoReturn, Optional

import typer

from .. import de
from ..exceptions import IniError, ParseError
from ..parse import Parser
from ..write import LineEnding, Writer

from .console import console, err_console
from .utils import file_encoding

LOG_LEVELS = [
    logging.CRITICAL,
    logging.ERROR,
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
]

app = typer.Typer(no_args_is_help=True)

File = Annotated[
    pathlib.Path, typer.Argument(exists=True, dir_okay=False, resolve_path=True)
]
Encoding = Annotated[
    Optional[str],
    typer.Option("--encoding", "-e", help="file encoding (detected if not given)"),
]


@app.callback()
def common(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, min=0, max=5, help="set logging level"
        ),
    ] = 0
):
    """Read, check and rewrite INI files."""

    if verbose == 0:
        logging.disable()
    else:
        logging.basicConfig(level=LOG_LEVELS[verbose - 1])


def _fail(path: pathlib.Path, error: Exception) -> NoReturn:
    err_console.print(f"{path}: {error}", style="red", markup=False)
    raise typer.Exit(code=1)


@app.command()
def check(
    files: Annotated[
        list[pathlib.Path],
        typer.Argument(exists=True, dir_okay=False, resolve_path=True),
    ],
    encoding: Encoding = None,
):
    """Report every malformed line in INI files."""

    errors = 0

    for path in files:
        with (
            path.open("rb") as f,
            Parser.from_read(f, encoding=file_encoding(path, encoding)) as parser,
        ):
            try:
                for result in parser.results():
                    if isinstance(result, ParseError):
                        errors += 1
                        console.print(
                            f"{path}:{result.line_number}: {result.kind.value}: "
                            f"{result.line.rstrip()}",
                            markup=False,
                            highlight=False,
                            soft_wrap=True,
                        )
            except IniError as e:
                _fail(path, e)

    if errors:
        err_console.print(f"{errors} malformed line(s)")
        raise typer.Exit(code=1)

    console.print(f"{len(files)} file(s) OK")


@app.command()
def fmt(
    file: File,
    output: Annotated[
        Optional[pathlib.Path],
        typer.Option("--output", "-o", help="write here instead of in place"),
    ] = None,
    crlf: Annotated[bool, typer.Option(help="end lines with CRLF")] = False,
    encoding: Encoding = None,
):
    """Rewrite an INI file with normalized whitespace and line endings."""

    encoding = file_encoding(file, encoding)

    # Read everything first, the file may be rewritten in place.
    with file.open("rb") as f:
        try:
            items = list(Parser.from_read(f, encoding=encoding))
        except IniError as e:
            _fail(file, e)

    line_ending = LineEnding.CRLF if crlf else LineEnding.LINEFEED

    with (
        (output or file).open("w", encoding=encoding, newline="") as f,
        Writer(f, line_ending=line_ending) as writer,
    ):
        writer.write_all(items)


@app.command("json")
def to_json(file: File, encoding: Encoding = None):
    """Print an INI file as JSON."""

    encoding = file_encoding(file, encoding)

    with file.open("rb") as f:
        try:
            document = de.load_bytes(f, encoding=encoding)
        except IniError as e:
            _fail(file, e)

    console.print_json(data=document)
