import io

import pytest

from iniserde import parse
from iniserde.exceptions import ParseError, ReadError, SyntaxErrorKind
from iniserde.parse import Comment, Empty, Parser, Section, Value


def test_parse_section():
    assert parse.parse("[this is a section]") == Section("this is a section")


def test_parse_property():
    assert parse.parse("こんにちは=konnichiwa") == Value("こんにちは", "konnichiwa")


def test_parse_property_with_spaces():
    assert parse.parse("  key = value  \r\n") == Value("key", "value")


def test_parse_property_first_equals_splits():
    assert parse.parse("url=http://x/?a=1") == Value("url", "http://x/?a=1")


def test_parse_empty_value():
    assert parse.parse("key3=") == Value("key3", "")


def test_parse_blank():
    assert parse.parse("\n") == Empty()
    assert parse.parse("   \t") == Empty()


def test_parse_comments():
    assert parse.parse("; Ignored comment") == Comment(" Ignored comment")
    assert parse.parse("# hash comment\n") == Comment(" hash comment", marker="#")


@pytest.mark.parametrize(
    "line, kind",
    [
        ("[unterminated", SyntaxErrorKind.SECTION_NOT_CLOSED),
        ("[", SyntaxErrorKind.SECTION_NOT_CLOSED),
        ("[a]b]", SyntaxErrorKind.SECTION_NAME),
        ("[a[b]", SyntaxErrorKind.SECTION_NAME),
        ("[a\x07]", SyntaxErrorKind.SECTION_NAME),
        ("novalidseparator", SyntaxErrorKind.MISSING_EQUALS),
    ],
)
def test_parse_invalid(line: str, kind: SyntaxErrorKind):
    with pytest.raises(ParseError) as e:
        parse.parse(line, 7)

    assert e.value.kind is kind
    assert e.value.line == line
    assert e.value.line_number == 7


def test_parser_from_str():
    items = list(Parser.from_str("[a]\r\nx=1\n\n; note\n"))

    assert items == [Section("a"), Value("x", "1"), Empty(), Comment(" note")]


def test_parser_continues_after_error():
    parser = Parser.from_str("[unterminated\nkey=value\n")

    with pytest.raises(ParseError) as e:
        next(parser)

    assert e.value.kind is SyntaxErrorKind.SECTION_NOT_CLOSED
    assert e.value.line_number == 1

    assert next(parser) == Value("key", "value")
    assert parser.line_number == 2

    with pytest.raises(StopIteration):
        next(parser)


def test_parser_results():
    results = list(Parser.from_str("a=1\nbad\n[s]\n").results())

    assert results[0] == Value("a", "1")
    assert isinstance(results[1], ParseError)
    assert results[1].kind is SyntaxErrorKind.MISSING_EQUALS
    assert results[2] == Section("s")


def test_parser_from_read():
    data = "[セクション]\r\nキー=値\r\n".encode("utf-8")

    with Parser.from_read(io.BytesIO(data)) as parser:
        assert list(parser) == [Section("セクション"), Value("キー", "値")]


def test_parser_from_read_encoding():
    data = "[a]\nkey=値\n".encode("shift_jis")

    assert list(Parser.from_read(io.BytesIO(data), encoding="shift_jis")) == [
        Section("a"),
        Value("key", "値"),
    ]


def test_parser_from_read_decode_error():
    parser = Parser.from_read(io.BytesIO(b"a=\xff\nb=2\n"))

    with pytest.raises(ReadError) as e:
        next(parser)

    assert e.value.line_number == 1
    assert isinstance(e.value.__cause__, UnicodeDecodeError)

    assert next(parser) == Value("b", "2")


def test_parser_is_lazy():
    buf = io.StringIO("a=1\nb=2\n")
    parser = Parser.from_lines(buf)

    assert next(parser) == Value("a", "1")
    # The rest of the source is left unread.
    assert parser.into_inner() is buf
    assert buf.readline() == "b=2\n"


def test_parser_closes_source():
    buf = io.StringIO("a=1\n")

    with Parser.from_lines(buf):
        pass

    assert buf.closed


def test_parser_from_lines_decode_error():
    # A text file decodes before the parser sees the line.
    file = io.TextIOWrapper(io.BytesIO(b"a=1\nb=\xff\n"), encoding="utf-8")

    with pytest.raises(ReadError) as e:
        next(Parser.from_lines(file))

    assert e.value.line_number == 1
    assert isinstance(e.value.__cause__, UnicodeDecodeError)


def test_parser_from_lines_io_error():
    def lines():
        yield "a=1\n"
        raise OSError("device unplugged")

    parser = Parser.from_lines(lines())
    assert next(parser) == Value("a", "1")

    with pytest.raises(ReadError) as e:
        next(parser)

    assert e.value.line_number == 2
    assert isinstance(e.value.__cause__, OSError)


def test_parser_implicit_section_header():
    assert list(Parser.from_str("[]\na=1\n[s]\nb=2\n")) == [
        Section(""),
        Value("a", "1"),
        Section("s"),
        Value("b", "2"),
    ]


def test_parser_implicit_section_after_named():
    parser = Parser.from_str("[a]\nx=1\n[]\ny=2\n")
    results = list(parser.results())

    assert results[:2] == [Section("a"), Value("x", "1")]
    assert isinstance(results[2], ParseError)
    assert results[2].kind is SyntaxErrorKind.SECTION_NAME
    assert results[2].line_number == 3
    assert results[3] == Value("y", "2")
