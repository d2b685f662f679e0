import dataclasses
import enum
import io

import attrs
import pytest

import iniserde
from iniserde.exceptions import DeserializeError, DeserializeErrorKind

TEST_INPUT = """
; Ignored comment
key1=value1
key2=255
 key3 = value3

[map1]
key2=256
key1=value2
key3=

# We also treat hash as a comment character.
[map2]
key1=value3
key2=257
key3=
"""


@attrs.define
class Inner:
    key1: str = ""
    key2: int = 0
    key3: str = ""


@attrs.define
class Model:
    key1: str
    key2: int
    key3: str
    map1: Inner | None = None
    map2: Inner | None = None


EXPECTED = Model(
    key1="value1",
    key2=255,
    key3="value3",
    map1=Inner(key1="value2", key2=256),
    map2=Inner(key1="value3", key2=257),
)


def test_smoke_de():
    assert iniserde.loads(TEST_INPUT, Model) == EXPECTED
    assert iniserde.load(io.StringIO(TEST_INPUT), Model) == EXPECTED
    assert iniserde.load_bytes(io.BytesIO(TEST_INPUT.encode()), Model) == EXPECTED


def test_smoke_en():
    text = iniserde.dumps(EXPECTED)

    assert text == (
        "key1=value1\nkey2=255\nkey3=value3\n"
        "[map1]\nkey1=value2\nkey2=256\n"
        "[map2]\nkey1=value3\nkey2=257\n"
    )
    assert iniserde.loads(text, Model) == EXPECTED


@pytest.mark.parametrize("line_ending", list(iniserde.LineEnding))
def test_idempotent(line_ending: iniserde.LineEnding):
    text = iniserde.dumps(EXPECTED, line_ending=line_ending)

    assert iniserde.dumps(iniserde.loads(text, Model), line_ending=line_ending) == text


def test_document_idempotent():
    document = iniserde.loads(TEST_INPUT)
    text = iniserde.dumps(document)

    assert iniserde.dumps(iniserde.loads(text)) == text


class Mode(enum.Enum):
    FAST = "fast"
    SAFE = "safe"


@dataclasses.dataclass
class Server:
    host: str
    port: int
    ratio: float = 1.0
    debug: bool = False
    mode: Mode = Mode.SAFE


@dataclasses.dataclass
class Config:
    name: str
    server: Server


def test_dataclass():
    config = iniserde.loads(
        "name=demo\n[server]\nhost=localhost\nport=8080\ndebug=True\nmode=fast\nratio=0.5\n",
        Config,
    )

    assert config == Config("demo", Server("localhost", 8080, 0.5, True, Mode.FAST))


def test_dataclass_round_trip():
    config = Config("demo", Server("localhost", 8080, debug=True, mode=Mode.FAST))
    text = iniserde.dumps(config)

    assert "debug=true\n" in text
    assert "mode=fast\n" in text
    assert iniserde.loads(text, Config) == config


def test_mapping_type():
    assert iniserde.loads("[a]\nx=1\ny=2\n", dict[str, dict[str, int]]) == {
        "a": {"x": 1, "y": 2}
    }


def test_bare_scalar_top_level():
    with pytest.raises(DeserializeError) as e:
        iniserde.loads("x=1\n", int)

    assert e.value.kind is DeserializeErrorKind.INVALID_STATE


@pytest.mark.parametrize(
    "text",
    [
        "name=demo\n[server]\nhost=localhost\nport=eighty\n",
        "name=demo\n[server]\nhost=localhost\nport=80\ndebug=maybe\n",
        "name=demo\n[server]\nhost=localhost\n",
    ],
)
def test_conversion_error(text: str):
    with pytest.raises(DeserializeError) as e:
        iniserde.loads(text, Config)

    assert e.value.kind is DeserializeErrorKind.CUSTOM


def test_syntax_error():
    with pytest.raises(DeserializeError) as e:
        iniserde.loads("name=demo\n[server\n", Config)

    assert e.value.kind is DeserializeErrorKind.SYNTAX


@dataclasses.dataclass
class Listen:
    host: str = "localhost"
    port: int | None = None
    motd: str | None = None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("port=\nmotd=\n", Listen()),
        ("port=8080\n", Listen(port=8080)),
        ("host=0.0.0.0\nmotd=hi\n", Listen("0.0.0.0", motd="hi")),
    ],
)
def test_empty_value_is_none(text: str, expected: Listen):
    assert iniserde.loads(text, Listen) == expected


def test_empty_value_round_trip():
    assert iniserde.dumps(Listen(port=22)) == "port=22\n"
    assert iniserde.loads(iniserde.dumps(Listen()), Listen) == Listen()
