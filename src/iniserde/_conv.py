import types
import typing

import cattrs

converter = cattrs.Converter(omit_if_default=True)


def parse_bool(text: str) -> bool:
    """Parse an INI boolean, either 'true' or 'false' (in any case).

    Raises:
        ValueError: The text is not a boolean.
    """

    match text.strip().lower():
        case "true":
            return True
        case "false":
            return False

    raise ValueError(f"invalid literal for bool: '{text}'")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def _structure_bool(value, _) -> bool:
    if isinstance(value, bool):
        return value

    return parse_bool(value)


def _is_optional(type_) -> bool:
    return typing.get_origin(type_) in (typing.Union, types.UnionType) and type(
        None
    ) in typing.get_args(type_)


def _structure_optional(value, type_):
    # An empty INI value means the property is unset.
    if value is None or value == "":
        return None

    args = tuple(arg for arg in typing.get_args(type_) if arg is not type(None))
    return converter.structure(value, args[0] if len(args) == 1 else typing.Union[args])


converter.register_structure_hook(bool, _structure_bool)
converter.register_structure_hook_func(_is_optional, _structure_optional)
