import types
from pathlib import Path
from typing import Any, Union, get_args, get_origin

TRUE_WORDS: frozenset[str] = frozenset({"true", "1", "yes", "on"})
FALSE_WORDS: frozenset[str] = frozenset({"false", "0", "no", "off"})


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    word: str = str(value).strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ValueError(f"Cannot convert {value!r} to bool")


def convert_type(value: Any, expected_type: type | types.UnionType) -> Any:
    """
    Coerce a YAML or CLI value to a config field's annotated type.

    None passes through. For unions the first member that accepts the
    value wins. Raises ValueError when nothing fits.
    """
    if value is None:
        return None

    if get_origin(expected_type) in (Union, types.UnionType):
        for member in get_args(expected_type):
            if member is type(None):
                continue
            try:
                return convert_type(value, member)
            except (TypeError, ValueError):
                continue
        raise ValueError(f"Cannot convert {value!r} to any of {get_args(expected_type)}")

    if expected_type is bool:
        return _to_bool(value)
    if expected_type is Path:
        return value if isinstance(value, Path) else Path(str(value))
    if not isinstance(expected_type, type):
        raise TypeError(f"Expected a callable type, got {expected_type!r}")

    try:
        return expected_type(value)
    except (TypeError, ValueError) as e:
        raise ValueError(
            f"expected {expected_type.__name__}, got {value!r} ({type(value).__name__})"
        ) from e
