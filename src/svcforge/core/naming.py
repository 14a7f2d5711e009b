import keyword
import re

_DIGIT_ENGLISH = {
    "0": "zero",
    "1": "one",
    "2": "two",
    "3": "three",
    "4": "four",
    "5": "five",
    "6": "six",
    "7": "seven",
    "8": "eight",
    "9": "nine",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def camel_case(name: str) -> str:
    """``client_id`` -> ``ClientId``. Existing capitals are kept."""
    parts = [p for p in name.split("_") if p]
    rv = "".join(p[0].upper() + p[1:] for p in parts)
    if name.startswith("_"):
        rv = "X" + rv
    return rv


def low_camel_name(name: str) -> str:
    """``package_name`` -> ``packageName``; the JSON name of a proto field."""
    rv = camel_case(name)
    return rv[:1].lower() + rv[1:]


def snake_case(name: str) -> str:
    """``SumRequest`` -> ``sum_request``, ``HTTPServer`` -> ``http_server``."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


def safe_identifier(name: str) -> str:
    """Return ``name`` usable as a Python identifier."""
    rv = re.sub(r"\W", "_", name)
    if not rv or rv[0].isdigit():
        rv = "_" + rv
    if keyword.iskeyword(rv):
        rv += "_"
    return rv


def english_number(i: int) -> str:
    """1 -> ``One``, 10 -> ``OneZero``, 48 -> ``FourEight``."""
    return "".join(_DIGIT_ENGLISH[c].title() for c in str(i) if c in _DIGIT_ENGLISH)
