from typing import Protocol


class Formatter(Protocol):
    """Canonical formatter for one output language.

    ``format`` returns the cleaned text or raises ``FormatError``.
    """

    name: str

    def format(self, text: str) -> str: ...
