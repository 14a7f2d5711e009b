from __future__ import annotations

import logging
from pathlib import PurePosixPath

import black

from svcforge.core.ports.formatter import Formatter
from svcforge.errors import FormatError

logger = logging.getLogger(__name__)


class BlackFormatter:
    """Format generated Python source with black.

    Implements the ``Formatter`` protocol.
    """

    name = "black"

    def __init__(self, line_length: int = black.DEFAULT_LINE_LENGTH) -> None:
        self._mode = black.Mode(line_length=line_length)

    def format(self, text: str) -> str:
        try:
            return black.format_str(text, mode=self._mode)
        except ValueError as exc:
            # black reports unparsable input as InvalidInput, a ValueError.
            raise FormatError(f"black could not format source: {exc}") from exc


class PassthroughFormatter:
    """Return text unchanged; used for outputs without a canonical formatter."""

    name = "passthrough"

    def format(self, text: str) -> str:
        return text


_BY_SUFFIX: dict[str, type[BlackFormatter] | type[PassthroughFormatter]] = {
    ".py": BlackFormatter,
    ".pyi": BlackFormatter,
}


def formatter_for(path: str) -> Formatter:
    """Return the formatter matching the suffix of the output ``path``."""
    formatter_cls = _BY_SUFFIX.get(PurePosixPath(path).suffix, PassthroughFormatter)
    logger.debug("Using %s formatter for %s", formatter_cls.name, path)
    return formatter_cls()
