"""Error kinds raised while correlating schemas, binding URLs and generating files."""

from __future__ import annotations


class SvcforgeError(Exception):
    """Base class for every error raised by svcforge."""


class FieldNotFoundError(SvcforgeError):
    """A named field or placeholder does not exist where it was looked up."""


class MalformedPathError(FieldNotFoundError):
    """A location path selects a field number the current node does not declare."""


class IndexOutOfRangeError(SvcforgeError, IndexError):
    """A collection or path segment index lies beyond the available items."""


class BrokenReferenceError(SvcforgeError):
    """A node that should exist at some point of a walk is absent."""


class SchemaLoadError(SvcforgeError):
    """The schema bytes or the generator parameters could not be decoded."""


class ServiceNotFoundError(SvcforgeError):
    """No service is available to generate against."""


class FormatError(SvcforgeError):
    """A formatter rejected generated text. Never fatal to a generation run."""


class TemplateExecutionError(SvcforgeError):
    """A template asset failed to parse or render."""

    def __init__(self, asset_name: str, cause: BaseException) -> None:
        self.asset_name = asset_name
        self.cause = cause
        super().__init__(f"cannot render template {asset_name!r}: {cause}")
