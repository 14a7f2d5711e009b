import logging
from typing import Any

from svcforge.models import Diagnostic

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Diagnostics:
    """Collects the diagnostic records of one call chain.

    A collector is created by the caller and handed down explicitly; every record
    is also forwarded to the module logger so a console run still shows it.
    """

    def __init__(self) -> None:
        self.records: list[Diagnostic] = []

    def add(self, level: str, code: str, message: str, **context: Any) -> Diagnostic:
        record = Diagnostic(level=level, code=code, message=message, context=context)  # type: ignore[arg-type]
        self.records.append(record)
        logger.log(_LEVELS[level], "%s: %s", code, message)
        return record

    def debug(self, code: str, message: str, **context: Any) -> Diagnostic:
        return self.add("debug", code, message, **context)

    def info(self, code: str, message: str, **context: Any) -> Diagnostic:
        return self.add("info", code, message, **context)

    def warning(self, code: str, message: str, **context: Any) -> Diagnostic:
        return self.add("warning", code, message, **context)

    def error(self, code: str, message: str, **context: Any) -> Diagnostic:
        return self.add("error", code, message, **context)

    def by_code(self, code: str) -> list[Diagnostic]:
        return [r for r in self.records if r.code == code]

    @property
    def has_errors(self) -> bool:
        return any(r.level == "error" for r in self.records)

    def __len__(self) -> int:
        return len(self.records)
