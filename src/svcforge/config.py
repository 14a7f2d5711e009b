"""Generator settings shared by the CLI and the protoc plugin."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from svcforge.core.descriptors import WalkPolicy
from svcforge.errors import SchemaLoadError

ENV_PREFIX = "SVCFORGE_"


class GeneratorConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    package_name: str | None = None
    handler_import: str | None = None
    generated_import: str | None = None
    template_dir: Path | None = None
    workers: int = Field(default=1, ge=1)
    strict: bool = False
    service: str | None = None

    @property
    def walk_policy(self) -> WalkPolicy:
        return WalkPolicy.STRICT if self.strict else WalkPolicy.BEST_EFFORT

    def package_for(self, service_name: str) -> str:
        return self.package_name or service_name.lower()


def parse_parameter(parameter: str) -> GeneratorConfig:
    """Parse a protoc plugin parameter such as ``package_name=adder,workers=4``.

    A key without a value is read as ``true``.
    """
    values: dict[str, str] = {}
    for item in parameter.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        values[key.strip()] = value.strip() if sep else "true"

    unknown = sorted(set(values) - set(GeneratorConfig.model_fields))
    if unknown:
        raise SchemaLoadError(f"unknown generator parameter(s): {', '.join(unknown)}")
    try:
        return GeneratorConfig.model_validate(values)
    except ValidationError as exc:
        raise SchemaLoadError(f"invalid generator parameter {parameter!r}: {exc}") from exc
