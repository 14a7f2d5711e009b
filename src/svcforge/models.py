from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ParamLocation = Literal["path", "query", "body"]


class Describable(BaseModel):
    name: str
    description: str = ""

    def child(self, kind: str, name: str) -> Describable | None:
        """Return the direct child of the given kind named ``name``, if any."""
        return None


class EnumValueNode(Describable):
    number: int


class EnumNode(Describable):
    values: list[EnumValueNode] = Field(default_factory=list)

    def child(self, kind: str, name: str) -> Describable | None:
        if kind == "enum_value":
            return next((v for v in self.values if v.name == name), None)
        return None


class FieldType(BaseModel):
    name: str
    kind: Literal["scalar", "enum", "message"] = "scalar"
    # Shared reference into the tree; the enum is owned by its file or message.
    enum: EnumNode | None = Field(default=None, exclude=True, repr=False)


class FieldNode(Describable):
    number: int
    label: Literal["optional", "required", "repeated"] = "optional"
    type: FieldType

    @property
    def repeated(self) -> bool:
        return self.label == "repeated"


class MessageNode(Describable):
    full_name: str = ""
    fields: list[FieldNode] = Field(default_factory=list)
    messages: list[MessageNode] = Field(default_factory=list)
    enums: list[EnumNode] = Field(default_factory=list)

    def child(self, kind: str, name: str) -> Describable | None:
        if kind == "field":
            return next((f for f in self.fields if f.name == name), None)
        if kind == "message":
            return next((m for m in self.messages if m.name == name), None)
        if kind == "enum":
            return next((e for e in self.enums if e.name == name), None)
        return None


MessageNode.model_rebuild()  # necessary for recursive types


class BindingField(BaseModel):
    name: str
    local_name: str
    location: ParamLocation
    scalar_type: str
    repeated: bool = False
    convert_func: str = "str"
    is_base_type: bool = True
    is_enum: bool = False

    @property
    def cardinality(self) -> str:
        return "repeated" if self.repeated else "singular"


class HttpBinding(BaseModel):
    verb: str
    path: str
    body: str = ""
    label: str = ""
    base_path: str = ""
    fields: list[BindingField] = Field(default_factory=list)

    def fields_in(self, location: ParamLocation) -> list[BindingField]:
        return [f for f in self.fields if f.location == location]


class MethodNode(Describable):
    request_type: str
    response_type: str
    client_streaming: bool = False
    server_streaming: bool = False
    bindings: list[HttpBinding] = Field(default_factory=list)


class ServiceNode(Describable):
    methods: list[MethodNode] = Field(default_factory=list)

    def child(self, kind: str, name: str) -> Describable | None:
        if kind == "method":
            return next((m for m in self.methods if m.name == name), None)
        return None


class FileNode(Describable):
    package: str = ""
    messages: list[MessageNode] = Field(default_factory=list)
    enums: list[EnumNode] = Field(default_factory=list)
    services: list[ServiceNode] = Field(default_factory=list)

    def child(self, kind: str, name: str) -> Describable | None:
        if kind == "message":
            return next((m for m in self.messages if m.name == name), None)
        if kind == "enum":
            return next((e for e in self.enums if e.name == name), None)
        if kind == "service":
            return next((s for s in self.services if s.name == name), None)
        return None


class ServiceDefinition(Describable):
    """Root of a correlated documentation tree."""

    files: list[FileNode] = Field(default_factory=list)

    def child(self, kind: str, name: str) -> Describable | None:
        if kind == "file":
            return next((f for f in self.files if f.name == name), None)
        return None

    def services(self) -> list[ServiceNode]:
        return [svc for file in self.files for svc in file.services]


class SourceLocation(BaseModel):
    path: list[int] = Field(default_factory=list)
    leading_comments: str = ""
    trailing_comments: str = ""
    leading_detached_comments: list[str] = Field(default_factory=list)

    def has_comments(self) -> bool:
        return bool(self.leading_comments.strip()) or any(c.strip() for c in self.leading_detached_comments)


class TemplateAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    stored_path: str
    raw_bytes: bytes

    @property
    def text(self) -> str:
        return self.raw_bytes.decode("utf-8")


class GeneratedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    content: str
    asset_path: str
    formatted: bool = True
    # Produced by updating an existing file rather than rendering from scratch.
    merged: bool = False


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: Literal["debug", "info", "warning", "error"]
    code: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)
