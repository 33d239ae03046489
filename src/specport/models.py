"""Canonical Pydantic models shared across all specport modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ImportSettings`.

**Document models** -- the typed skeleton of a Swagger 2.0 / OpenAPI 3.x
document, covering only what the importer needs:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`Schema`,
    :class:`Parameter`, :class:`MediaType`, :class:`RequestBody`,
    :class:`Operation`, :class:`ApiInfo`, :class:`ServerInfo`, and
    :class:`SwaggerDocument`.

**Collection models** -- the importer's output, ready to be persisted by a
storage layer:
    :class:`RequestRecord`, :class:`ApiFolder`, :class:`ApiCollection`,
    :class:`ImportSource`, :class:`ImportReport`.

**Result models** -- returned by validation and transport helpers:
    :class:`ValidationResult`, :class:`UrlValidationResult`, and
    :class:`FetchResult`.

Document models ignore unknown keys, except :class:`Schema`, which keeps them
in ``model_extra`` so that vendor extensions survive a dump/reload cycle.
Fields whose OpenAPI names are not valid Python identifiers (``$ref``,
``in``, ``operationId``...) are declared with aliases and
``populate_by_name=True``.
"""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

logger = logging.getLogger(__name__)


def _coerce_str(value: Any) -> Any:
    """Turn numeric version-like values (``swagger: 2.0``) into strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# --- Config ---


class ImportSettings(BaseModel):
    """User-wide import settings persisted at ``~/.config/specport/config.json``.

    Loaded and saved by :func:`~specport.config.load_settings` and
    :func:`~specport.config.save_settings`. Environment variables and CLI
    flags override the stored values; see
    :func:`~specport.config.resolve_settings` for the full precedence chain.
    """

    body_max_depth: int = Field(
        default=10, ge=0, description="Depth cap when synthesizing request bodies"
    )
    parameter_max_depth: int = Field(
        default=5, ge=0, description="Depth cap when synthesizing parameter values"
    )
    fetch_timeout: float = Field(
        default=120.0, gt=0, description="Timeout in seconds for remote documents"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    default_content_type: str = Field(
        default="application/json",
        description="Content type used when an operation declares none",
    )


# --- Document Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods the importer recognises on a path item, in import order."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    HEAD = "head"
    OPTIONS = "options"


class ParameterLocation(str, enum.Enum):
    """Locations where a parameter can appear, per the ``in`` field.

    ``BODY`` and ``FORM_DATA`` only exist in Swagger 2.0 documents.
    """

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"
    BODY = "body"
    FORM_DATA = "formData"


class Schema(BaseModel):
    """A recursive JSON Schema node.

    ``ref`` and the structural fields are mutually exclusive in well-formed
    documents, but both may be present here; the synthesizer gives
    precedence to ``example`` and then to ``ref``. ``type`` is left untyped
    because OpenAPI 3.1 allows a list (``["string", "null"]``) and real-world
    documents misuse it.

    Sub-schemas under ``properties`` and ``items`` stay raw JSON, so boolean
    schemas (``{"any": true}``) and other odd nodes load and are skipped by
    the synthesizer.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ref: Optional[str] = Field(default=None, alias="$ref")
    type: Any = None
    format: Optional[str] = None
    description: Optional[str] = None
    properties: Optional[dict[str, Any]] = None
    items: Any = None
    required: Any = None
    example: Any = None
    enum_values: Optional[list[Any]] = Field(default=None, alias="enum")

    @field_validator("items", mode="before")
    @classmethod
    def _first_tuple_item(cls, value: Any) -> Any:
        # Swagger 2.0 tuple validation: only the first item schema is used.
        if isinstance(value, list):
            return value[0] if value else None
        return value

    @field_validator("properties", mode="before")
    @classmethod
    def _properties_map(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    def to_node(self) -> dict[str, Any]:
        """Dump back to a raw JSON node, restoring ``$ref`` and extension keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _schema_node(value: Any) -> Any:
    """Keep object schemas; boolean or other non-object schemas become ``None``."""
    return value if isinstance(value, (dict, Schema)) else None


class Parameter(BaseModel):
    """A single parameter of an operation or path item.

    Swagger 2.0 parameters carry a primitive ``type``/``format`` (or a
    ``schema`` for ``in: body``); OpenAPI 3.x parameters carry a ``schema``.
    A parameter that is itself a ``$ref`` only has ``ref`` set until the
    converter looks it up in the raw document.
    """

    model_config = ConfigDict(populate_by_name=True)

    ref: Optional[str] = Field(default=None, alias="$ref")
    name: Optional[str] = None
    location: Optional[str] = Field(default=None, alias="in")
    required: bool = False
    description: Optional[str] = None
    type: Optional[str] = None
    format: Optional[str] = None
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    example: Any = None

    @field_validator("schema_", mode="before")
    @classmethod
    def _object_schema(cls, value: Any) -> Any:
        return _schema_node(value)


class MediaType(BaseModel):
    """One entry of a request body's ``content`` map."""

    model_config = ConfigDict(populate_by_name=True)

    schema_: Optional[Schema] = Field(default=None, alias="schema")
    example: Any = None

    @field_validator("schema_", mode="before")
    @classmethod
    def _object_schema(cls, value: Any) -> Any:
        return _schema_node(value)


class RequestBody(BaseModel):
    """An OpenAPI 3.x *Request Body Object*."""

    model_config = ConfigDict(populate_by_name=True)

    ref: Optional[str] = Field(default=None, alias="$ref")
    description: Optional[str] = None
    required: bool = False
    content: dict[str, MediaType] = Field(default_factory=dict)


class Operation(BaseModel):
    """A single *Operation Object* (one HTTP method under one path)."""

    model_config = ConfigDict(populate_by_name=True)

    tags: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = Field(default=None, alias="requestBody")
    responses: dict[str, Any] = Field(default_factory=dict)
    consumes: list[str] = Field(default_factory=list)
    produces: list[str] = Field(default_factory=list)
    deprecated: bool = False


class ApiInfo(BaseModel):
    """API metadata from the document's *Info Object*."""

    title: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None

    @field_validator("title", "version", mode="before")
    @classmethod
    def _number_as_string(cls, value: Any) -> Any:
        return _coerce_str(value)


class ServerInfo(BaseModel):
    """An entry of an OpenAPI 3.x ``servers`` array."""

    url: Optional[str] = None
    description: Optional[str] = None


class SwaggerDocument(BaseModel):
    """Typed skeleton of a Swagger 2.0 or OpenAPI 3.x document.

    Exactly one of :attr:`openapi` / :attr:`swagger` is expected to be set;
    :func:`~specport.parser.validator.validate_document` rejects documents
    carrying neither before this model is ever built.

    The skeleton holds the document-level fields the converter needs (info,
    base URL parts, ``consumes``). Paths are walked on the raw JSON tree and
    each operation is validated on its own as an :class:`Operation`, and
    schemas are synthesized from the raw tree as well. A malformed
    document-level field is logged and falls back to its default, so it
    never aborts an import.
    """

    model_config = ConfigDict(populate_by_name=True)

    openapi: Optional[str] = None
    swagger: Optional[str] = None
    info: Optional[ApiInfo] = None
    servers: list[ServerInfo] = Field(default_factory=list)
    host: Optional[str] = None
    base_path: Optional[str] = Field(default=None, alias="basePath")
    schemes: list[str] = Field(default_factory=list)
    consumes: list[str] = Field(default_factory=list)

    @field_validator("openapi", "swagger", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        return _coerce_str(value)

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_when_malformed(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError as exc:
            logger.debug("Ignoring malformed document field %s: %s", info.field_name, exc)
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


# --- Collection Models ---


class ImportSource(str, enum.Enum):
    """Where an :class:`ApiCollection` came from."""

    MANUAL = "manual"
    JSON_FILE = "json_file"
    SWAGGER_URL = "swagger_url"


class RequestRecord(BaseModel):
    """One request in a collection, as produced by the operation converter.

    ``request_body_schema_json`` keeps the raw request-body schema so that
    editors can regenerate an example later without re-importing the
    document.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    content_type: str = "application/json"
    tags: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    operation_id: Optional[str] = None
    path_variables: dict[str, str] = Field(
        default_factory=dict,
        description="Example values for {placeholders} left in the URL",
    )
    request_body_schema_json: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    last_modified: datetime = Field(default_factory=datetime.now)

    @property
    def request_body_schema(self) -> Optional[Schema]:
        """The kept request-body schema, or ``None`` if absent or unreadable."""
        if not self.request_body_schema_json or not self.request_body_schema_json.strip():
            return None
        try:
            return Schema.model_validate_json(self.request_body_schema_json)
        except (ValidationError, ValueError):
            return None


class ApiFolder(BaseModel):
    """A folder of requests; the importer creates one per operation tag."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    description: Optional[str] = None
    parent_id: Optional[str] = None
    requests: list[RequestRecord] = Field(default_factory=list)
    sub_folders: list[ApiFolder] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class ApiCollection(BaseModel):
    """A named collection of requests and folders.

    Requests whose operation has no tag live in :attr:`requests` at the
    collection root; tagged ones live in the folder named after their first
    tag.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    description: Optional[str] = None
    version: Optional[str] = None
    base_url: Optional[str] = None
    requests: list[RequestRecord] = Field(default_factory=list)
    folders: list[ApiFolder] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)
    import_source: ImportSource = ImportSource.MANUAL
    swagger_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    last_modified: datetime = Field(default_factory=datetime.now)

    def all_requests(self) -> list[RequestRecord]:
        """Return root requests followed by every folder's requests, depth-first."""
        result = list(self.requests)
        stack = list(reversed(self.folders))
        while stack:
            folder = stack.pop()
            result.extend(folder.requests)
            stack.extend(reversed(folder.sub_folders))
        return result

    def folder(self, name: str) -> Optional[ApiFolder]:
        """Return the top-level folder called *name*, if any."""
        for folder in self.folders:
            if folder.name == name:
                return folder
        return None


class SkippedOperation(BaseModel):
    """An operation the importer could not convert."""

    method: str
    path: str
    reason: str


class ImportReport(BaseModel):
    """Diagnostics collected during one import call."""

    imported: int = 0
    skipped: list[SkippedOperation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# --- Result Models ---


class ValidationResult(BaseModel):
    """Outcome of :func:`~specport.parser.validator.validate_document`."""

    is_valid: bool = False
    error_message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
    detected_version: Optional[str] = None
    api_count: int = 0


class UrlValidationResult(BaseModel):
    """Outcome of :meth:`~specport.importer.SwaggerImporter.validate_url`."""

    is_accessible: bool = False
    status_code: int = 0
    error_message: Optional[str] = None
    response_time_ms: int = 0
    content_type: Optional[str] = None
    content_length: int = 0


class FetchResult(BaseModel):
    """A completed (or failed) HTTP fetch.

    Transport failures are reported through :attr:`error_message` with
    :attr:`is_success` set to ``False``; the fetcher never raises for them.
    """

    url: str
    method: str = "GET"
    status_code: int = 0
    is_success: bool = False
    content: Optional[str] = None
    headers: dict[str, str] = Field(default_factory=dict)
    content_type: Optional[str] = None
    content_length: int = 0
    response_time_ms: int = 0
    error_message: Optional[str] = None
    timed_out: bool = False
    cancelled: bool = False
    requested_at: datetime = Field(default_factory=datetime.now)
    responded_at: Optional[datetime] = None
