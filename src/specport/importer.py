"""Swagger/OpenAPI import service.

:class:`SwaggerImporter` is the entry point a GUI or CLI talks to.  One
import call runs the whole pipeline:

1. :func:`~specport.parser.validator.validate_document` gates the input;
   an invalid document aborts with
   :class:`~specport.exceptions.InvalidDocumentError` and no partial
   collection.
2. The text is parsed into the raw JSON tree, and the document-level fields
   into the :class:`~specport.models.SwaggerDocument` skeleton.
3. Every ``(path, method)`` operation is validated as an
   :class:`~specport.models.Operation` and converted by
   :func:`~specport.generator.converter.convert_operation` in isolation.  An
   operation that fails either step is logged, recorded in the
   :class:`~specport.models.ImportReport` and skipped.
4. Records are grouped into one folder per first tag; untagged operations
   stay at the collection root.

Each call builds its own :class:`~specport.generator.examples.ExampleSynthesizer`
(and therefore its own reference resolver), so concurrent imports of
different documents never share cycle-detection state.

Remote imports (:meth:`SwaggerImporter.import_from_url`) fetch the document
first and report transport problems as
:class:`~specport.exceptions.DocumentFetchError`, distinct from "retrieved
but invalid".
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from specport.client.fetcher import DocumentFetcher
from specport.exceptions import InvalidDocumentError
from specport.generator.converter import (
    base_url,
    convert_operation,
    folder_name,
    iter_raw_operations,
    parse_operation,
    split_parameters,
)
from specport.generator.examples import ExampleSynthesizer
from specport.models import (
    ApiCollection,
    ApiFolder,
    ImportReport,
    ImportSettings,
    ImportSource,
    Parameter,
    RequestRecord,
    SkippedOperation,
    SwaggerDocument,
    UrlValidationResult,
    ValidationResult,
)
from specport.parser.validator import validate_document

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "Imported API collection"


class SwaggerImporter:
    """Import Swagger 2.0 / OpenAPI 3.x documents into request collections.

    Args:
        settings: Depth caps, timeout and defaults.  See
            :func:`~specport.config.resolve_settings`.
        fetcher: Document fetcher for URL imports.  Built from *settings*
            when omitted.

    Example::

        importer = SwaggerImporter()
        collection = importer.import_from_json(Path("petstore.json").read_text())
        for folder in collection.folders:
            print(folder.name, len(folder.requests))
    """

    def __init__(
        self,
        settings: Optional[ImportSettings] = None,
        fetcher: Optional[DocumentFetcher] = None,
    ) -> None:
        self._settings = settings or ImportSettings()
        self._fetcher = fetcher or DocumentFetcher(
            timeout=self._settings.fetch_timeout,
            verify_ssl=self._settings.verify_ssl,
        )
        self._last_report: Optional[ImportReport] = None

    @property
    def settings(self) -> ImportSettings:
        """The active import settings."""
        return self._settings

    @property
    def last_report(self) -> Optional[ImportReport]:
        """Diagnostics from the most recent :meth:`import_from_json` call."""
        return self._last_report

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate(self, json_content: str) -> ValidationResult:
        """Validate *json_content* without importing it.  Never raises."""
        return validate_document(json_content)

    async def validate_url(
        self,
        url: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> UrlValidationResult:
        """Check that *url* serves a non-empty JSON body.

        Performs a single fetch.  Never raises; failures are described in
        ``error_message`` with ``is_accessible=False``.
        """
        result = UrlValidationResult()
        try:
            fetched = await self._fetcher.fetch(url, cancel_event=cancel_event)
        except Exception as exc:
            result.error_message = str(exc)
            return result

        result.is_accessible = fetched.is_success
        result.status_code = fetched.status_code
        result.response_time_ms = fetched.response_time_ms
        result.content_type = fetched.content_type
        result.content_length = fetched.content_length

        if not fetched.is_success:
            result.error_message = fetched.error_message
        elif not fetched.content or not fetched.content.strip():
            result.is_accessible = False
            result.error_message = "Response body is empty"
        else:
            try:
                json.loads(fetched.content)
            except ValueError:
                result.is_accessible = False
                result.error_message = "Response body is not valid JSON"

        return result

    # ------------------------------------------------------------------ #
    # Import
    # ------------------------------------------------------------------ #

    def import_from_json(
        self,
        json_content: str,
        collection_name: Optional[str] = None,
    ) -> ApiCollection:
        """Import a document held in memory.

        Args:
            json_content: The document text.
            collection_name: Overrides the collection name (defaults to
                ``info.title``).

        Returns:
            The populated :class:`~specport.models.ApiCollection` with
            ``import_source=json_file``.

        Raises:
            InvalidDocumentError: If the document is not valid JSON, has no
                ``openapi``/``swagger`` version or no ``info`` object.
        """
        collection, report = self.import_with_report(json_content, collection_name)
        self._last_report = report
        return collection

    def import_with_report(
        self,
        json_content: str,
        collection_name: Optional[str] = None,
    ) -> tuple[ApiCollection, ImportReport]:
        """Like :meth:`import_from_json`, also returning the :class:`ImportReport`."""
        validation = validate_document(json_content)
        if not validation.is_valid:
            raise InvalidDocumentError(
                f"Invalid Swagger document: {validation.error_message}",
                warnings=validation.warnings,
            )

        raw_document: dict[str, Any] = json.loads(json_content)
        document = SwaggerDocument.model_validate(raw_document)

        report = ImportReport(warnings=list(validation.warnings))
        info = document.info
        collection = ApiCollection(
            name=collection_name or (info.title if info and info.title else None)
            or DEFAULT_COLLECTION_NAME,
            description=info.description if info else None,
            version=info.version if info else None,
            base_url=base_url(document),
            import_source=ImportSource.JSON_FILE,
        )

        synthesizer = ExampleSynthesizer(raw_document)
        folders: dict[str, ApiFolder] = {}

        for path, method, path_item in iter_raw_operations(raw_document):
            label = f"{method.value.upper()} {path}"
            try:
                operation, path_parameters = parse_operation(path_item, method)
                request = convert_operation(
                    path,
                    method.value,
                    operation,
                    document,
                    raw_document,
                    synthesizer,
                    settings=self._settings,
                    path_parameters=path_parameters,
                )
            except Exception as exc:
                reason = _skip_reason(exc)
                logger.warning("Skipping operation %s: %s", label, reason)
                report.skipped.append(
                    SkippedOperation(method=method.value.upper(), path=path, reason=reason)
                )
                continue

            _add_request(collection, folders, request, folder_name(operation))
            report.imported += 1

        logger.debug(
            "Imported %d operation(s) from %s, skipped %d",
            report.imported,
            validation.detected_version,
            len(report.skipped),
        )
        return collection, report

    async def import_from_url(
        self,
        url: str,
        collection_name: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ApiCollection:
        """Fetch a document and import it.

        Args:
            url: Document URL.
            collection_name: Overrides the collection name.
            cancel_event: Caller-controlled cancellation for the fetch.

        Returns:
            The collection, with ``swagger_url`` set and
            ``import_source=swagger_url``.

        Raises:
            DocumentFetchError: If the document could not be retrieved.
            InvalidDocumentError: If it was retrieved but is not valid.
        """
        content = await self._fetcher.fetch_text(url, cancel_event=cancel_event)
        collection = self.import_from_json(content, collection_name)
        collection.swagger_url = url
        collection.import_source = ImportSource.SWAGGER_URL
        return collection

    # ------------------------------------------------------------------ #
    # Standalone helpers
    # ------------------------------------------------------------------ #

    def generate_example_from_schema(
        self,
        schema: Any,
        document: Optional[dict[str, Any]] = None,
    ) -> str:
        """Return an indented JSON example for *schema*, or ``"{}"`` on failure.

        Args:
            schema: A raw schema dict or :class:`~specport.models.Schema`,
                e.g. ``RequestRecord.request_body_schema``.
            document: Raw document to resolve ``$ref`` against.
        """
        synthesizer = ExampleSynthesizer(document)
        return synthesizer.example_json(schema, max_depth=self._settings.body_max_depth)

    def parse_parameters(
        self,
        parameters: Iterable[Parameter],
        document: Optional[dict[str, Any]] = None,
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Split *parameters* into ``(headers, query)`` example maps."""
        synthesizer = ExampleSynthesizer(document)
        parsed = split_parameters(
            parameters, synthesizer, self._settings.parameter_max_depth
        )
        return parsed.headers, parsed.query


def _skip_reason(exc: Exception) -> str:
    """One line describing why an operation was skipped."""
    if isinstance(exc, ValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", str(exc))
        return f"Invalid operation structure at '{location}': {detail}"
    return str(exc)


def _add_request(
    collection: ApiCollection,
    folders: dict[str, ApiFolder],
    request: RequestRecord,
    folder: str,
) -> None:
    """Put *request* in the folder for *folder* (created on first use) or at the root."""
    if not folder.strip():
        collection.requests.append(request)
        return

    target = folders.get(folder)
    if target is None:
        target = ApiFolder(name=folder, description=f"From tag: {folder}")
        folders[folder] = target
        collection.folders.append(target)
    target.requests.append(request)
