"""Tests for the import service."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
import pytest

from specport.client.fetcher import DocumentFetcher
from specport.exceptions import DocumentFetchError, InvalidDocumentError
from specport.importer import DEFAULT_COLLECTION_NAME, SwaggerImporter
from specport.models import ImportSettings, ImportSource, Parameter
from specport.parser.validator import WARN_PREFER_OPENAPI_3

URL = "https://api.example.com/openapi.json"


def _importer_serving(handler, settings: ImportSettings | None = None) -> SwaggerImporter:
    """A SwaggerImporter whose fetcher is backed by an httpx.MockTransport."""
    fetcher = DocumentFetcher(timeout=5, transport=httpx.MockTransport(handler))
    return SwaggerImporter(settings=settings, fetcher=fetcher)


def _serve(text: str, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=text)

    return handler


# ---------------------------------------------------------------------------
# import_from_json
# ---------------------------------------------------------------------------


class TestImportOpenApi:
    def test_collection_metadata(self, petstore_text: str) -> None:
        collection = SwaggerImporter().import_from_json(petstore_text)

        assert collection.name == "Petstore"
        assert collection.description == "Sample pet store"
        assert collection.version == "1.0.0"
        assert collection.base_url == "https://api.example.com/v1"
        assert collection.import_source == ImportSource.JSON_FILE
        assert collection.swagger_url is None

    def test_folders_follow_first_tag(self, petstore_text: str) -> None:
        collection = SwaggerImporter().import_from_json(petstore_text)

        assert [f.name for f in collection.folders] == ["Pets", "Categories", "Files"]
        assert [len(f.requests) for f in collection.folders] == [4, 1, 1]
        assert collection.folder("Pets").description == "From tag: Pets"
        assert [r.name for r in collection.requests] == ["Health check"]
        assert len(collection.all_requests()) == 7

    def test_records_in_document_order(self, petstore_text: str) -> None:
        collection = SwaggerImporter().import_from_json(petstore_text)

        names = [r.name for r in collection.folder("Pets").requests]
        assert names == ["List pets", "Create a pet", "GET /pets/{petId}", "Delete a pet"]

    def test_query_parameters_in_url(self, petstore_text: str) -> None:
        collection = SwaggerImporter().import_from_json(petstore_text)

        list_pets = collection.folder("Pets").requests[0]
        assert list_pets.method == "GET"
        assert list_pets.url == "https://api.example.com/v1/pets?limit=123&offset=20"

    def test_cyclic_bodies_terminate(self, petstore_text: str) -> None:
        collection = SwaggerImporter().import_from_json(petstore_text)

        put = collection.folder("Categories").requests[0]
        assert json.loads(put.body) == [
            {"id": 123, "name": "string", "parent": {"_circular_reference": "Category"}}
        ]

    def test_collection_name_override(self, petstore_text: str) -> None:
        collection = SwaggerImporter().import_from_json(petstore_text, "My API")
        assert collection.name == "My API"

    def test_default_name_when_title_missing(self, minimal_openapi: dict[str, Any]) -> None:
        minimal_openapi["info"] = {"version": "1"}

        collection = SwaggerImporter().import_from_json(json.dumps(minimal_openapi))

        assert collection.name == DEFAULT_COLLECTION_NAME
        assert [r.name for r in collection.requests] == ["GET /ping"]

    def test_minimal_document(self, minimal_openapi: dict[str, Any]) -> None:
        collection = SwaggerImporter().import_from_json(json.dumps(minimal_openapi))

        assert collection.base_url == ""
        assert collection.folders == []
        assert collection.requests[0].url == "/ping"

    def test_empty_paths(self) -> None:
        importer = SwaggerImporter()
        collection = importer.import_from_json(
            json.dumps({"openapi": "3.0.0", "info": {"title": "Empty"}, "paths": {}})
        )

        assert collection.all_requests() == []
        assert importer.last_report.imported == 0

    def test_settings_depth_applies(self, petstore_text: str) -> None:
        importer = SwaggerImporter(settings=ImportSettings(body_max_depth=1))

        collection = importer.import_from_json(petstore_text)

        create = collection.folder("Pets").requests[1]
        assert json.loads(create.body) == {"_depth_limit_reached": 1}


class TestImportSwagger2:
    def test_metadata_and_urls(self, swagger2_text: str) -> None:
        importer = SwaggerImporter()
        collection = importer.import_from_json(swagger2_text)

        assert collection.name == "Legacy Store"
        assert collection.version == "2"
        assert collection.base_url == "http://legacy.example.com/api"
        assert [f.name for f in collection.folders] == ["Orders"]
        assert importer.last_report.imported == 3
        assert importer.last_report.warnings == []

    def test_body_parameter_cycle(self, swagger2_text: str) -> None:
        collection = SwaggerImporter().import_from_json(swagger2_text)

        place = collection.folder("Orders").requests[1]
        body = json.loads(place.body)
        assert place.name == "Place order"
        assert body["customer"]["lastOrder"] == {"_circular_reference": "Order"}


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------


class TestInvalidDocuments:
    def test_not_json(self) -> None:
        with pytest.raises(InvalidDocumentError, match="Invalid Swagger document: Invalid JSON"):
            SwaggerImporter().import_from_json("{not json")

    def test_missing_info(self) -> None:
        doc = json.dumps({"openapi": "3.0.0", "paths": {}})
        with pytest.raises(InvalidDocumentError, match="missing required 'info' field"):
            SwaggerImporter().import_from_json(doc)

    def test_missing_version_field(self) -> None:
        doc = json.dumps({"info": {"title": "x"}, "paths": {}})
        with pytest.raises(InvalidDocumentError, match="unrecognized document format"):
            SwaggerImporter().import_from_json(doc)

    def test_invalid_document_keeps_warnings(self) -> None:
        doc = json.dumps({"openapi": "2.5"})
        with pytest.raises(InvalidDocumentError) as exc_info:
            SwaggerImporter().import_from_json(doc)
        assert WARN_PREFER_OPENAPI_3 in exc_info.value.warnings


class TestMalformedStructure:
    """Type mismatches inside one operation or schema never abort the import."""

    @pytest.mark.parametrize(
        ("bad_operation", "location"),
        [
            ({"summary": 123}, "summary"),
            ({"tags": "notalist"}, "tags"),
            (
                {"parameters": [{"name": "q", "in": "query", "required": "maybe"}]},
                "parameters.0.required",
            ),
        ],
    )
    def test_bad_operation_skipped(
        self, minimal_openapi: dict[str, Any], bad_operation: dict[str, Any], location: str
    ) -> None:
        minimal_openapi["paths"]["/bad"] = {"get": bad_operation}
        importer = SwaggerImporter()

        collection = importer.import_from_json(json.dumps(minimal_openapi))

        assert [r.name for r in collection.all_requests()] == ["GET /ping"]
        skipped = importer.last_report.skipped
        assert [(s.method, s.path) for s in skipped] == [("GET", "/bad")]
        assert skipped[0].reason.startswith(f"Invalid operation structure at '{location}'")

    def test_bad_path_level_parameter_skips_that_path_only(
        self, minimal_openapi: dict[str, Any]
    ) -> None:
        minimal_openapi["paths"]["/bad/{id}"] = {
            "parameters": [{"name": "id", "in": "path", "required": "maybe"}],
            "get": {},
            "delete": {},
        }
        importer = SwaggerImporter()

        collection = importer.import_from_json(json.dumps(minimal_openapi))

        assert [r.name for r in collection.all_requests()] == ["GET /ping"]
        assert [s.method for s in importer.last_report.skipped] == ["GET", "DELETE"]

    def test_boolean_schema_in_components(self, minimal_openapi: dict[str, Any]) -> None:
        minimal_openapi["components"] = {
            "schemas": {"A": {"type": "object", "properties": {"any": True, "n": {"type": "number"}}}}
        }
        minimal_openapi["paths"]["/a"] = {
            "post": {
                "requestBody": {
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/A"}}}
                }
            }
        }
        importer = SwaggerImporter()

        collection = importer.import_from_json(json.dumps(minimal_openapi))

        post = collection.requests[1]
        assert post.name == "POST /a"
        assert json.loads(post.body) == {"n": 123.45}
        assert importer.last_report.skipped == []

    def test_malformed_document_level_fields_fall_back(
        self, minimal_openapi: dict[str, Any]
    ) -> None:
        minimal_openapi["info"] = {"title": "Minimal", "description": ["not", "text"]}
        minimal_openapi["servers"] = "https://api.example.com"

        collection = SwaggerImporter().import_from_json(json.dumps(minimal_openapi))

        assert collection.name == DEFAULT_COLLECTION_NAME
        assert collection.base_url == ""
        assert [r.url for r in collection.requests] == ["/ping"]


class TestSkippedOperations:
    @pytest.fixture
    def doc_with_bad_ref(self, minimal_openapi: dict[str, Any]) -> str:
        minimal_openapi["paths"]["/broken"] = {
            "get": {"parameters": [{"$ref": "#/components/parameters/Missing"}]}
        }
        return json.dumps(minimal_openapi)

    def test_failing_operation_skipped(self, doc_with_bad_ref: str) -> None:
        importer = SwaggerImporter()

        collection = importer.import_from_json(doc_with_bad_ref)

        assert [r.name for r in collection.requests] == ["GET /ping"]
        report = importer.last_report
        assert report.imported == 1
        assert len(report.skipped) == 1
        assert report.skipped[0].method == "GET"
        assert report.skipped[0].path == "/broken"
        assert "Missing" in report.skipped[0].reason

    def test_skip_is_logged(
        self, doc_with_bad_ref: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="specport.importer"):
            SwaggerImporter().import_from_json(doc_with_bad_ref)

        assert "Skipping operation GET /broken" in caplog.text

    def test_import_with_report(self, doc_with_bad_ref: str) -> None:
        collection, report = SwaggerImporter().import_with_report(doc_with_bad_ref)

        assert len(collection.all_requests()) == report.imported == 1


class TestIsolation:
    def test_repeated_imports_are_independent(self, petstore_text: str) -> None:
        importer = SwaggerImporter()

        first = importer.import_from_json(petstore_text)
        second = importer.import_from_json(petstore_text)

        assert first.folder("Categories").requests[0].body == (
            second.folder("Categories").requests[0].body
        )
        assert first.id != second.id

    def test_concurrent_imports(self, petstore_text: str, swagger2_text: str) -> None:
        importer = SwaggerImporter()

        async def run() -> list[Any]:
            return await asyncio.gather(
                asyncio.to_thread(importer.import_from_json, petstore_text),
                asyncio.to_thread(importer.import_from_json, swagger2_text),
            )

        petstore, legacy = asyncio.run(run())

        assert len(petstore.all_requests()) == 7
        assert len(legacy.all_requests()) == 3


# ---------------------------------------------------------------------------
# import_from_url
# ---------------------------------------------------------------------------


class TestImportFromUrl:
    def test_success(self, petstore_text: str) -> None:
        importer = _importer_serving(_serve(petstore_text))

        collection = asyncio.run(importer.import_from_url(URL))

        assert collection.swagger_url == URL
        assert collection.import_source == ImportSource.SWAGGER_URL
        assert len(collection.all_requests()) == 7

    def test_http_error(self) -> None:
        importer = _importer_serving(_serve("boom", status_code=500))

        with pytest.raises(DocumentFetchError) as exc_info:
            asyncio.run(importer.import_from_url(URL))

        assert exc_info.value.status_code == 500
        assert f"Could not retrieve document from {URL}" in str(exc_info.value)

    def test_empty_body(self) -> None:
        importer = _importer_serving(_serve("   "))

        with pytest.raises(DocumentFetchError, match="response body is empty"):
            asyncio.run(importer.import_from_url(URL))

    def test_cancelled(self, petstore_text: str) -> None:
        importer = _importer_serving(_serve(petstore_text))

        async def run() -> None:
            event = asyncio.Event()
            event.set()
            await importer.import_from_url(URL, cancel_event=event)

        with pytest.raises(DocumentFetchError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.cancelled

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("too slow", request=request)

        with pytest.raises(DocumentFetchError) as exc_info:
            asyncio.run(_importer_serving(handler).import_from_url(URL))
        assert exc_info.value.timed_out

    def test_retrieved_but_invalid(self) -> None:
        importer = _importer_serving(_serve('{"hello": "world"}'))

        with pytest.raises(InvalidDocumentError):
            asyncio.run(importer.import_from_url(URL))


# ---------------------------------------------------------------------------
# validate / validate_url
# ---------------------------------------------------------------------------


class TestValidate:
    def test_valid(self, petstore_text: str) -> None:
        result = SwaggerImporter().validate(petstore_text)

        assert result.is_valid
        assert result.api_count == 7

    def test_invalid_never_raises(self) -> None:
        assert not SwaggerImporter().validate("[]").is_valid


class TestValidateUrl:
    def test_accessible(self, petstore_text: str) -> None:
        result = asyncio.run(_importer_serving(_serve(petstore_text)).validate_url(URL))

        assert result.is_accessible
        assert result.status_code == 200
        assert result.content_length == len(petstore_text.encode("utf-8"))
        assert result.error_message is None

    def test_empty_body(self) -> None:
        result = asyncio.run(_importer_serving(_serve("")).validate_url(URL))

        assert not result.is_accessible
        assert result.status_code == 200
        assert result.error_message == "Response body is empty"

    def test_not_json(self) -> None:
        result = asyncio.run(_importer_serving(_serve("<html></html>")).validate_url(URL))

        assert not result.is_accessible
        assert result.error_message == "Response body is not valid JSON"

    def test_not_found(self) -> None:
        result = asyncio.run(_importer_serving(_serve("", status_code=404)).validate_url(URL))

        assert not result.is_accessible
        assert result.status_code == 404
        assert result.error_message == "HTTP 404: Not Found"

    def test_fetcher_exception_reported(self) -> None:
        class _Exploding(DocumentFetcher):
            async def fetch(self, url, headers=None, cancel_event=None):  # noqa: ANN001, ANN202
                raise RuntimeError("kaboom")

        result = asyncio.run(SwaggerImporter(fetcher=_Exploding()).validate_url(URL))

        assert not result.is_accessible
        assert result.error_message == "kaboom"


# ---------------------------------------------------------------------------
# Standalone helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_generate_example_from_schema(self, petstore_raw: dict[str, Any]) -> None:
        text = SwaggerImporter().generate_example_from_schema(
            {"$ref": "#/components/schemas/Category"}, petstore_raw
        )

        assert json.loads(text) == {
            "id": 123,
            "name": "string",
            "parent": {"_circular_reference": "Category"},
        }

    def test_generate_example_from_stored_schema(self, petstore_text: str) -> None:
        importer = SwaggerImporter()
        collection = importer.import_from_json(petstore_text)
        create = collection.folder("Pets").requests[1]

        text = importer.generate_example_from_schema(
            create.request_body_schema, json.loads(petstore_text)
        )

        assert json.loads(text)["name"] == "doggie"

    def test_generate_example_without_document(self) -> None:
        text = SwaggerImporter().generate_example_from_schema({"$ref": "#/definitions/X"})
        assert json.loads(text) == {"error": "Reference not found: #/definitions/X"}

    def test_parse_parameters(self) -> None:
        params = [
            Parameter.model_validate({"name": "X-Key", "in": "header", "type": "string"}),
            Parameter.model_validate({"name": "page", "in": "query", "type": "integer"}),
            Parameter.model_validate({"name": "id", "in": "path", "type": "integer"}),
        ]

        headers, query = SwaggerImporter().parse_parameters(params)

        assert headers == {"X-Key": "example"}
        assert query == {"page": "123"}
