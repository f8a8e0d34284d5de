"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- Bearer (JWT) security scheme applied globally, with the health check exempt
- One document per API version at ``/openapi/v{n}.json``

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

BEARER_SCHEME_NAME = "BearerAuth"

TAGS_METADATA = [
    {
        "name": "Todo Items",
        "description": "CRUD over the caller's todo items (versioned: /api/v1, /api/v2).",
    },
    {
        "name": "Users",
        "description": "The caller's directory record and personalised rate-limit profile.",
    },
    {
        "name": "Health",
        "description": "Database connectivity check.",
    },
]


def _customize_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    components = schema.setdefault("components", {})
    security_schemes = components.setdefault("securitySchemes", {})
    security_schemes.setdefault(
        BEARER_SCHEME_NAME,
        {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": 'JWT Authorization header using the Bearer scheme. '
            'Example: "Authorization: Bearer {token}"',
        },
    )

    schema.setdefault("security", [{BEARER_SCHEME_NAME: []}])

    tags = schema.setdefault("tags", [])
    existing_tag_names = {t.get("name") for t in tags}
    for tag in TAGS_METADATA:
        if tag["name"] not in existing_tag_names:
            tags.append(tag)

    for path, methods in schema.get("paths", {}).items():
        for method_obj in methods.values():
            if not isinstance(method_obj, dict):
                continue
            if path.endswith("/health"):
                method_obj["security"] = []
            method_obj.setdefault("responses", {}).setdefault(
                "429", {"description": "Too Many Requests"}
            )
    return schema


def _routes_for_version(app: FastAPI, version: int) -> list:
    """Routes of one API version plus the unversioned ones (health)."""
    prefix = f"/api/v{version}/"
    selected = []
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        if route.path.startswith(prefix) or not route.path.startswith("/api/"):
            selected.append(route)
    return selected


def apply_openapi_customizations(app: FastAPI, versions: Iterable[int] = ()) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and bearer security.

    - Injects components.securitySchemes for JWT bearer auth
    - Marks all operations as requiring a bearer token by default, then exempts
      the health endpoint by setting ``security: []``
    - Documents the 429 response on every rate-limited operation
    - Serves ``/openapi/v{n}.json`` for each version, titled "<title> - v{n}"
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        app.openapi_schema = _customize_schema(original_openapi())
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[assignment]

    version_schemas: Dict[int, Dict[str, Any]] = {}

    def version_openapi(version: int) -> Dict[str, Any]:
        if version not in version_schemas:
            schema = get_openapi(
                title=f"{app.title} - v{version}",
                version=f"{version}.0",
                description=app.description,
                license_info=app.license_info,
                routes=_routes_for_version(app, version),
            )
            version_schemas[version] = _customize_schema(schema)
        return version_schemas[version]

    def version_endpoint(version: int):
        async def endpoint() -> JSONResponse:
            return JSONResponse(version_openapi(version))

        return endpoint

    for version in versions:
        app.add_api_route(
            f"/openapi/v{version}.json",
            version_endpoint(version),
            methods=["GET"],
            include_in_schema=False,
        )
