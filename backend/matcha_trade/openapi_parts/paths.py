"""Path and schema fragment builders with deterministic structure."""
import re
from typing import Any, Dict, List
from sqlalchemy import Boolean, DateTime, Integer, JSON, Numeric

from .constants import SORT_PARAM_MAP

STRING_PARAMS = ("key", "entity_type", "dataset")


def caching_headers() -> Dict[str, Any]:
    return {
        "ETag": {"schema": {"type": "string"}},
        "Last-Modified": {"schema": {"type": "string"}},
        "X-Last-Modified-ISO": {"schema": {"type": "string"}},
    }


def _column_schema(col) -> Dict[str, Any]:
    if isinstance(col.type, Boolean):
        out = {"type": "boolean"}
    elif isinstance(col.type, Integer):
        out = {"type": "integer"}
    elif isinstance(col.type, Numeric):
        out = {"type": "number"}
    elif isinstance(col.type, DateTime):
        out = {"type": "string", "format": "date-time"}
    elif isinstance(col.type, JSON):
        out = {"type": "object"}
    else:
        out = {"type": "string"}
    if col.nullable and not col.primary_key:
        out["nullable"] = True
    return out


def schema_from_model(model) -> Dict[str, Any]:
    """Object schema from the mapped table; secrets never appear in payloads."""
    props = {
        c.name: _column_schema(c)
        for c in model.__table__.columns
        if c.name != "password_hash"
    }
    required = [c.name for c in model.__table__.columns if c.primary_key]
    return {"type": "object", "properties": props, "required": required}


def path_params(path: str) -> List[Dict[str, Any]]:
    return [
        {
            "name": name,
            "in": "path",
            "required": True,
            "schema": {"type": "string" if name in STRING_PARAMS else "integer"},
        }
        for name in re.findall(r"{(\w+)}", path)
    ]


def build_entity_paths(schema_name: str, list_path: str, single_path, permission: str) -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    list_params = [
        {"$ref": "#/components/parameters/LimitParam"},
        {"$ref": "#/components/parameters/OffsetParam"},
    ]
    if schema_name in SORT_PARAM_MAP:
        list_params.append({"$ref": f"#/components/parameters/{SORT_PARAM_MAP[schema_name]}"})
    paths[list_path] = {
        "get": {
            "summary": f"List {schema_name} records",
            "parameters": list_params,
            "responses": {
                "200": {
                    "description": "OK",
                    "headers": caching_headers(),
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {
                                    "data": {"type": "array", "items": {"$ref": f"#/components/schemas/{schema_name}"}},
                                    "pagination": {"$ref": "#/components/schemas/Pagination"},
                                },
                            }
                        }
                    },
                },
                "304": {"description": "Not Modified"},
                "400": {"$ref": "#/components/responses/BadRequest"},
            },
            "x-required-permissions": [permission],
        },
        "head": {
            "summary": f"{schema_name} list validators",
            "responses": {
                "200": {"description": "Headers only", "headers": caching_headers()},
                "304": {"description": "Not Modified"},
            },
            "x-required-permissions": [permission],
        },
    }
    if single_path:
        params = path_params(single_path)
        paths[single_path] = {
            "get": {
                "summary": f"Get {schema_name}",
                "parameters": params,
                "responses": {
                    "200": {
                        "description": "OK",
                        "headers": caching_headers(),
                        "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{schema_name}"}}},
                    },
                    "304": {"description": "Not Modified"},
                    "404": {"$ref": "#/components/responses/NotFound"},
                },
                "x-required-permissions": [permission],
            },
            "head": {
                "summary": f"{schema_name} validators",
                "parameters": params,
                "responses": {
                    "200": {"description": "Headers only", "headers": caching_headers()},
                    "304": {"description": "Not Modified"},
                    "404": {"$ref": "#/components/responses/NotFound"},
                },
                "x-required-permissions": [permission],
            },
        }
    return paths


def build_mutation(path: str, method: str, summary: str, permission: str) -> Dict[str, Any]:
    op: Dict[str, Any] = {
        "summary": summary,
        "parameters": path_params(path),
        "responses": {
            "200": {"description": "OK"},
            "400": {"$ref": "#/components/responses/BadRequest"},
            "403": {"$ref": "#/components/responses/Forbidden"},
            "423": {"$ref": "#/components/responses/Locked"},
        },
        "x-required-permissions": [permission],
    }
    if method == "post":
        op["responses"]["201"] = {"description": "Created"}
    if method in ("post", "put"):
        op["requestBody"] = {"content": {"application/json": {"schema": {"type": "object"}}}}
    if "{" in path:
        op["responses"]["404"] = {"$ref": "#/components/responses/NotFound"}
    return op


__all__ = ["caching_headers", "schema_from_model", "path_params", "build_entity_paths", "build_mutation"]
