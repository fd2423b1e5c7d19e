"""
Glue between FastAPI requests and catalog pipelines.

run_pipeline() builds a fresh RequestContext from the request, executes
the pipeline against the app's Services and serializes the result. The
context never touches ``request.state``, so nothing leaks between requests.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from catalog.core.context import RequestContext, Services
from catalog.core.exceptions import ValidationError
from catalog.pipeline.executor import Pipeline, PipelineResponse


def extract_token(request: Request) -> Optional[str]:
    """Token from ``Authorization: Bearer <token>``; anything else is passed through as-is."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    if auth_header[:7].lower() == "bearer ":
        return auth_header[7:].strip()
    return auth_header.strip()


async def read_json(request: Request) -> Any:
    """Parsed JSON body, or None for an empty body."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be valid JSON") from e


async def build_context(request: Request, body: Any = None) -> RequestContext:
    if body is None:
        body = await read_json(request)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return RequestContext(
        path_params=dict(request.path_params),
        query=dict(request.query_params),
        body=body,
        token=extract_token(request),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def to_response(result: PipelineResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body, headers=result.headers)


async def run_pipeline(request: Request, pipeline: Pipeline, body: Any = None) -> JSONResponse:
    ctx = await build_context(request, body)
    result = await pipeline.execute(ctx, get_services(request))
    return to_response(result)
