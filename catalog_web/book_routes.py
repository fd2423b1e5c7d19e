"""Book catalog and personal library routes"""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from catalog.pipeline import chains

from .auth_middleware import read_json, run_pipeline

router = APIRouter(prefix="/books", tags=["books"])


@router.get("")
async def list_books(request: Request):
    return await run_pipeline(request, chains.LIST_BOOKS)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_books(request: Request):
    """Add books to the catalog: a JSON list, or {"books": [...]}."""
    body = await read_json(request)
    if isinstance(body, list):
        body = {"books": body}
    return await run_pipeline(request, chains.CREATE_BOOKS, body)


@router.post("/add")
async def add_to_library(request: Request):
    """Add a catalog book, by {"title"}, to the caller's library."""
    return await run_pipeline(request, chains.ADD_BOOK)


@router.delete("/remove")
async def remove_from_library(request: Request):
    return await run_pipeline(request, chains.REMOVE_BOOK)
