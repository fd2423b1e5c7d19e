"""Terminal handlers for the book catalog and personal libraries"""

from __future__ import annotations

from fastapi.concurrency import run_in_threadpool

from catalog.core.context import RequestContext, Services
from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.core.logger import get_logger
from catalog.models import BookRecord
from catalog.pipeline.executor import PipelineResponse

logger = get_logger(__name__)

BOOK_FIELDS = ("title", "author", "genre")


async def _book_by_title(services: Services, title: str) -> BookRecord:
    book = await run_in_threadpool(services.books.find_by_title, title)
    if book is None:
        raise NotFoundError(f"Book with title {title} not found.")
    return book


async def list_books(ctx: RequestContext, services: Services) -> PipelineResponse:
    books = await run_in_threadpool(services.books.find_all)
    return PipelineResponse(200, [b.public() for b in books])


async def create_books(ctx: RequestContext, services: Services) -> PipelineResponse:
    items = ctx.body.get("books")
    if not isinstance(items, list) or not items:
        raise ValidationError("books must be a non-empty list")

    cleaned = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"books[{i}] must be an object")
        book = {}
        for field in BOOK_FIELDS:
            value = item.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"books[{i}].{field} is required")
            book[field] = value.strip()
        cleaned.append(book)

    created = await run_in_threadpool(services.books.create_many, cleaned)
    return PipelineResponse(
        201, {"message": "Books added successfully.", "books": [b.public() for b in created]}
    )


async def add_to_library(ctx: RequestContext, services: Services) -> PipelineResponse:
    book = await _book_by_title(services, ctx.fields["title"])
    added = await run_in_threadpool(services.books.add_to_library, ctx.user.id, book.id)
    if not added:
        return PipelineResponse(200, {"message": "Book is already in user's library."})
    logger.info("Book added to library", user_id=ctx.user.id, book_id=book.id)
    return PipelineResponse(200, {"message": "Book added to user's library successfully."})


async def remove_from_library(ctx: RequestContext, services: Services) -> PipelineResponse:
    book = await _book_by_title(services, ctx.fields["title"])
    removed = await run_in_threadpool(services.books.remove_from_library, ctx.user.id, book.id)
    if not removed:
        raise NotFoundError(f"Book with title {book.title} is not in user's library.")
    logger.info("Book removed from library", user_id=ctx.user.id, book_id=book.id)
    return PipelineResponse(200, {"message": "Book removed from user's library successfully."})
