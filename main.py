import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
import pages
from admin import assert_admin_from_headers, require_admin
from errors import AdminAuthError
from http_errors import storage_call
from logging_setup import get_logger

logger = get_logger("library.api")

app = FastAPI(title="Knowledge Library API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------- Errors --------------------

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if not request.url.path.startswith("/api"):
        return pages.error_page(request, exc.detail, exc.status_code)
    return JSONResponse(
        {"message": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # The body is parsed before router dependencies run, so the admin
    # guard has to be checked again here.
    if request.url.path.startswith("/api/admin"):
        try:
            assert_admin_from_headers(request.headers)
        except AdminAuthError:
            return JSONResponse({"message": "Unauthorized"}, status_code=401)
    logger.info("Rejected request body for %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse({"message": "Invalid request body"}, status_code=400)


def require_text(value: str, message: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=message)
    return value

# -------------------- Schemas (Requests) --------------------

class RequestBody(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def non_text_is_absent(cls, value, info: ValidationInfo):
        if isinstance(value, str):
            return value
        return cls.model_fields[info.field_name].default


class BookCreate(RequestBody):
    title: str = ""
    subtitle: Optional[str] = None
    description: Optional[str] = None
    accent_color: Optional[str] = None
    cover_image: Optional[str] = None


class BookUpdate(RequestBody):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    accent_color: Optional[str] = None
    cover_image: Optional[str] = None


class ChapterCreate(RequestBody):
    title: str = ""
    synopsis: Optional[str] = None


class ChapterUpdate(RequestBody):
    title: Optional[str] = None
    synopsis: Optional[str] = None


class TopicCreate(RequestBody):
    title: str = ""
    content: str = ""


class TopicUpdate(RequestBody):
    title: Optional[str] = None
    content: Optional[str] = None


class SiteTitleUpdate(RequestBody):
    title: str = ""


class ReaderCreate(RequestBody):
    name: str = ""

# -------------------- Health --------------------

@app.get("/api/health")
def health():
    response = {
        "backend": "running",
        "database": "not configured",
        "database_name": None,
        "collections": [],
    }
    if database.db is None:
        return response
    response["database_name"] = database.db.name
    try:
        response["collections"] = database.list_collections()[:10]
        response["database"] = "connected"
    except Exception as e:
        logger.warning("Database health probe failed: %s", e)
        response["database"] = "error"
    return response

# -------------------- Readers (public) --------------------

@app.post("/api/users", status_code=201)
def register_reader(reader: ReaderCreate):
    name = require_text(reader.name, "Name is required")
    with storage_call("Failed to register reader"):
        reader_id = database.register_reader(name)
    logger.info("Registered reader %s", reader_id)
    return {"readerId": reader_id, "name": name}

# -------------------- Admin --------------------

admin = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])


@admin.get("/overview")
async def get_overview():
    with storage_call("Failed to load admin data"):
        settings, books, readers = await asyncio.gather(
            run_in_threadpool(database.get_site_settings),
            run_in_threadpool(database.get_books),
            run_in_threadpool(database.get_readers),
        )
    return {"settings": settings, "books": books, "readers": readers}


@admin.put("/site-title")
def update_site_title(body: SiteTitleUpdate):
    title = require_text(body.title, "Title is required")
    with storage_call("Failed to update site title"):
        database.update_site_title(title)
    return {"message": "Site title updated"}

# Books

@admin.get("/books")
def list_books():
    with storage_call("Failed to fetch books"):
        books = database.get_books()
    return {"books": books}


@admin.post("/books", status_code=201)
def create_book(book: BookCreate):
    title = require_text(book.title, "Title is required")
    with storage_call("Failed to create book"):
        book_id = database.create_book(
            title=title,
            subtitle=book.subtitle,
            description=book.description,
            accent_color=book.accent_color,
            cover_image=book.cover_image,
        )
    return {"message": "Book created", "id": book_id}


@admin.get("/books/{book_id}")
def get_book(book_id: str):
    with storage_call("Failed to fetch book"):
        book = database.get_book_by_id(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return {"book": book}


@admin.put("/books/{book_id}")
def update_book(book_id: str, book: BookUpdate):
    with storage_call("Failed to update book"):
        database.update_book(book_id, **book.model_dump(exclude_none=True))
    return {"message": "Book updated"}


@admin.delete("/books/{book_id}")
def delete_book(book_id: str):
    with storage_call("Failed to delete book"):
        database.delete_book(book_id)
    return {"message": "Book deleted"}

# Chapters

@admin.post("/books/{book_id}/chapters", status_code=201)
def create_chapter(book_id: str, chapter: ChapterCreate):
    title = require_text(chapter.title, "Chapter title is required")
    with storage_call("Failed to create chapter"):
        chapter_id = database.create_chapter(book_id, title=title, synopsis=chapter.synopsis)
    return {"message": "Chapter created", "id": chapter_id}


@admin.put("/books/{book_id}/chapters/{chapter_id}")
def update_chapter(book_id: str, chapter_id: str, chapter: ChapterUpdate):
    with storage_call("Failed to update chapter"):
        database.update_chapter(book_id, chapter_id, **chapter.model_dump(exclude_none=True))
    return {"message": "Chapter updated"}


@admin.delete("/books/{book_id}/chapters/{chapter_id}")
def delete_chapter(book_id: str, chapter_id: str):
    with storage_call("Failed to delete chapter"):
        database.delete_chapter(book_id, chapter_id)
    return {"message": "Chapter deleted"}

# Topics

@admin.post("/books/{book_id}/chapters/{chapter_id}/topics", status_code=201)
def create_topic(book_id: str, chapter_id: str, topic: TopicCreate):
    if not topic.title or not topic.content:
        raise HTTPException(status_code=400, detail="Topic title and content are required")
    with storage_call("Failed to create topic"):
        topic_id = database.create_topic(book_id, chapter_id, title=topic.title, content=topic.content)
    return {"message": "Topic created", "id": topic_id}


@admin.put("/books/{book_id}/chapters/{chapter_id}/topics/{topic_id}")
def update_topic(book_id: str, chapter_id: str, topic_id: str, topic: TopicUpdate):
    with storage_call("Failed to update topic"):
        database.update_topic(book_id, chapter_id, topic_id, **topic.model_dump(exclude_none=True))
    return {"message": "Topic updated"}


@admin.delete("/books/{book_id}/chapters/{chapter_id}/topics/{topic_id}")
def delete_topic(book_id: str, chapter_id: str, topic_id: str):
    with storage_call("Failed to delete topic"):
        database.delete_topic(book_id, chapter_id, topic_id)
    return {"message": "Topic deleted"}


app.include_router(admin)
app.include_router(pages.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.port())
