"""Server-rendered reader pages: the library, single books and the name gate."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

import config
import database
from http_errors import storage_call
from logging_setup import get_logger

logger = get_logger("library.pages")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
READER_NAME_COOKIE = "readerName"
READER_ID_COOKIE = "readerId"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
router = APIRouter(default_response_class=HTMLResponse)

def topic_count(book: Dict[str, Any]) -> int:
    return sum(len(chapter.get("topics", [])) for chapter in book.get("chapters", []))

def format_timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return str(value or "")

templates.env.filters["topic_count"] = topic_count
templates.env.filters["timestamp"] = format_timestamp

def set_reader_cookies(response, reader_id: str, name: str) -> None:
    """Remember the reader in this browser for ten years."""
    for key, value in ((READER_NAME_COOKIE, name), (READER_ID_COOKIE, reader_id)):
        response.set_cookie(
            key,
            value,
            max_age=config.READER_COOKIE_MAX_AGE,
            path="/",
            samesite="lax",
        )


def error_page(request: Request, message: str, status_code: int):
    return templates.TemplateResponse(
        request, "error.html", {"message": message}, status_code=status_code
    )

def _render_library(request: Request, error: str | None = None, status_code: int = 200):
    reader_name = request.cookies.get(READER_NAME_COOKIE)
    reader_id = request.cookies.get(READER_ID_COOKIE)
    with storage_call("Failed to load the library"):
        settings = database.get_site_settings()
        books = database.get_books()
    context = {
        "settings": settings,
        "books": books,
        "reader_name": reader_name,
        "registered": bool(reader_name and reader_id),
        "error": error,
    }
    return templates.TemplateResponse(request, "library.html", context, status_code=status_code)

@router.get("/")
def library(request: Request):
    return _render_library(request)

@router.post("/register")
def register(request: Request, name: str = Form("")):
    name = name.strip()
    if not name:
        return _render_library(request, error="Please introduce yourself before entering.", status_code=400)
    with storage_call("Failed to register reader"):
        reader_id = database.register_reader(name)
    logger.info("Registered reader %s from the library gate", reader_id)
    response = RedirectResponse("/", status_code=303)
    set_reader_cookies(response, reader_id, name)
    return response

@router.get("/books/{book_id}")
def book_page(request: Request, book_id: str):
    with storage_call("Failed to load book"):
        book = database.get_book_by_id(book_id)
        settings = database.get_site_settings() if book else None
    if not book:
        return templates.TemplateResponse(request, "book_not_found.html", {}, status_code=404)
    return templates.TemplateResponse(request, "book.html", {"settings": settings, "book": book})
