"""MongoDB persistence for books, readers and site settings.

Chapters live inside their book document and topics inside their chapter, so
deleting a book or chapter removes its whole subtree in one write. Nested
edits read the book, change the chapter list in Python and write the list
back; concurrent edits of the same book are last-write-wins.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import config
from errors import StorageError
from schemas import Book, Chapter, Document, Reader, SiteSettings, Topic, utcnow

BOOKS = "books"
READERS = "readers"
SITE_SETTINGS = "site_settings"
SITE_SETTINGS_ID = "site"

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(url: Optional[str] = None, name: Optional[str] = None) -> Optional[Database]:
    global client, db
    url = url or config.database_url()
    if not url:
        return None
    client = MongoClient(url)
    db = client[name or config.database_name()]
    return db


connect()


# -------------------- Helpers --------------------

def _collection(name: str):
    if db is None:
        raise StorageError("Database is not configured; set DATABASE_URL")
    return db[name]


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize(doc: Any) -> Any:
    """Turn ``_id`` into ``id`` and ObjectIds into strings, recursively."""
    if isinstance(doc, list):
        return [serialize(item) for item in doc]
    if not isinstance(doc, dict):
        return str(doc) if isinstance(doc, ObjectId) else doc
    out = {**doc}
    if "_id" in out:
        out["id"] = out.pop("_id")
    return {k: serialize(v) for k, v in out.items()}


def _changes(**fields: Optional[str]) -> Dict[str, str]:
    # None means "leave unchanged"; empty strings are real values.
    return {k: v for k, v in fields.items() if v is not None}


def _with_id(document: Document) -> Dict[str, Any]:
    return {"_id": ObjectId(), **document.to_document()}


def _find_by_id(items: List[Dict[str, Any]], item_id: str) -> Optional[Dict[str, Any]]:
    for item in items:
        if str(item.get("_id")) == item_id:
            return item
    return None


def create_document(collection_name: str, data: Document) -> str:
    result = _collection(collection_name).insert_one(data.to_document())
    return str(result.inserted_id)


def get_documents(collection_name: str, sort: list) -> List[Dict[str, Any]]:
    cursor = _collection(collection_name).find({}).sort(sort)
    return [serialize(d) for d in cursor]


def _modify_chapters(
    book_id: str,
    mutate: Callable[[List[Dict[str, Any]]], Any],
    missing_ok: bool = True,
) -> Any:
    """Apply ``mutate`` to a book's chapter list and store the result.

    A missing book is silently ignored unless ``missing_ok`` is false, in
    which case StorageError is raised.
    """
    books = _collection(BOOKS)
    oid = _object_id(book_id)
    doc = books.find_one({"_id": oid}) if oid is not None else None
    if doc is None:
        if missing_ok:
            return None
        raise StorageError(f"Book {book_id} does not exist")
    chapters = doc.get("chapters", [])
    result = mutate(chapters)
    if result is not False:
        books.update_one({"_id": oid}, {"$set": {"chapters": chapters, "updatedAt": utcnow()}})
    return result


# -------------------- Accessors --------------------

def get_books() -> List[Dict[str, Any]]:
    return get_documents(BOOKS, sort=[("_id", ASCENDING)])


def get_book_by_id(book_id: str) -> Optional[Dict[str, Any]]:
    oid = _object_id(book_id)
    if oid is None:
        return None
    doc = _collection(BOOKS).find_one({"_id": oid})
    return serialize(doc) if doc else None


def get_readers() -> List[Dict[str, Any]]:
    return get_documents(READERS, sort=[("createdAt", DESCENDING)])


def get_site_settings() -> Dict[str, Any]:
    doc = _collection(SITE_SETTINGS).find_one({"_id": SITE_SETTINGS_ID})
    title = doc.get("siteTitle") if doc else None
    return SiteSettings(site_title=title or config.default_site_title()).to_document()


def list_collections() -> List[str]:
    if db is None:
        raise StorageError("Database is not configured; set DATABASE_URL")
    return db.list_collection_names()


# -------------------- Books --------------------

def create_book(
    title: str,
    subtitle: Optional[str] = None,
    description: Optional[str] = None,
    accent_color: Optional[str] = None,
    cover_image: Optional[str] = None,
) -> str:
    book = Book(
        title=title,
        subtitle=subtitle,
        description=description,
        accent_color=accent_color,
        cover_image=cover_image,
    )
    return create_document(BOOKS, book)


def update_book(
    book_id: str,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    description: Optional[str] = None,
    accent_color: Optional[str] = None,
    cover_image: Optional[str] = None,
) -> None:
    oid = _object_id(book_id)
    if oid is None:
        return
    changes = _changes(
        title=title,
        subtitle=subtitle,
        description=description,
        accentColor=accent_color,
        coverImage=cover_image,
    )
    _collection(BOOKS).update_one({"_id": oid}, {"$set": {**changes, "updatedAt": utcnow()}})


def delete_book(book_id: str) -> None:
    oid = _object_id(book_id)
    if oid is None:
        return
    _collection(BOOKS).delete_one({"_id": oid})


# -------------------- Chapters --------------------

def create_chapter(book_id: str, title: str, synopsis: Optional[str] = None) -> str:
    chapter = _with_id(Chapter(title=title, synopsis=synopsis))
    _modify_chapters(book_id, lambda chapters: chapters.append(chapter), missing_ok=False)
    return str(chapter["_id"])


def update_chapter(
    book_id: str,
    chapter_id: str,
    title: Optional[str] = None,
    synopsis: Optional[str] = None,
) -> None:
    changes = _changes(title=title, synopsis=synopsis)

    def apply(chapters):
        chapter = _find_by_id(chapters, chapter_id)
        if chapter is None:
            return False
        chapter.update(changes)
        return True

    _modify_chapters(book_id, apply)


def delete_chapter(book_id: str, chapter_id: str) -> None:
    def apply(chapters):
        chapter = _find_by_id(chapters, chapter_id)
        if chapter is None:
            return False
        chapters.remove(chapter)
        return True

    _modify_chapters(book_id, apply)


# -------------------- Topics --------------------

def create_topic(book_id: str, chapter_id: str, title: str, content: str) -> str:
    topic = _with_id(Topic(title=title, content=content))

    def apply(chapters):
        chapter = _find_by_id(chapters, chapter_id)
        if chapter is None:
            raise StorageError(f"Chapter {chapter_id} does not exist in book {book_id}")
        chapter.setdefault("topics", []).append(topic)
        return True

    _modify_chapters(book_id, apply, missing_ok=False)
    return str(topic["_id"])


def update_topic(
    book_id: str,
    chapter_id: str,
    topic_id: str,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> None:
    changes = _changes(title=title, content=content)

    def apply(chapters):
        chapter = _find_by_id(chapters, chapter_id)
        topic = _find_by_id(chapter.get("topics", []), topic_id) if chapter else None
        if topic is None:
            return False
        topic.update(changes)
        return True

    _modify_chapters(book_id, apply)


def delete_topic(book_id: str, chapter_id: str, topic_id: str) -> None:
    def apply(chapters):
        chapter = _find_by_id(chapters, chapter_id)
        topics = chapter.get("topics", []) if chapter else []
        topic = _find_by_id(topics, topic_id)
        if topic is None:
            return False
        topics.remove(topic)
        return True

    _modify_chapters(book_id, apply)


# -------------------- Readers & settings --------------------

def register_reader(name: str) -> str:
    return create_document(READERS, Reader(name=name))


def update_site_title(title: str) -> None:
    _collection(SITE_SETTINGS).update_one(
        {"_id": SITE_SETTINGS_ID},
        {"$set": {"siteTitle": title}},
        upsert=True,
    )
