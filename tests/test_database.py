"""Tests for the MongoDB persistence functions."""

from __future__ import annotations

from datetime import datetime

import pytest
from bson import ObjectId

import database
from errors import StorageError


def _book_with_topic():
    book_id = database.create_book("Systems")
    chapter_id = database.create_chapter(book_id, "Processes", synopsis="How work runs")
    topic_id = database.create_topic(book_id, chapter_id, "Scheduling", "Round robin and friends")
    return book_id, chapter_id, topic_id


class TestBooks:
    def test_create_book_starts_empty(self, mongo_db):
        book_id = database.create_book("Systems")

        book = database.get_book_by_id(book_id)

        assert book["id"] == book_id
        assert book["title"] == "Systems"
        assert book["chapters"] == []
        assert isinstance(book["updatedAt"], datetime)
        assert "subtitle" not in book

    def test_optional_fields_use_camel_case(self, mongo_db):
        book_id = database.create_book("Systems", accent_color="#ff0000", cover_image="/c.png")

        stored = mongo_db.books.find_one({"_id": ObjectId(book_id)})

        assert stored["accentColor"] == "#ff0000"
        assert stored["coverImage"] == "/c.png"

    def test_get_book_by_id_handles_unknown_and_malformed_ids(self, mongo_db):
        assert database.get_book_by_id(str(ObjectId())) is None
        assert database.get_book_by_id("not-an-id") is None

    def test_get_books_keeps_insertion_order(self, mongo_db):
        for title in ("A", "B", "C"):
            database.create_book(title)

        assert [b["title"] for b in database.get_books()] == ["A", "B", "C"]

    def test_update_book_only_touches_given_fields(self, mongo_db):
        book_id = database.create_book("Systems", subtitle="Old", description="Kept")

        database.update_book(book_id, subtitle="New")
        book = database.get_book_by_id(book_id)

        assert book["title"] == "Systems"
        assert book["subtitle"] == "New"
        assert book["description"] == "Kept"

    def test_update_book_accepts_empty_string(self, mongo_db):
        book_id = database.create_book("Systems", subtitle="Old")

        database.update_book(book_id, subtitle="")

        assert database.get_book_by_id(book_id)["subtitle"] == ""

    def test_delete_book_removes_subtree(self, mongo_db):
        book_id, _, _ = _book_with_topic()

        database.delete_book(book_id)

        assert database.get_book_by_id(book_id) is None
        assert mongo_db.books.count_documents({}) == 0

    def test_delete_missing_book_is_a_no_op(self, mongo_db):
        database.delete_book(str(ObjectId()))
        database.delete_book("garbage")


class TestChapters:
    def test_chapters_keep_insertion_order(self, mongo_db):
        book_id = database.create_book("Systems")
        for title in ("One", "Two", "Three"):
            database.create_chapter(book_id, title)

        chapters = database.get_book_by_id(book_id)["chapters"]

        assert [c["title"] for c in chapters] == ["One", "Two", "Three"]
        assert len({c["id"] for c in chapters}) == 3

    def test_create_chapter_requires_book(self, mongo_db):
        with pytest.raises(StorageError):
            database.create_chapter(str(ObjectId()), "Orphan")

    def test_update_chapter_partial(self, mongo_db):
        book_id, chapter_id, _ = _book_with_topic()

        database.update_chapter(book_id, chapter_id, title="Threads")
        chapter = database.get_book_by_id(book_id)["chapters"][0]

        assert chapter["title"] == "Threads"
        assert chapter["synopsis"] == "How work runs"
        assert len(chapter["topics"]) == 1

    def test_delete_chapter_removes_topics(self, mongo_db):
        book_id, chapter_id, _ = _book_with_topic()
        other_id = database.create_chapter(book_id, "Memory")

        database.delete_chapter(book_id, chapter_id)
        chapters = database.get_book_by_id(book_id)["chapters"]

        assert [c["id"] for c in chapters] == [other_id]

    def test_update_unknown_chapter_changes_nothing(self, mongo_db):
        book_id, _, _ = _book_with_topic()
        before = database.get_book_by_id(book_id)

        database.update_chapter(book_id, str(ObjectId()), title="Nope")

        assert database.get_book_by_id(book_id) == before


class TestTopics:
    def test_create_topic_requires_chapter(self, mongo_db):
        book_id = database.create_book("Systems")

        with pytest.raises(StorageError):
            database.create_topic(book_id, str(ObjectId()), "Lost", "Nowhere")

    def test_update_topic_partial(self, mongo_db):
        book_id, chapter_id, topic_id = _book_with_topic()

        database.update_topic(book_id, chapter_id, topic_id, content="Priority queues")
        topic = database.get_book_by_id(book_id)["chapters"][0]["topics"][0]

        assert topic == {"id": topic_id, "title": "Scheduling", "content": "Priority queues"}

    def test_delete_topic(self, mongo_db):
        book_id, chapter_id, topic_id = _book_with_topic()

        database.delete_topic(book_id, chapter_id, topic_id)
        database.delete_topic(book_id, chapter_id, topic_id)

        assert database.get_book_by_id(book_id)["chapters"][0]["topics"] == []


class TestReadersAndSettings:
    def test_register_reader_returns_fresh_ids(self, mongo_db):
        first = database.register_reader("Ada")
        second = database.register_reader("Ada")

        assert first != second
        assert mongo_db.readers.count_documents({"name": "Ada"}) == 2

    def test_readers_newest_first(self, mongo_db):
        mongo_db.readers.insert_one({"name": "Old", "createdAt": datetime(2024, 1, 1)})
        mongo_db.readers.insert_one({"name": "New", "createdAt": datetime(2025, 1, 1)})

        assert [r["name"] for r in database.get_readers()] == ["New", "Old"]

    def test_site_settings_default_title(self, mongo_db, monkeypatch):
        monkeypatch.setenv("DEFAULT_SITE_TITLE", "Reading Room")

        assert database.get_site_settings() == {"siteTitle": "Reading Room"}

    def test_update_site_title_is_a_singleton(self, mongo_db):
        database.update_site_title("First")
        database.update_site_title("Second")

        assert database.get_site_settings() == {"siteTitle": "Second"}
        assert mongo_db.site_settings.count_documents({}) == 1


def test_serialize_converts_nested_ids():
    topic_id, chapter_id = ObjectId(), ObjectId()
    doc = {"_id": ObjectId(), "chapters": [{"_id": chapter_id, "topics": [{"_id": topic_id}]}]}

    out = database.serialize(doc)

    assert out["chapters"][0]["id"] == str(chapter_id)
    assert out["chapters"][0]["topics"][0] == {"id": str(topic_id)}


def test_unconfigured_database_raises(monkeypatch):
    monkeypatch.setattr(database, "db", None)

    with pytest.raises(StorageError):
        database.get_books()
