"""Admin console client for the Knowledge Library API.

The console is hidden until the location fragment equals the admin marker,
then locked until the configured password is entered. Once unlocked, the
password is kept in memory only and forwarded as the admin secret header on
every request; leaving the marker fragment forgets it along with all loaded
data.

Example:
    >>> console = AdminConsole(base_url="http://localhost:8000")
    >>> console.navigate("#admin")
    >>> console.unlock("change-me")
    True
    >>> console.create_book("Systems", subtitle="From first principles")
    True
    >>> console.banner.message
    'New book added to your library.'
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

import config
from logging_setup import get_logger

logger = get_logger("library.console")

SUCCESS_BANNER_SECONDS = 2.5


class ConsoleState(str, Enum):
    HIDDEN = "hidden"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass
class Banner:
    tone: str = "idle"  # idle, loading, success or error
    message: str = ""
    shown_at: float = 0.0


class AdminConsole:
    """Client-side state machine driving the admin API."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        password: Optional[str] = None,
        marker: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = 30.0,
    ):
        """Initialize the console.

        Args:
            client: HTTP client to use. Defaults to a new httpx.Client on
                    base_url, closed again by close()
            base_url: API base URL. Defaults to API_BASE_URL env var
            password: Literal the console unlocks with. Defaults to
                      ADMIN_CONSOLE_PASSWORD, then ADMIN_PASSWORD
            marker: Location fragment that reveals the console
            clock: Monotonic time source used to expire success banners
            timeout: Request timeout in seconds for the default client
        """
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url or config.api_base_url(),
            timeout=timeout,
        )
        self._password = password if password is not None else config.admin_console_password()
        self.marker = marker or config.admin_hash()
        self._clock = clock

        self.state = ConsoleState.HIDDEN
        self._secret = ""
        self.overview: Optional[Dict[str, Any]] = None
        self.selected_book_id: Optional[str] = None
        self.selected_chapter_id: Optional[str] = None
        self._banner = Banner()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # -------------------------------------------------------------------------
    # Visibility & authentication
    # -------------------------------------------------------------------------

    def navigate(self, fragment: str) -> None:
        """React to a change of the location fragment."""
        if fragment == self.marker:
            if self.state is ConsoleState.HIDDEN:
                self.state = ConsoleState.LOCKED
            return
        self.state = ConsoleState.HIDDEN
        self._reset()

    def exit(self) -> None:
        self.navigate("")

    def unlock(self, password: str) -> bool:
        """Accept the password if it matches, then load the overview."""
        if self.state is ConsoleState.HIDDEN:
            return False
        if not password:
            self._show("error", "Password is required.")
            return False
        if password != self._password:
            self._show("error", "Invalid password.")
            return False
        self.state = ConsoleState.UNLOCKED
        self._secret = password
        self.load_overview()
        return True

    def _reset(self) -> None:
        self._secret = ""
        self.overview = None
        self.selected_book_id = None
        self.selected_chapter_id = None
        self._banner = Banner()

    # -------------------------------------------------------------------------
    # Status banner
    # -------------------------------------------------------------------------

    @property
    def banner(self) -> Banner:
        """Current banner; success banners clear themselves after 2.5 seconds."""
        if (
            self._banner.tone == "success"
            and self._clock() - self._banner.shown_at >= SUCCESS_BANNER_SECONDS
        ):
            self._banner = Banner()
        return self._banner

    def _show(self, tone: str, message: str) -> None:
        self._banner = Banner(tone=tone, message=message, shown_at=self._clock())

    # -------------------------------------------------------------------------
    # Data & selection
    # -------------------------------------------------------------------------

    @property
    def books(self) -> List[Dict[str, Any]]:
        return self.overview["books"] if self.overview else []

    @property
    def readers(self) -> List[Dict[str, Any]]:
        return self.overview["readers"] if self.overview else []

    @property
    def site_title(self) -> Optional[str]:
        return self.overview["settings"]["siteTitle"] if self.overview else None

    @property
    def selected_book(self) -> Optional[Dict[str, Any]]:
        return next((b for b in self.books if b["id"] == self.selected_book_id), None)

    @property
    def selected_chapter(self) -> Optional[Dict[str, Any]]:
        book = self.selected_book
        if not book:
            return None
        return next((c for c in book["chapters"] if c["id"] == self.selected_chapter_id), None)

    def select_book(self, book_id: str) -> None:
        """Open a book and select its first chapter."""
        self.selected_book_id = book_id
        book = self.selected_book
        chapters = book["chapters"] if book else []
        self.selected_chapter_id = chapters[0]["id"] if chapters else None

    def select_chapter(self, chapter_id: str) -> None:
        self.selected_chapter_id = chapter_id

    def load_overview(self) -> bool:
        """Fetch settings, books and readers and reset the selection."""
        if self.state is not ConsoleState.UNLOCKED:
            return False
        self._show("loading", "Loading admin data...")
        try:
            response = self._client.get("/api/admin/overview", headers=self._headers())
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Loading admin overview failed: %s", exc)
            self._show("error", "Failed to load admin data. Check your connection or password.")
            return False
        self.overview = payload
        self._show("success", "Admin data refreshed")
        books = payload.get("books", [])
        if books:
            self.select_book(books[0]["id"])
        else:
            self.selected_book_id = None
            self.selected_chapter_id = None
        return True

    refresh = load_overview

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def update_site_title(self, title: str) -> bool:
        if not self.overview:
            return False
        title = title.strip()
        if not title:
            self._show("error", "Title is required.")
            return False
        return self._mutate(
            "PUT",
            "/api/admin/site-title",
            {"title": title},
            success="Site title updated successfully.",
            failure="Failed to update site title.",
        )

    def create_book(
        self,
        title: str,
        subtitle: str = "",
        description: str = "",
        accent_color: str = "",
        cover_image: str = "",
    ) -> bool:
        payload = _non_blank(
            title=title,
            subtitle=subtitle,
            description=description,
            accentColor=accent_color,
            coverImage=cover_image,
        )
        if not payload.get("title"):
            self._show("error", "Book title is required.")
            return False
        return self._mutate(
            "POST",
            "/api/admin/books",
            payload,
            success="New book added to your library.",
            failure="Failed to create book. Try again.",
        )

    def create_chapter(self, title: str, synopsis: str = "") -> bool:
        if not self.selected_book_id:
            self._show("error", "Select a book before adding chapters.")
            return False
        payload = _non_blank(title=title, synopsis=synopsis)
        if not payload.get("title"):
            self._show("error", "Chapter title is required.")
            return False
        return self._mutate(
            "POST",
            f"/api/admin/books/{self.selected_book_id}/chapters",
            payload,
            success="Chapter added to the book.",
            failure="Failed to create chapter.",
        )

    def create_topic(self, title: str, content: str) -> bool:
        if not self.selected_book_id or not self.selected_chapter_id:
            self._show("error", "Select a chapter before adding topics.")
            return False
        title, content = title.strip(), content.strip()
        if not title or not content:
            self._show("error", "Topic title and content are both required.")
            return False
        return self._mutate(
            "POST",
            f"/api/admin/books/{self.selected_book_id}/chapters/{self.selected_chapter_id}/topics",
            {"title": title, "content": content},
            success="Topic added into chapter.",
            failure="Failed to create topic.",
        )

    def _headers(self) -> Dict[str, str]:
        return {config.admin_header_name(): self._secret}

    def _mutate(self, method: str, path: str, payload: Dict[str, str], success: str, failure: str) -> bool:
        if self.state is not ConsoleState.UNLOCKED:
            self._show("error", "Unlock the console first.")
            return False
        try:
            response = self._client.request(method, path, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            self._show("error", failure)
            return False
        if not self.load_overview():
            return False
        self._show("success", success)
        return True


def _non_blank(**fields: str) -> Dict[str, str]:
    stripped = {k: (v or "").strip() for k, v in fields.items()}
    return {k: v for k, v in stripped.items() if v}
