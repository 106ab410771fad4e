"""
Page Archiver

Fetches a snapshot of a bookmarked page through a CORS proxy, checks that the
response looks like real page content rather than an error page or bot wall,
and records the result on the bookmark.

The validation gate runs in a fixed order and the first failing check wins:
proxy status, proxy outage, block markers, minimum length.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Set, Tuple
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from ..utils.error_handler import ArchiveError, ArchiveFailureReason, RetryStrategy
from .data_models import Bookmark
from .entity_store import BOOKMARKS, StoreOperation, UserStore, execute_operations
from .notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "https://api.allorigins.win/raw"
PROXY_DOWN_MARKER = "AllOrigins is down"
MIN_ARCHIVE_LENGTH = 1000

# Characters left unescaped in a URI component
URI_COMPONENT_SAFE = "-_.!~*'()"

BLOCKED_TITLE_PATTERN = re.compile(
    r"403 Forbidden|Access Denied|Just a moment|Login|Sign in|Attention Required",
    re.IGNORECASE,
)
BLOCKED_BODY_PATTERN = re.compile(r"Cloudflare|checking your browser|hCaptcha", re.IGNORECASE)

PROXY_DOWN_MESSAGE = "The archiving proxy service may be down."
BLOCKED_MESSAGE = "Page is protected by a login, CAPTCHA, or other block."
INCOMPLETE_MESSAGE = "Archived content was incomplete, which may indicate a block."


class ArchiveState(str, Enum):
    IDLE = "idle"
    ARCHIVING = "archiving"
    ARCHIVED = "archived"
    FAILED = "failed"


@dataclass
class ArchiveOutcome:
    """Result of one archival attempt."""

    bookmark_id: str
    state: ArchiveState
    reason: Optional[ArchiveFailureReason] = None
    message: Optional[str] = None
    content_length: int = 0
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.state == ArchiveState.ARCHIVED


def build_proxy_url(proxy_url: str, target_url: str) -> str:
    """Proxy request URL with the target passed as an encoded ``url`` parameter."""
    return f"{proxy_url}?url={quote(target_url, safe=URI_COMPONENT_SAFE)}"


def extract_title(html: str) -> str:
    """Text of the document's ``<title>``, or an empty string."""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is None:
        return ""
    return soup.title.get_text(strip=True)


def validate_archive_response(
    status_code: int, body: str, min_length: int = MIN_ARCHIVE_LENGTH
) -> str:
    """
    Run the validation gate over a proxy response.

    Args:
        status_code: HTTP status returned by the proxy
        body: Response body
        min_length: Minimum body length accepted as a complete page

    Returns:
        The body, when every check passes

    Raises:
        ArchiveError: With the reason of the first failing check
    """
    if not 200 <= status_code < 300:
        raise ArchiveError(
            ArchiveFailureReason.PROXY_STATUS, f"Proxy service returned status {status_code}."
        )

    if not body or PROXY_DOWN_MARKER in body:
        raise ArchiveError(ArchiveFailureReason.PROXY_DOWN, PROXY_DOWN_MESSAGE)

    if BLOCKED_TITLE_PATTERN.search(extract_title(body)) or BLOCKED_BODY_PATTERN.search(body):
        raise ArchiveError(ArchiveFailureReason.BLOCKED, BLOCKED_MESSAGE)

    if len(body) < min_length:
        raise ArchiveError(ArchiveFailureReason.INCOMPLETE, INCOMPLETE_MESSAGE)

    return body


class PageArchiver:
    """
    Archives bookmarked pages for one user's store.

    Several bookmarks may be archived concurrently. ``archiving_id`` only
    tracks the most recently started attempt for display; it is not a lock
    and nothing is cancelled when a newer attempt starts.

    Example Usage:
        >>> async with PageArchiver(store) as archiver:
        ...     outcome = await archiver.archive(bookmark)
    """

    DEFAULT_HEADERS = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }

    def __init__(
        self,
        store: UserStore,
        notifier: Optional[Notifier] = None,
        proxy_url: str = DEFAULT_PROXY_URL,
        timeout: float = 30.0,
        min_length: int = MIN_ARCHIVE_LENGTH,
        retry_strategy: Optional[RetryStrategy] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.proxy_url = proxy_url
        self.timeout = timeout
        self.min_length = min_length
        self.retry_strategy = retry_strategy or RetryStrategy(max_attempts=0)
        self._client = client
        self._owns_client = client is None
        self._archiving_id: Optional[str] = None
        self._in_flight: Set[str] = set()

    @classmethod
    def from_config(
        cls,
        store: UserStore,
        config,
        notifier: Optional[Notifier] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "PageArchiver":
        """Build an archiver from an ``ArchiveConfig``."""
        return cls(
            store,
            notifier=notifier,
            proxy_url=config.proxy_url,
            timeout=config.timeout,
            min_length=config.min_content_length,
            retry_strategy=RetryStrategy(
                max_attempts=config.max_retries,
                base_delay=config.retry_base_delay,
            ),
            client=client,
        )

    async def __aenter__(self) -> "PageArchiver":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def archiving_id(self) -> Optional[str]:
        return self._archiving_id

    @property
    def in_flight(self) -> FrozenSet[str]:
        """Ids with an archival attempt currently running."""
        return frozenset(self._in_flight)

    def state_of(self, bookmark_id: str) -> ArchiveState:
        """
        Current archival state of a bookmark.

        Only running attempts are tracked here; finished states are read
        back from the stored bookmark, so nothing accumulates per id.
        """
        if bookmark_id in self._in_flight:
            return ArchiveState.ARCHIVING
        document = next(
            (d for d in self.store.bookmarks.snapshot() if d.get("id") == bookmark_id), None
        )
        if document is None:
            return ArchiveState.IDLE
        bookmark = Bookmark.from_dict(document)
        if bookmark.archive_failed:
            return ArchiveState.FAILED
        if bookmark.is_archived:
            return ArchiveState.ARCHIVED
        return ArchiveState.IDLE

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    async def fetch(self, url: str) -> str:
        """
        Fetch a page through the proxy and validate it.

        Raises:
            ArchiveError: On transport errors or a failed validation check
        """
        request_url = build_proxy_url(self.proxy_url, url)
        try:
            response = await self._get_client().get(request_url, headers=self.DEFAULT_HEADERS)
        except httpx.HTTPError as e:
            raise ArchiveError(ArchiveFailureReason.NETWORK, str(e) or type(e).__name__) from e

        return validate_archive_response(response.status_code, response.text, self.min_length)

    async def _fetch_with_retry(self, url: str) -> Tuple[str, int]:
        attempt = 0
        while True:
            try:
                return await self.fetch(url), attempt + 1
            except ArchiveError as e:
                if not self.retry_strategy.should_retry(attempt, e):
                    e.attempts = attempt + 1
                    raise
                delay = self.retry_strategy.get_delay(attempt)
                logger.debug(f"Retrying archive of {url} in {delay:.1f}s after: {e.message}")
                await asyncio.sleep(delay)
                attempt += 1

    async def archive(self, bookmark: Bookmark) -> ArchiveOutcome:
        """
        Archive one bookmark's page.

        The failure flag is cleared before fetching. On success the page
        HTML is stored; on failure the stored snapshot is dropped and the
        failure flag set. Failures are reported through the notifier and
        never raised.

        Args:
            bookmark: Bookmark to archive

        Returns:
            ArchiveOutcome describing the result
        """
        self._archiving_id = bookmark.id
        self._in_flight.add(bookmark.id)
        self.notifier.notify(f'Archiving "{bookmark.title}"...')

        try:
            await execute_operations(
                self.store, [StoreOperation.update(BOOKMARKS, bookmark.id, {"archiveFailed": False})]
            )

            try:
                html, attempts = await self._fetch_with_retry(bookmark.url)
            except ArchiveError as e:
                logger.warning(f"Archive failed for {bookmark.url} ({e.reason.value}): {e.message}")
                await execute_operations(
                    self.store,
                    [
                        StoreOperation.update(
                            BOOKMARKS, bookmark.id, {"archivedHtml": None, "archiveFailed": True}
                        )
                    ],
                )
                self.notifier.notify(f"Archive failed: {e.message}")
                return ArchiveOutcome(
                    bookmark_id=bookmark.id,
                    state=ArchiveState.FAILED,
                    reason=e.reason,
                    message=e.message,
                    attempts=e.attempts,
                )

            await execute_operations(
                self.store,
                [
                    StoreOperation.update(
                        BOOKMARKS, bookmark.id, {"archivedHtml": html, "archiveFailed": False}
                    )
                ],
            )
            self.notifier.notify("Page archived successfully!")
            logger.info(f"Archived {bookmark.url} ({len(html)} chars)")
            return ArchiveOutcome(
                bookmark_id=bookmark.id,
                state=ArchiveState.ARCHIVED,
                content_length=len(html),
                attempts=attempts,
            )
        finally:
            self._in_flight.discard(bookmark.id)
            if self._archiving_id == bookmark.id:
                self._archiving_id = None
