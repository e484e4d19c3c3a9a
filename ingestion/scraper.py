"""Page fetchers: plain HTTP and headless-browser rendering."""
import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Tuple
from urllib.parse import urlparse

import aiohttp
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from shared.config import settings
from shared.errors import FetchError, RenderBlockedError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

_BLOCK_PAGE_PATTERNS = (
    r"just a moment\.\.\.",
    r"checking your browser",
    r"verify you are (a )?human",
    r"attention required",
    r"access denied",
    r"enable javascript and cookies to continue",
    r"captcha",
)


class HostThrottle:
    """Politeness delay between requests to the same host."""

    def __init__(self, delay_seconds: float = None):
        self.delay_seconds = settings.per_host_delay_seconds if delay_seconds is None else delay_seconds
        self._locks: Dict[str, asyncio.Lock] = {}
        self._last_request: Dict[str, float] = {}

    async def acquire(self, url: str):
        """Wait until the host of ``url`` may be hit again."""
        if self.delay_seconds <= 0:
            return
        host = urlparse(url).netloc.lower()
        lock = self._locks.setdefault(host, asyncio.Lock())
        loop = asyncio.get_running_loop()

        async with lock:
            last = self._last_request.get(host)
            if last is not None:
                wait_for = (last + self.delay_seconds) - loop.time()
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
            self._last_request[host] = loop.time()


class HttpClient:
    """Shared aiohttp client used by feed and lightweight page fetches."""

    def __init__(
        self,
        timeout: int = None,
        user_agent: str = None,
        throttle: Optional[HostThrottle] = None
    ):
        self.timeout = timeout or settings.lightweight_timeout_seconds
        self.headers = {"User-Agent": user_agent or settings.user_agent, **DEFAULT_HEADERS}
        self.throttle = throttle or HostThrottle()
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None
    ) -> Tuple[int, str]:
        """
        GET a URL and return ``(status, body)``.

        Raises:
            FetchError: network failure or timeout
        """
        await self.throttle.acquire(url)
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        try:
            async with self._get_session().get(url, headers=headers, timeout=client_timeout) as response:
                body = await response.text(errors="ignore")
                return response.status, body
        except asyncio.TimeoutError:
            raise FetchError(f"Timeout after {timeout or self.timeout} seconds", url=url)
        except aiohttp.ClientError as e:
            raise FetchError(f"Network error: {str(e)}", url=url)

    async def close(self):
        """Close the underlying session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def raise_for_status(status: int, url: str):
    """Turn an HTTP error status into a FetchError."""
    if status == 404:
        raise FetchError("404 Not Found", url=url, status=status)
    if status == 403:
        raise FetchError("403 Forbidden - Access denied", url=url, status=status)
    if status >= 400:
        raise FetchError(f"HTTP Error {status}", url=url, status=status)


class LightweightScraper:
    """Fetches raw HTML with a plain HTTP request."""

    def __init__(self, http_client: HttpClient):
        self.http_client = http_client

    async def fetch(self, url: str) -> str:
        status, body = await self.http_client.get(url)
        raise_for_status(status, url)
        return body


def looks_like_block_page(html: str) -> bool:
    """Heuristic detection of anti-bot challenge pages."""
    soup = BeautifulSoup(html or "", "html.parser")
    title = soup.title.get_text(" ", strip=True).lower() if soup.title else ""
    for tag in soup.select("script, style, noscript"):
        tag.decompose()
    text = soup.get_text(" ", strip=True).lower()

    # Challenge pages are short; real listings that mention "captcha" are not
    if len(text) > 2000:
        return False
    haystack = f"{title} {text}"
    return any(re.search(pattern, haystack) for pattern in _BLOCK_PAGE_PATTERNS)


Launcher = Callable[[], Awaitable[Tuple[Any, Any]]]


class BrowserPool:
    """
    Process-wide pool of rendered browser sessions.

    One headless Chromium is launched lazily on first checkout. Each session
    is a fresh browser context with one page, and ``session()`` closes it on
    every exit path. At most ``max_sessions`` sessions are open at once.
    """

    def __init__(
        self,
        max_sessions: int = None,
        launcher: Optional[Launcher] = None,
        headless: bool = None
    ):
        self.max_sessions = max_sessions or settings.max_rendered_sessions
        self.headless = settings.browser_headless if headless is None else headless
        self._launcher = launcher or self._launch_chromium
        self._semaphore = asyncio.Semaphore(self.max_sessions)
        self._launch_lock = asyncio.Lock()
        self._playwright = None
        self._browser = None
        self.open_sessions = 0

    async def _launch_chromium(self) -> Tuple[Any, Any]:
        playwright = await async_playwright().start()
        browser = await playwright.chromium.launch(
            headless=self.headless,
            args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        return playwright, browser

    async def _get_browser(self):
        async with self._launch_lock:
            if self._browser is None:
                logger.info("Launching headless browser")
                self._playwright, self._browser = await self._launcher()
        return self._browser

    @asynccontextmanager
    async def session(self, user_agent: str = None) -> AsyncIterator[Any]:
        """Check out a page; the owning context is closed on exit."""
        async with self._semaphore:
            browser = await self._get_browser()
            context = await browser.new_context(
                user_agent=user_agent or settings.user_agent,
                viewport={"width": 1920, "height": 1080},
            )
            self.open_sessions += 1
            try:
                page = await context.new_page()
                yield page
            finally:
                self.open_sessions -= 1
                try:
                    await context.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing browser context: {e}")

    async def close(self):
        """Close the browser and stop Playwright."""
        async with self._launch_lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None


class RenderedScraper:
    """Fetches fully rendered HTML through the browser pool."""

    def __init__(
        self,
        pool: BrowserPool,
        timeout: int = None,
        wait_seconds: float = None
    ):
        self.pool = pool
        self.timeout = timeout or settings.rendered_timeout_seconds
        self.wait_seconds = settings.rendered_wait_seconds if wait_seconds is None else wait_seconds

    async def fetch(self, url: str, wait_selector: Optional[str] = None) -> str:
        """
        Render a page and return its HTML.

        Raises:
            FetchError: navigation failed or timed out
            RenderBlockedError: the page is an anti-bot challenge
        """
        async with self.pool.session() as page:
            try:
                response = await page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)
            except PlaywrightTimeoutError:
                raise FetchError(f"Navigation timeout after {self.timeout} seconds", url=url)
            except PlaywrightError as e:
                raise FetchError(f"Navigation failed: {str(e)}", url=url)

            if response is not None and response.status >= 400:
                raise_for_status(response.status, url)

            if wait_selector:
                try:
                    await page.wait_for_selector(wait_selector, timeout=self.timeout * 1000)
                except PlaywrightTimeoutError:
                    logger.warning(f"Selector {wait_selector} not found on {url}, continuing anyway")
            elif self.wait_seconds:
                await asyncio.sleep(self.wait_seconds)

            html = await page.content()

        if looks_like_block_page(html):
            raise RenderBlockedError("Anti-bot challenge page detected", url=url)
        return html
