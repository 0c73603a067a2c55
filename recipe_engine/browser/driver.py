"""
Playwright browser session for one run.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from recipe_engine.monitoring.logger import get_logger, log_performance_metric


class BrowserSession:
    """
    Owns one browser, one context and one page for the lifetime of a run.

    When ``video_dir`` is given the context records a single continuous
    video of the page at the viewport size.
    """

    def __init__(
        self,
        headless: bool = True,
        slow_mo: int = 100,
        timeout: int = 30000,
        viewport_width: int = 1280,
        viewport_height: int = 720,
        video_dir: Optional[Path] = None,
    ) -> None:
        """
        Initialize the browser session.

        Args:
            headless: Run browser in headless mode
            slow_mo: Delay between browser operations in milliseconds
            timeout: Default page timeout in milliseconds
            viewport_width: Viewport and video width
            viewport_height: Viewport and video height
            video_dir: Directory for the session video, None to disable recording
        """
        self.headless = headless
        self.slow_mo = slow_mo
        self.timeout = timeout
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.video_dir = video_dir

        self.logger = get_logger("browser.driver")
        self._playwright: Any = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Browser not started. Call start() first.")
        return self._page

    async def start(self) -> Page:
        """Start the browser and create the run's page."""
        start_time = asyncio.get_event_loop().time()

        if self._playwright is None:
            self._playwright = await async_playwright().start()

        if self._browser is None:
            self.logger.info(
                "Starting browser",
                extra={
                    "headless": self.headless,
                    "slow_mo": self.slow_mo,
                    "viewport": f"{self.viewport_width}x{self.viewport_height}",
                    "record_video": self.video_dir is not None,
                },
            )
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                slow_mo=self.slow_mo,
                args=[
                    "--disable-web-security",
                    "--disable-features=IsolateOrigins,site-per-process",
                ],
            )

        if self._context is None:
            viewport = {"width": self.viewport_width, "height": self.viewport_height}
            context_kwargs: dict = {
                "viewport": viewport,
                "ignore_https_errors": True,
            }
            if self.video_dir is not None:
                context_kwargs["record_video_dir"] = str(self.video_dir)
                context_kwargs["record_video_size"] = viewport

            self._context = await self._browser.new_context(**context_kwargs)
            self._context.set_default_timeout(self.timeout)

        if self._page is None:
            self._page = await self._context.new_page()

        elapsed_ms = (asyncio.get_event_loop().time() - start_time) * 1000
        log_performance_metric("browser_start", elapsed_ms)
        return self._page

    async def stop(self) -> None:
        """
        Close page, context, browser and Playwright in that order.

        Every resource is released even when closing an earlier one fails.
        The session video is written when the context closes.
        """
        for label, closer in (
            ("page", self._page.close if self._page else None),
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as exc:
                self.logger.warning(
                    f"Failed to close {label}", extra={"error": str(exc)}
                )

        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        self.logger.info("Browser stopped")

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
