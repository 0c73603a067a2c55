"""
Evidence capture for a run: screenshots, session video and page logs.
"""

import shutil
from pathlib import Path
from typing import Any, List, Optional, Tuple

from recipe_engine.core.types import ConsoleEntry, NetworkFailure, ScenarioStatus
from recipe_engine.monitoring.logger import get_logger

logger = get_logger(__name__)

FULL_VIDEO_NAME = "full-test-run.webm"


class EvidenceRecorder:
    """
    Collects evidence for the scenarios of one run.

    Console messages and failed requests are buffered per scenario; the
    buffer is swapped at every scenario boundary and events arriving
    outside a scenario window are dropped.
    """

    def __init__(
        self,
        results_dir: Path,
        take_screenshots: bool = True,
        record_video: bool = True,
    ) -> None:
        self.results_dir = Path(results_dir)
        self.take_screenshots = take_screenshots
        self.record_video = record_video
        self.videos_dir = self.results_dir / "videos"
        self.screenshots_dir = self.results_dir / "screenshots"

        self._attached_page: Any = None
        self._scenario_index: Optional[int] = None
        self._console: Optional[List[ConsoleEntry]] = None
        self._network: Optional[List[NetworkFailure]] = None

    @property
    def video_dir(self) -> Optional[Path]:
        """Directory the browser should record into, None when disabled."""
        return self.videos_dir if self.record_video else None

    def prepare(self) -> None:
        """Create the run's artifact directories."""
        self.results_dir.mkdir(parents=True, exist_ok=True)
        if self.take_screenshots:
            self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        if self.record_video:
            self.videos_dir.mkdir(parents=True, exist_ok=True)

    def attach(self, page: Any) -> None:
        """Register console and network listeners; repeated calls are no-ops."""
        if self._attached_page is page:
            return
        page.on("console", self._on_console)
        page.on("requestfailed", self._on_request_failed)
        self._attached_page = page

    def begin_scenario(self, index: int) -> None:
        self._scenario_index = index
        self._console = []
        self._network = []

    def end_scenario(self) -> Tuple[List[ConsoleEntry], List[NetworkFailure]]:
        """Close the scenario window and return what it captured."""
        console = self._console or []
        network = self._network or []
        self._scenario_index = None
        self._console = None
        self._network = None
        return console, network

    def _on_console(self, message: Any) -> None:
        if self._console is None:
            return
        self._console.append(ConsoleEntry(type=str(message.type), text=str(message.text)))

    def _on_request_failed(self, request: Any) -> None:
        if self._network is None:
            return
        failure = request.failure
        self._network.append(
            NetworkFailure(
                url=request.url,
                method=request.method,
                failure=failure if isinstance(failure, str) or failure is None else str(failure),
            )
        )

    async def capture_screenshot(
        self, page: Any, index: int, status: ScenarioStatus
    ) -> Optional[str]:
        """
        Save a full-page screenshot named after the scenario and its status.

        Returns:
            The screenshot path, or None when disabled or capture failed
        """
        if not self.take_screenshots:
            return None

        path = self.screenshots_dir / f"scenario-{index}-{ScenarioStatus(status).value}.png"
        try:
            await page.screenshot(path=str(path), full_page=True)
        except Exception as exc:
            logger.warning(
                "Screenshot capture failed",
                extra={"scenario_index": index, "error": str(exc)},
            )
            return None
        return str(path)

    def finalize_video(self) -> Optional[str]:
        """
        Move the raw session video to ``full-test-run.webm``.

        Must run after the browser context has closed.
        """
        if not self.record_video:
            return None

        videos = sorted(self.videos_dir.glob("*.webm"), key=lambda p: p.stat().st_mtime)
        if not videos:
            logger.warning("No session video found", extra={"videos_dir": str(self.videos_dir)})
            return None

        target = self.results_dir / FULL_VIDEO_NAME
        shutil.move(str(videos[0]), str(target))
        if len(videos) > 1:
            logger.warning(
                "Multiple session videos found, kept the oldest",
                extra={"count": len(videos)},
            )
        logger.info("Session video saved", extra={"path": str(target)})
        return str(target)
