"""
Sequential interpreter for browser actions.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from recipe_engine.core.types import (
    Action,
    ActionRecord,
    ActionState,
    ClickAction,
    HoverAction,
    NavigateAction,
    ScrollAction,
    SelectAction,
    TypeAction,
    VerifyAction,
    WaitAction,
)
from recipe_engine.error_handling.exceptions import ExecutionError
from recipe_engine.monitoring.logger import get_logger

logger = get_logger(__name__)

LOAD_STATES: Dict[str, str] = {
    "navigation": "domcontentloaded",
    "domcontentloaded": "domcontentloaded",
    "load": "load",
    "networkidle": "networkidle",
}


class ActionExecutor:
    """Executes actions one at a time against a Playwright page."""

    def __init__(
        self,
        page: Any,
        base_url: str,
        action_timeout: int = 10000,
        default_wait: int = 2000,
    ) -> None:
        """
        Initialize the executor.

        Args:
            page: Playwright page shared with the evidence recorder
            base_url: Base URL relative navigation targets are resolved against
            action_timeout: Default element wait in milliseconds
            default_wait: Duration of a wait action with no selector or condition
        """
        self.page = page
        self.base_url = base_url
        self.action_timeout = action_timeout
        self.default_wait = default_wait
        self._handlers: Dict[str, Callable[[Any], Awaitable[None]]] = {
            "navigate": self._navigate,
            "click": self._click,
            "type": self._type,
            "select": self._select,
            "hover": self._hover,
            "wait": self._wait,
            "scroll": self._scroll,
            "verify": self._verify,
        }

    def resolve_url(self, url: str) -> str:
        """Resolve a relative URL against the base URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"

    async def execute(self, action: Action) -> None:
        """Execute a single action."""
        handler = self._handlers[action.type]
        logger.debug(
            "Executing action",
            extra={"action_type": action.type, "target": action.describe()},
        )
        await handler(action)

    async def execute_all(self, actions: List[Action]) -> List[ActionRecord]:
        """
        Execute actions in order, stopping at the first failure.

        Raises:
            ExecutionError: Carrying the failing action's raw error message and
                the records of every action (unreached ones stay PENDING)
        """
        records = [ActionRecord(index=i, action=action) for i, action in enumerate(actions)]

        for record in records:
            action = record.action
            record.state = ActionState.RUNNING
            start_time = asyncio.get_event_loop().time()
            try:
                await self.execute(action)
            except Exception as exc:
                record.state = ActionState.FAILED
                record.error = str(exc)
                record.duration = self._elapsed_ms(start_time)
                logger.warning(
                    "Action failed",
                    extra={
                        "action_index": record.index,
                        "action_type": action.type,
                        "target": action.describe(),
                        "error": str(exc),
                    },
                )
                raise ExecutionError(
                    str(exc),
                    action_type=action.type,
                    action_index=record.index,
                    selector=getattr(action, "selector", None),
                    url=getattr(action, "url", None),
                    records=records,
                    cause=exc,
                ) from exc

            record.state = ActionState.SUCCESS
            record.duration = self._elapsed_ms(start_time)

        return records

    def _elapsed_ms(self, start_time: float) -> int:
        return int((asyncio.get_event_loop().time() - start_time) * 1000)

    def _element_timeout(self, action: Action) -> int:
        return action.timeout or self.action_timeout

    async def _navigate(self, action: NavigateAction) -> None:
        url = self.resolve_url(action.url)
        logger.info("Navigating to URL", extra={"url": url})
        await self.page.goto(url, wait_until="domcontentloaded", timeout=action.timeout)

    async def _click(self, action: ClickAction) -> None:
        timeout = self._element_timeout(action)
        locator = self.page.locator(action.selector).first
        await locator.wait_for(state="visible", timeout=timeout)
        await locator.click(timeout=timeout)

    async def _type(self, action: TypeAction) -> None:
        timeout = self._element_timeout(action)
        locator = self.page.locator(action.selector).first
        await locator.wait_for(state="visible", timeout=timeout)
        await locator.fill(action.value, timeout=timeout)

    async def _select(self, action: SelectAction) -> None:
        timeout = self._element_timeout(action)
        locator = self.page.locator(action.selector).first
        await locator.wait_for(state="visible", timeout=timeout)
        await locator.select_option(action.value, timeout=timeout)

    async def _hover(self, action: HoverAction) -> None:
        timeout = self._element_timeout(action)
        locator = self.page.locator(action.selector).first
        await locator.wait_for(state="visible", timeout=timeout)
        await locator.hover(timeout=timeout)

    async def _wait(self, action: WaitAction) -> None:
        if action.selector:
            locator = self.page.locator(action.selector).first
            await locator.wait_for(state="visible", timeout=self._element_timeout(action))
            return

        load_state: Optional[str] = LOAD_STATES.get((action.condition or "").strip().lower())
        if load_state:
            await self.page.wait_for_load_state(load_state, timeout=action.timeout)
            return

        if action.condition:
            logger.debug(
                "Unrecognised wait condition, using fixed duration",
                extra={"condition": action.condition},
            )
        await self.page.wait_for_timeout(action.timeout or self.default_wait)

    async def _scroll(self, action: ScrollAction) -> None:
        if action.selector:
            locator = self.page.locator(action.selector).first
            await locator.scroll_into_view_if_needed(timeout=self._element_timeout(action))
            return
        await self.page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    async def _verify(self, action: VerifyAction) -> None:
        # Assertions are judged by the outcome verifier after all actions ran.
        return None
