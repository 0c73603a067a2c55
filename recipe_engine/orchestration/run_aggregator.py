"""
Run aggregator: drives a test recipe through one browser session.

Scenarios run strictly in recipe order against a single page. Errors of
one scenario are recorded on its result and never stop the run; only a
failure to acquire the browser aborts it.
"""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from uuid import uuid4

from recipe_engine.agents.outcome_verifier import OutcomeVerifier, OutcomeVerifierAgent
from recipe_engine.agents.step_translator import StepTranslator, StepTranslatorAgent
from recipe_engine.browser.driver import BrowserSession
from recipe_engine.browser.executor import ActionExecutor
from recipe_engine.config.settings import get_settings
from recipe_engine.core.interfaces import ActionOracleLike, VerificationOracleLike
from recipe_engine.core.types import (
    ExecutionOptions,
    RunResult,
    RunState,
    ScenarioResult,
    ScenarioStatus,
    TestScenario,
    parse_test_recipe,
)
from recipe_engine.error_handling.exceptions import (
    ExecutionError,
    RunFatalError,
    TranslationError,
)
from recipe_engine.monitoring.evidence import EvidenceRecorder
from recipe_engine.monitoring.logger import get_logger, log_performance_metric, log_scenario_event

logger = get_logger(__name__)

RESULTS_FILE = "results.json"

SessionFactory = Callable[[ExecutionOptions, Optional[Path]], Any]


def default_session_factory(options: ExecutionOptions, video_dir: Optional[Path]) -> BrowserSession:
    return BrowserSession(
        headless=options.headless,
        slow_mo=options.slow_mo,
        timeout=options.timeout,
        viewport_width=options.viewport_width,
        viewport_height=options.viewport_height,
        video_dir=video_dir,
    )


class RunAggregator:
    """Owns the browser session and the RunResult for one run."""

    def __init__(
        self,
        translator: StepTranslator,
        verifier: OutcomeVerifier,
        options: Optional[ExecutionOptions] = None,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            translator: Step translator used for every scenario
            verifier: Outcome verifier used for every scenario
            options: Run options
            session_factory: Builds the browser session from options and video dir
        """
        self.translator = translator
        self.verifier = verifier
        self.options = options or ExecutionOptions()
        self.session_factory = session_factory or default_session_factory

    async def run(
        self,
        recipe: Union[Sequence[TestScenario], Any],
        base_url: str,
    ) -> RunResult:
        """
        Execute every scenario of the recipe in order.

        Returns:
            The completed RunResult, also persisted as ``results.json``

        Raises:
            RecipeValidationError: If the recipe is malformed (before any run)
            RunFatalError: If the browser could not be started; partial results
                are persisted first
        """
        scenarios = self._coerce_recipe(recipe)
        execution_id = str(uuid4())
        results_dir = Path(self.options.results_root) / execution_id

        run_result = RunResult(
            execution_id=execution_id,
            base_url=base_url,
            results_dir=str(results_dir),
            total_tests=len(scenarios),
        )
        run_logger = get_logger(__name__, execution_id=execution_id)
        run_logger.info(
            "Starting test run",
            extra={"base_url": base_url, "total_tests": len(scenarios)},
        )

        recorder = EvidenceRecorder(
            results_dir,
            take_screenshots=self.options.take_screenshots,
            record_video=self.options.record_video,
        )
        recorder.prepare()
        session = self.session_factory(self.options, recorder.video_dir)
        run_clock = asyncio.get_event_loop().time()
        fatal_error: Optional[RunFatalError] = None

        try:
            try:
                page = await session.start()
            except Exception as exc:
                raise RunFatalError(
                    f"Failed to start browser: {exc}", phase="browser_start", cause=exc
                ) from exc
            run_result.video_start_time = datetime.now(timezone.utc)

            recorder.attach(page)
            executor = ActionExecutor(
                page,
                base_url,
                action_timeout=self.options.action_timeout,
                default_wait=self.options.default_wait,
            )
            run_result.state = RunState.RUNNING

            for index, scenario in enumerate(scenarios, start=1):
                result = await self._run_scenario(
                    index, scenario, page, executor, recorder, base_url, execution_id
                )
                run_result.record_scenario(result)

                if index < len(scenarios) and self.options.inter_scenario_delay:
                    await asyncio.sleep(self.options.inter_scenario_delay / 1000)

        except RunFatalError as exc:
            fatal_error = exc
            run_result.error = str(exc)
            run_logger.error("Run aborted", extra={"phase": exc.phase, "error": str(exc)})
        except Exception as exc:
            run_result.error = f"Run aborted: {exc}"
            run_logger.exception("Unexpected error during run")
        finally:
            run_result.state = RunState.FINALIZING
            await self._finalize(run_result, session, recorder, run_clock)

        run_logger.info(
            "Test run complete",
            extra={
                "passed": run_result.passed,
                "failed": run_result.failed,
                "skipped": run_result.skipped,
                "duration_ms": run_result.duration,
            },
        )

        if fatal_error is not None:
            raise fatal_error
        return run_result

    def _coerce_recipe(self, recipe: Any) -> List[TestScenario]:
        if isinstance(recipe, (list, tuple)) and all(isinstance(s, TestScenario) for s in recipe):
            return list(recipe)
        return parse_test_recipe(recipe)

    async def _run_scenario(
        self,
        index: int,
        scenario: TestScenario,
        page: Any,
        executor: ActionExecutor,
        recorder: EvidenceRecorder,
        base_url: str,
        execution_id: str,
    ) -> ScenarioResult:
        """Run one scenario; every failure ends up on the returned result."""
        result = ScenarioResult(
            index=index,
            scenario=scenario.scenario,
            priority=scenario.priority,
            steps=scenario.steps,
            expected=scenario.expected,
        )
        recorder.begin_scenario(index)
        log_scenario_event(
            "scenario_started",
            execution_id,
            index,
            {"scenario": scenario.scenario, "priority": scenario.priority.value},
        )
        clock = asyncio.get_event_loop().time()

        try:
            actions = await self.translator.translate(scenario.steps, scenario.expected, base_url)
            if not actions:
                raise TranslationError("No executable actions could be derived from the steps")

            try:
                result.actions = await executor.execute_all(actions)
            except ExecutionError as exc:
                result.actions = exc.records
                raise

            verdict = await self.verifier.verify(page, scenario.expected)
            result.actual_result = verdict.actual_result
            if verdict.passed:
                result.status = ScenarioStatus.PASS
            else:
                result.status = ScenarioStatus.FAIL
                result.error = verdict.reason

        except TranslationError as exc:
            result.status = ScenarioStatus.ERROR
            result.error = f"Translation failed: {exc.message}"
        except ExecutionError as exc:
            result.status = ScenarioStatus.ERROR
            result.error = exc.message
        except Exception as exc:
            logger.exception("Unexpected scenario error", extra={"scenario_index": index})
            result.status = ScenarioStatus.ERROR
            result.error = str(exc) or type(exc).__name__

        result.screenshot_path = await recorder.capture_screenshot(page, index, result.status)
        result.console_logs, result.network_errors = recorder.end_scenario()
        result.end_time = datetime.now(timezone.utc)
        result.duration = int((asyncio.get_event_loop().time() - clock) * 1000)

        log_scenario_event(
            "scenario_finished",
            execution_id,
            index,
            {
                "status": result.status.value,
                "duration_ms": result.duration,
                "error": result.error,
            },
        )
        return result

    async def _finalize(
        self,
        run_result: RunResult,
        session: Any,
        recorder: EvidenceRecorder,
        run_clock: float,
    ) -> None:
        """Release the browser, link evidence, seal and persist the run."""
        await session.stop()

        try:
            full_video = recorder.finalize_video()
        except OSError as exc:
            logger.warning("Failed to finalize session video", extra={"error": str(exc)})
            full_video = None

        if full_video:
            run_result.full_video_path = full_video
            for scenario in run_result.scenarios:
                scenario.video_path = full_video

        run_result.record_skipped(run_result.total_tests - len(run_result.scenarios))
        duration_ms = int((asyncio.get_event_loop().time() - run_clock) * 1000)
        run_result.complete(datetime.now(timezone.utc), duration_ms)
        log_performance_metric(
            "run_duration", duration_ms, context={"execution_id": run_result.execution_id}
        )

        results_path = Path(run_result.results_dir) / RESULTS_FILE
        results_path.parent.mkdir(parents=True, exist_ok=True)
        results_path.write_text(run_result.to_json(), encoding="utf-8")
        logger.info("Results saved", extra={"path": str(results_path)})


async def execute_test_recipe(
    recipe: Any,
    base_url: str,
    options: Optional[Union[ExecutionOptions, Dict[str, Any]]] = None,
    action_oracle: Optional[ActionOracleLike] = None,
    verification_oracle: Optional[VerificationOracleLike] = None,
    session_factory: Optional[SessionFactory] = None,
) -> RunResult:
    """
    Run a test recipe against a base URL.

    Args:
        recipe: Scenarios, or raw recipe data (list or ``testRecipe`` wrapper)
        base_url: Base URL of the application under test
        options: ExecutionOptions or a mapping of option names (camelCase accepted);
            defaults to the configured settings
        action_oracle: Action oracle, defaults to the OpenAI step translator
        verification_oracle: Verification oracle, defaults to the OpenAI verifier
        session_factory: Browser session factory override

    Returns:
        The completed RunResult
    """
    if options is None:
        options = get_settings().execution_options()
    elif isinstance(options, dict):
        options = ExecutionOptions.model_validate(options)

    if action_oracle is None:
        action_oracle = StepTranslatorAgent()
    if verification_oracle is None:
        verification_oracle = OutcomeVerifierAgent(
            visible_text_limit=options.visible_text_limit
        )

    aggregator = RunAggregator(
        translator=StepTranslator(action_oracle),
        verifier=OutcomeVerifier(verification_oracle, options.visible_text_limit),
        options=options,
        session_factory=session_factory,
    )
    return await aggregator.run(recipe, base_url)
