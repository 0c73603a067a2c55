"""
Recipe Engine - command line entry point.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from recipe_engine import __version__
from recipe_engine.agents.rule_based import KeywordVerificationOracle, RuleBasedActionOracle
from recipe_engine.config.settings import get_settings
from recipe_engine.core.types import (
    ExecutionOptions,
    RunResult,
    ScenarioStatus,
    TestScenario,
    load_test_recipe,
)
from recipe_engine.error_handling import RecipeValidationError, RunFatalError
from recipe_engine.models.openai_client import OpenAIClient
from recipe_engine.monitoring.logger import get_logger, setup_logging
from recipe_engine.monitoring.reporter import RunReporter, generate_quick_summary
from recipe_engine.orchestration.run_aggregator import RESULTS_FILE, execute_test_recipe

console = Console()
logger = get_logger("main")

STATUS_STYLES = {
    ScenarioStatus.PASS: "green",
    ScenarioStatus.FAIL: "red",
    ScenarioStatus.ERROR: "yellow",
}


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="recipe-engine",
        description=f"Recipe Engine - browser test recipe runner v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a recipe against a staging site
  recipe-engine --recipe recipe.json --url https://staging.example.com

  # Run without a model, using the rule-based translator and keyword checks
  recipe-engine --recipe recipe.json --url http://localhost:3000 --offline

  # Watch the browser while it runs
  recipe-engine -r recipe.json -u http://localhost:3000 --headed --slow-mo 500

  # Test your OpenAI API configuration
  recipe-engine --test-api
        """,
    )

    # Input options
    input_group = parser.add_mutually_exclusive_group()
    input_group.add_argument(
        "-r", "--recipe",
        type=Path,
        help="Path to a test recipe JSON file",
    )
    input_group.add_argument(
        "--test-api",
        action="store_true",
        help="Test OpenAI API key configuration",
    )
    input_group.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )

    # Execution options
    parser.add_argument(
        "-u", "--url",
        help="Base URL of the application under test (default: TEST_AUTOMATION_BASE_URL)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the rule-based translator and keyword verifier instead of OpenAI",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    parser.add_argument(
        "--no-video",
        action="store_true",
        help="Disable session video recording",
    )
    parser.add_argument(
        "--no-screenshots",
        action="store_true",
        help="Disable per-scenario screenshots",
    )
    parser.add_argument(
        "--slow-mo",
        type=int,
        help="Delay between browser operations in milliseconds",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Default page timeout in milliseconds",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose structured logging output (JSON)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Root directory for run artifacts (default: test-results/)",
    )
    parser.add_argument(
        "--format",
        choices=["markdown", "json", "none"],
        default="markdown",
        help="Report format (default: markdown)",
    )

    return parser


def load_recipe(recipe_path: Path) -> List[TestScenario]:
    """Load a test recipe, exiting with an error message when it is unusable."""
    try:
        return load_test_recipe(recipe_path)
    except FileNotFoundError:
        console.print(f"[red]Error: Recipe file not found: {recipe_path}[/red]")
        sys.exit(1)
    except RecipeValidationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        for error in e.errors[:20]:
            console.print(f"  [dim]- {error}[/dim]")
        sys.exit(1)


def build_options(parsed_args: argparse.Namespace) -> ExecutionOptions:
    """Apply command line overrides on top of configured run options."""
    settings = get_settings()
    return settings.execution_options(
        headless=False if parsed_args.headed else None,
        record_video=False if parsed_args.no_video else None,
        take_screenshots=False if parsed_args.no_screenshots else None,
        slow_mo=parsed_args.slow_mo,
        timeout=parsed_args.timeout,
        results_root=parsed_args.output,
    )


def _render_results_table(run_result: RunResult) -> None:
    table = Table(title="Scenario Results")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Scenario")
    table.add_column("Priority", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Error", overflow="fold")

    for scenario in run_result.scenarios:
        style = STATUS_STYLES.get(scenario.status, "white")
        table.add_row(
            str(scenario.index),
            scenario.scenario,
            scenario.priority.value,
            f"[{style}]{scenario.status.value}[/{style}]",
            f"{scenario.duration / 1000:.1f}s",
            (scenario.error or "")[:120],
        )

    console.print(table)
    console.print(
        f"Passed: [green]{run_result.passed}[/green]  "
        f"Failed: [red]{run_result.failed}[/red]  "
        f"Skipped: [yellow]{run_result.skipped}[/yellow]  "
        f"Total: {run_result.total_tests}"
    )


async def run_recipe(
    scenarios: List[TestScenario],
    url: str,
    options: ExecutionOptions,
    offline: bool = False,
    report_format: str = "markdown",
) -> int:
    """
    Run a recipe and report on it.

    Returns:
        Exit code (0 all passed, 1 failures, 2 run aborted)
    """
    console.print(
        Panel.fit(
            f"[bold]Base URL:[/bold] {url}\n"
            f"[bold]Scenarios:[/bold] {len(scenarios)}\n"
            f"[bold]Mode:[/bold] {'offline (rule-based)' if offline else 'OpenAI oracles'}\n"
            f"[bold]Artifacts:[/bold] {options.results_root}",
            title="Recipe Engine",
        )
    )

    action_oracle = RuleBasedActionOracle() if offline else None
    verification_oracle = KeywordVerificationOracle() if offline else None

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Running {len(scenarios)} scenario(s)...", total=None)
            run_result = await execute_test_recipe(
                scenarios,
                url,
                options=options,
                action_oracle=action_oracle,
                verification_oracle=verification_oracle,
            )
    except RunFatalError as e:
        console.print(f"\n[red]Run aborted during {e.phase}: {e.message}[/red]")
        logger.error("Run aborted", extra={"error": e.to_dict()})
        return 2
    except KeyboardInterrupt:
        console.print("\n[yellow]Test run interrupted by user[/yellow]")
        return 130

    _render_results_table(run_result)
    if run_result.error:
        console.print(f"[red]{run_result.error}[/red]")

    results_dir = Path(run_result.results_dir)
    if report_format == "markdown":
        report_path = RunReporter().write_report(run_result)
        console.print(f"[green]Report saved to:[/green] {report_path}")
    elif report_format == "json":
        console.print(f"[green]Results saved to:[/green] {results_dir / RESULTS_FILE}")
    if run_result.full_video_path:
        console.print(f"[green]Session video:[/green] {run_result.full_video_path}")

    console.print()
    console.print(generate_quick_summary(run_result), markup=False)

    all_passed = run_result.failed == 0 and run_result.skipped == 0
    return 0 if all_passed else 1


async def test_api_connection() -> int:
    """Test OpenAI API connection."""
    console.print("\n[bold cyan]Testing OpenAI API Connection[/bold cyan]")

    try:
        settings = get_settings()
        console.print("[cyan]Testing API key...[/cyan]")
        client = OpenAIClient(model=settings.openai_model)
        response = await client.call(
            messages=[{"role": "user", "content": "Say 'API test successful' and nothing else."}],
        )

        if "API test successful" in str(response["content"]):
            console.print("[green]✓ OpenAI API connection successful![/green]")
            console.print(f"[dim]Model: {response['model']}[/dim]")
            console.print(f"[dim]Usage: {response['usage']['total_tokens']} tokens[/dim]")
            return 0
        else:
            console.print("[red]✗ Unexpected API response[/red]")
            return 1

    except Exception as e:
        console.print(f"[red]✗ API test failed: {e}[/red]")
        console.print("\n[yellow]Please check:[/yellow]")
        console.print("1. Your OPENAI_API_KEY environment variable is set")
        console.print("2. Your API key has sufficient credits")
        console.print("3. Your account can use the configured OPENAI_MODEL")
        return 1


def show_version() -> int:
    """Show version information."""
    console.print("\n[bold cyan]Recipe Engine - browser test recipe runner[/bold cyan]")
    console.print(f"Version: [green]{__version__}[/green]")
    console.print("Python: [dim]3.10+[/dim]")
    return 0


async def async_main(args: Optional[List[str]] = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.version:
        return show_version()

    if parsed_args.test_api:
        return await test_api_connection()

    settings = get_settings()

    if parsed_args.debug:
        settings.log_level = "DEBUG"

    if parsed_args.verbose:
        settings.log_format = "json"

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
    )

    if not parsed_args.recipe:
        parser.print_help()
        return 1

    url = parsed_args.url or settings.base_url
    if not url:
        console.print(
            "[red]Error: No base URL given. Use --url or set TEST_AUTOMATION_BASE_URL.[/red]"
        )
        return 1

    if not parsed_args.offline and not settings.openai_api_key:
        console.print(
            "[red]Error: OPENAI_API_KEY is not set. Set it or use --offline.[/red]"
        )
        return 1

    scenarios = load_recipe(parsed_args.recipe)

    return await run_recipe(
        scenarios=scenarios,
        url=url,
        options=build_options(parsed_args),
        offline=parsed_args.offline,
        report_format=parsed_args.format,
    )


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the recipe engine.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 all passed, 1 failures or errors, 2 run aborted)
    """
    try:
        return asyncio.run(async_main(args))
    except Exception as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
