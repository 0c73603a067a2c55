"""
Integration tests running recipes in a real Chromium against a local site.
"""

import functools
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest

from recipe_engine.agents.rule_based import KeywordVerificationOracle, RuleBasedActionOracle
from recipe_engine.browser.driver import BrowserSession
from recipe_engine.core.types import ExecutionOptions, ScenarioStatus, TestScenario
from recipe_engine.orchestration.run_aggregator import execute_test_recipe

LOGIN_PAGE = """<!doctype html>
<html>
<head><title>Sign in</title><link rel="icon" href="data:,"></head>
<body>
  <form id="login" onsubmit="return signIn(event)">
    <input name="email" placeholder="Email">
    <select name="role"><option value="user">User</option><option value="admin">Admin</option></select>
    <button type="submit">Sign in</button>
  </form>
  <p id="message"></p>
  <script>
    function signIn(event) {
      event.preventDefault();
      const email = document.querySelector("input[name=email]").value;
      const role = document.querySelector("select[name=role]").value;
      console.log("login attempt");
      document.getElementById("message").innerText = email
        ? "Welcome " + email + " (" + role + ")"
        : "Invalid credentials";
      return false;
    }
  </script>
</body>
</html>
"""


class QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def local_site(tmp_path):
    site = tmp_path / "site"
    site.mkdir()
    (site / "login.html").write_text(LOGIN_PAGE, encoding="utf-8")

    handler = functools.partial(QuietHandler, directory=str(site))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


async def require_chromium():
    session = BrowserSession(headless=True, slow_mo=0)
    try:
        await session.start()
    except Exception as exc:
        pytest.skip(f"Chromium not available: {exc}")
    finally:
        await session.stop()


@pytest.mark.integration
class TestBrowserIntegration:
    """Full runs through Playwright with the offline oracles."""

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, local_site):
        await require_chromium()

        async with BrowserSession(headless=True, slow_mo=0) as session:
            await session.page.goto(f"{local_site}/login.html")
            assert await session.page.title() == "Sign in"

        with pytest.raises(RuntimeError):
            session.page

    @pytest.mark.asyncio
    async def test_recipe_run(self, local_site, tmp_path):
        await require_chromium()

        recipe = [
            TestScenario(
                scenario="Valid login",
                steps=(
                    "1. Go to /login.html\n"
                    "2. Type 'jane@example.com' into email\n"
                    "3. Select 'admin' from role\n"
                    "4. Click 'Sign in'"
                ),
                expected="Shows 'Welcome jane@example.com'",
                priority="Happy Path",
            ),
            TestScenario(
                scenario="Missing button",
                steps="1. Go to /login.html\n2. Click 'Register'",
                expected="Shows 'Account created'",
                priority="Edge Case",
            ),
            TestScenario(
                scenario="Empty login",
                steps="1. Go to /login.html\n2. Click 'Sign in'",
                expected="Shows 'Welcome'",
                priority="Edge Case",
            ),
        ]
        options = ExecutionOptions(
            results_root=tmp_path / "results",
            slow_mo=0,
            action_timeout=1500,
            inter_scenario_delay=0,
        )

        result = await execute_test_recipe(
            recipe,
            local_site,
            options=options,
            action_oracle=RuleBasedActionOracle(),
            verification_oracle=KeywordVerificationOracle(),
        )

        statuses = [s.status for s in result.scenarios]
        assert statuses == [ScenarioStatus.PASS, ScenarioStatus.ERROR, ScenarioStatus.FAIL]
        assert (result.passed, result.failed, result.skipped) == (1, 2, 0)
        assert "Timeout 1500ms exceeded" in result.scenarios[1].error
        assert [c.text for c in result.scenarios[0].console_logs] == ["login attempt"]

        assert result.full_video_path is not None
        assert Path(result.full_video_path).stat().st_size > 0
        for scenario in result.scenarios:
            assert Path(scenario.screenshot_path).exists()
        assert (Path(result.results_dir) / "results.json").exists()
