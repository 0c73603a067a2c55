"""Deterministic oracles for offline runs.

RuleBasedActionOracle maps common step phrasings onto actions line by line;
KeywordVerificationOracle checks that every quoted phrase of the expected
result is present on the page.
"""

import re
from typing import Any, Dict, List, Optional

from recipe_engine.core.interfaces import ActionOracle, VerificationOracle
from recipe_engine.core.types import TranslationRequest, VerificationRequest
from recipe_engine.monitoring.logger import get_logger

logger = get_logger(__name__)

STEP_PREFIX = re.compile(r"^\s*(?:step\s*\d+\s*[:.)-]?|\d+\s*[.):-]|[-*•])\s*", re.IGNORECASE)
QUOTED = re.compile(r"\"([^\"]+)\"|“([^”]+)”|(?<!\w)'([^']+)'(?!\w)")
URL_OR_PATH = re.compile(r"(https?://\S+|(?<!\w)/[\w\-./?=&%#]*)")
SECONDS = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|milliseconds?|s|secs?|seconds?)\b", re.IGNORECASE)

NAVIGATE_VERBS = ("navigate", "open", "visit", "go", "load", "browse")
CLICK_VERBS = ("click", "press", "tap", "submit")
TYPE_VERBS = ("type", "enter", "input")
FILL_VERBS = ("fill",)
SELECT_VERBS = ("select", "choose", "pick")
VERIFY_VERBS = ("verify", "check", "confirm", "ensure", "assert", "see", "observe", "expect")

FIELD_SUFFIX = re.compile(r"\s+(field|input|box|textbox|text box|dropdown|select|menu)$", re.IGNORECASE)
LEADING_FILLER = re.compile(r"^(on|the|a|an|to|at|into|in)\s+", re.IGNORECASE)
TRAILING_FILLER = re.compile(r"\s+(button|link|tab|icon|item)$", re.IGNORECASE)


def split_steps(steps: str) -> List[str]:
    """Split step text into lines with numbering and bullets removed."""
    lines = []
    for line in steps.splitlines():
        text = STEP_PREFIX.sub("", line).strip().rstrip(".")
        if text:
            lines.append(text)
    return lines


def quoted_phrases(text: str) -> List[str]:
    return [next(group for group in match.groups() if group) for match in QUOTED.finditer(text)]


def looks_like_selector(target: str) -> bool:
    if target.startswith(("#", ".", "[", "//", "text=", "css=", "xpath=")):
        return True
    return bool(re.search(r"[\[\]=>:]", target))


def element_selector(target: str) -> str:
    target = target.strip()
    if looks_like_selector(target):
        return target
    return f"text={target}"


def field_selector(name: str, tag: str = "input") -> str:
    name = FIELD_SUFFIX.sub("", LEADING_FILLER.sub("", name.strip())).strip()
    if looks_like_selector(name):
        return name
    return (
        f"{tag}[name='{name}' i], {tag}[id='{name}' i], "
        f"[placeholder='{name}' i], [aria-label='{name}' i]"
    )


def _unquoted_target(text: str) -> str:
    target = LEADING_FILLER.sub("", text.strip())
    target = LEADING_FILLER.sub("", target)
    return TRAILING_FILLER.sub("", target).strip()


class RuleBasedActionOracle(ActionOracle):
    """Translates common step phrasings without a model."""

    async def propose_actions(self, request: TranslationRequest) -> Dict[str, Any]:
        actions: List[Dict[str, Any]] = []
        for line in split_steps(request.steps):
            action = self.translate_line(line)
            if action is None:
                logger.debug("No rule matched step", extra={"step": line})
                continue
            actions.append(action)
        return {"actions": actions}

    def translate_line(self, line: str) -> Optional[Dict[str, Any]]:
        words = line.split()
        verb = words[0].lower()
        rest = line[len(words[0]):].strip()
        quotes = quoted_phrases(line)

        if verb in NAVIGATE_VERBS:
            return self._navigate(line, quotes)
        if verb in CLICK_VERBS:
            target = quotes[0] if quotes else _unquoted_target(rest)
            return {"type": "click", "selector": element_selector(target)} if target else None
        if verb == "hover":
            target = quotes[0] if quotes else _unquoted_target(re.sub(r"^over\s+", "", rest))
            return {"type": "hover", "selector": element_selector(target)} if target else None
        if verb in TYPE_VERBS:
            return self._type(rest, quotes)
        if verb in FILL_VERBS:
            return self._fill(rest, quotes)
        if verb in SELECT_VERBS:
            return self._select(rest, quotes)
        if verb == "scroll":
            if quotes:
                return {"type": "scroll", "selector": element_selector(quotes[0])}
            return {"type": "scroll"}
        if verb == "wait":
            return self._wait(rest, quotes)
        if verb in VERIFY_VERBS or " should " in f" {line.lower()} ":
            return {"type": "verify", "assertion": line}
        return None

    def _navigate(self, line: str, quotes: List[str]) -> Optional[Dict[str, Any]]:
        for candidate in quotes:
            if URL_OR_PATH.fullmatch(candidate.strip()):
                return {"type": "navigate", "url": candidate.strip()}
        match = URL_OR_PATH.search(line)
        if match:
            return {"type": "navigate", "url": match.group(1)}
        if re.search(r"\bhome\s*page\b|\bhomepage\b|\bhome\b", line, re.IGNORECASE):
            return {"type": "navigate", "url": "/"}
        return None

    def _type(self, rest: str, quotes: List[str]) -> Optional[Dict[str, Any]]:
        if not quotes:
            return None
        value = quotes[0]
        if len(quotes) > 1:
            field = quotes[1]
        else:
            match = re.search(r"\b(?:into|in|on)\s+(.+)$", rest.split(quotes[0], 1)[-1], re.IGNORECASE)
            if not match:
                return None
            field = match.group(1)
        return {"type": "type", "selector": field_selector(field), "value": value}

    def _fill(self, rest: str, quotes: List[str]) -> Optional[Dict[str, Any]]:
        rest = re.sub(r"^(in|out)\s+", "", rest, flags=re.IGNORECASE)
        if len(quotes) >= 2:
            return {"type": "type", "selector": field_selector(quotes[0]), "value": quotes[1]}
        match = re.match(r"(.+?)\s+with\s+", rest, re.IGNORECASE)
        if quotes and match:
            return {"type": "type", "selector": field_selector(match.group(1)), "value": quotes[0]}
        return None

    def _select(self, rest: str, quotes: List[str]) -> Optional[Dict[str, Any]]:
        if not quotes:
            return None
        value = quotes[0]
        if len(quotes) > 1:
            field = quotes[1]
        else:
            match = re.search(r"\b(?:from|in)\s+(.+)$", rest.split(quotes[0], 1)[-1], re.IGNORECASE)
            if not match:
                return None
            field = match.group(1)
        return {"type": "select", "selector": field_selector(field, tag="select"), "value": value}

    def _wait(self, rest: str, quotes: List[str]) -> Dict[str, Any]:
        if quotes:
            return {"type": "wait", "selector": element_selector(quotes[0])}
        duration = SECONDS.search(rest)
        if duration:
            amount = float(duration.group(1))
            unit = duration.group(2).lower()
            timeout = int(amount if unit.startswith("m") else amount * 1000)
            return {"type": "wait", "timeout": max(timeout, 1)}
        lowered = rest.lower()
        if "network" in lowered or "idle" in lowered:
            return {"type": "wait", "condition": "networkidle"}
        if "load" in lowered or "navigat" in lowered or "redirect" in lowered:
            return {"type": "wait", "condition": "navigation"}
        return {"type": "wait"}


class KeywordVerificationOracle(VerificationOracle):
    """Passes when every quoted phrase of the expectation is on the page."""

    async def judge(self, request: VerificationRequest) -> Dict[str, Any]:
        state = request.page_state
        actual = f"Page '{state.title}' at {state.url}"
        phrases = quoted_phrases(request.expected)
        if not phrases:
            return {
                "passed": False,
                "reason": "Expected result has no quoted phrases to look for",
                "actualResult": actual,
            }

        haystack = f"{state.title}\n{state.visible_text}".lower()
        missing = [phrase for phrase in phrases if phrase.lower() not in haystack]
        if missing:
            return {
                "passed": False,
                "reason": "Not found on page: " + ", ".join(f"'{p}'" for p in missing),
                "actualResult": actual,
            }
        return {
            "passed": True,
            "reason": "Found on page: " + ", ".join(f"'{p}'" for p in phrases),
            "actualResult": actual,
        }
