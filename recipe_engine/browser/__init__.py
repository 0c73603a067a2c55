"""
Browser automation module exports.
"""

from recipe_engine.browser.driver import BrowserSession
from recipe_engine.browser.executor import ActionExecutor

__all__ = [
    "BrowserSession",
    "ActionExecutor",
]
