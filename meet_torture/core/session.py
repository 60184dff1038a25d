# meet_torture/core/session.py
from __future__ import annotations

"""Session handle adapter
------------------------
A session handle is one Playwright `Page`. The helpers here run DOM queries
and scripts against it and translate Playwright failures caused by a moving
DOM into `StaleElementError`, which pollers treat as "not yet".
"""

import contextlib
from typing import Any, Iterator, List, Optional, Tuple

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Page

__all__ = [
    "StaleElementError",
    "NoSuchElementError",
    "TRANSIENT_ERRORS",
    "find_elements",
    "find_element",
    "is_displayed",
    "get_attribute",
    "class_names",
    "execute_script",
    "by_xpath",
    "by_id",
    "translate_errors",
]


class StaleElementError(RuntimeError):
    """An element reference stopped pointing at a live DOM node."""


class NoSuchElementError(LookupError):
    """A single-element lookup matched nothing."""


TRANSIENT_ERRORS: Tuple[type[BaseException], ...] = (StaleElementError, NoSuchElementError)

# Substrings of Playwright error messages that mean the node or the
# JS context under it went away between lookup and use.
_STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "jshandle is disposed",
    "elementhandle is disposed",
    "execution context was destroyed",
    "cannot find context with specified id",
)


def _is_stale(exc: PlaywrightError) -> bool:
    msg = (getattr(exc, "message", None) or str(exc)).lower()
    return any(m in msg for m in _STALE_MARKERS)


@contextlib.contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except PlaywrightError as exc:
        if _is_stale(exc):
            raise StaleElementError(str(exc)) from exc
        raise


def by_xpath(xpath: str) -> str:
    return f"xpath={xpath}"


def by_id(element_id: str) -> str:
    return f"[id='{element_id}']"


def find_elements(page: Page, selector: str) -> List[ElementHandle]:
    """All elements matching a Playwright selector (`xpath=...`, css, ...)."""
    with translate_errors():
        return page.query_selector_all(selector)


def find_element(page: Page, selector: str) -> ElementHandle:
    """First matching element; raises NoSuchElementError when nothing matches."""
    with translate_errors():
        el = page.query_selector(selector)
    if el is None:
        raise NoSuchElementError(f"No element matches {selector!r}")
    return el


def is_displayed(element: ElementHandle) -> bool:
    with translate_errors():
        return element.is_visible()


def get_attribute(element: ElementHandle, name: str) -> Optional[str]:
    with translate_errors():
        return element.get_attribute(name)


def class_names(element: ElementHandle) -> Tuple[str, ...]:
    return tuple((get_attribute(element, "class") or "").split())


def execute_script(page: Page, script: str, arg: Any = None) -> Any:
    """
    Evaluate `script` in the page. `script` is either a JS expression
    ("APP.conference.isJoined()") or a function ("(id) => ...") which then
    receives `arg`.
    """
    with translate_errors():
        if arg is None:
            return page.evaluate(script)
        return page.evaluate(script, arg)
