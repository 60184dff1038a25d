# meet_torture/core/waits.py
from __future__ import annotations

"""DOM and script waits
----------------------
Specialisations of `poll_until` for the checks conference tests make all the
time: an element shows up, disappears, gains a class, a script flips to true.
All timeouts are in milliseconds.
"""

from pathlib import Path
from typing import Any, Callable, Optional

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Page

from meet_torture.core.poller import poll_until
from meet_torture.core.session import (
    by_id,
    by_xpath,
    class_names,
    execute_script,
    find_element,
    find_elements,
    get_attribute,
    is_displayed,
)
from meet_torture.utils.logger import get_logger

log = get_logger(__name__)


class ScriptInjectionError(RuntimeError):
    pass


# ---------------- Scripts ----------------

def inject_script(page: Page, script_path: str | Path) -> None:
    """Load a JS file into the page."""
    path = Path(script_path).resolve()
    try:
        page.add_script_tag(path=str(path))
    except (OSError, PlaywrightError) as exc:
        raise ScriptInjectionError(f"Failed to inject JS script: {path} into {page.url}") from exc
    log.debug(f"Injected {path.name} into {page.url}")


def execute_script_and_return_boolean(page: Page, script: str) -> bool:
    res = execute_script(page, script)
    return res if isinstance(res, bool) else False


def execute_script_and_return_string(page: Page, script: str) -> Optional[str]:
    res = execute_script(page, script)
    return res if isinstance(res, str) else None


def wait_for_boolean(page: Page, script: str, timeout_ms: int) -> None:
    """Wait until `script` evaluates to true."""
    poll_until(
        page,
        lambda p: execute_script(p, script) is True,
        timeout_ms,
        message=f"script to return true: {script}",
    )


def wait_for_strings(page: Page, script: str, expected: str, timeout_ms: int) -> None:
    """Wait until `script` evaluates to the string `expected`."""
    poll_until(
        page,
        lambda p: execute_script(p, script) == expected,
        timeout_ms,
        message=f"script to return {expected!r}: {script}",
    )


# ---------------- Presence ----------------

def _first(page: Page, selector: str) -> Optional[ElementHandle]:
    elements = find_elements(page, selector)
    return elements[0] if elements else None


def wait_for_element_by_xpath(
    page: Page,
    xpath: str,
    timeout_ms: int,
    message: Optional[str] = None,
) -> ElementHandle:
    """Wait until an element matching `xpath` exists and return it."""
    return poll_until(
        page,
        lambda p: _first(p, by_xpath(xpath)),
        timeout_ms,
        message=message or f"element {xpath}",
    )


def wait_for_element_by(page: Page, selector: str, timeout_ms: int) -> ElementHandle:
    """Same as wait_for_element_by_xpath for any Playwright selector."""
    return poll_until(page, lambda p: _first(p, selector), timeout_ms, message=f"element {selector}")


def wait_for_element_not_present_by_xpath(page: Page, xpath: str, timeout_ms: int) -> None:
    poll_until(
        page,
        lambda p: not find_elements(p, by_xpath(xpath)),
        timeout_ms,
        message=f"element to go away: {xpath}",
    )


# ---------------- Visibility ----------------

def wait_for_displayed_or_not_by_xpath(page: Page, xpath: str, timeout_ms: int, displayed: bool) -> None:
    """
    Wait for the first element matching `xpath` to be displayed, or, when
    `displayed` is False, to be hidden or absent.
    """
    def _check(p: Page) -> bool:
        el = _first(p, by_xpath(xpath))
        if displayed:
            return el is not None and is_displayed(el)
        return el is None or not is_displayed(el)

    poll_until(
        page,
        _check,
        timeout_ms,
        message=f"Is {'' if displayed else 'not '}displayed: {xpath}",
    )


def wait_for_displayed_element_by_xpath(page: Page, xpath: str, timeout_ms: int) -> None:
    wait_for_displayed_or_not_by_xpath(page, xpath, timeout_ms, True)


def wait_for_element_not_present_or_not_displayed_by_xpath(page: Page, xpath: str, timeout_ms: int) -> None:
    wait_for_displayed_or_not_by_xpath(page, xpath, timeout_ms, False)


def wait_for_not_displayed_element_by_xpath(page: Page, xpath: str, timeout_ms: int) -> None:
    """Element must exist and be hidden."""
    poll_until(
        page,
        lambda p: not is_displayed(find_element(p, by_xpath(xpath))),
        timeout_ms,
        message=f"Is not displayed: {xpath}",
    )


def wait_for_displayed_element_by_id(page: Page, element_id: str, timeout_ms: int) -> None:
    poll_until(
        page,
        lambda p: is_displayed(find_element(p, by_id(element_id))),
        timeout_ms,
        message=f"Is displayed: #{element_id}",
    )


def wait_for_not_displayed_element_by_id(page: Page, element_id: str, timeout_ms: int) -> None:
    poll_until(
        page,
        lambda p: not is_displayed(find_element(p, by_id(element_id))),
        timeout_ms,
        message=f"Is not displayed: #{element_id}",
    )


# ---------------- Attributes / classes ----------------

def wait_for_element_attribute_value_by_xpath(
    page: Page,
    xpath: str,
    attribute: str,
    value: Any,
    timeout_ms: int,
) -> None:
    poll_until(
        page,
        lambda p: get_attribute(find_element(p, by_xpath(xpath)), attribute) == value,
        timeout_ms,
        message=f"{xpath} @{attribute} == {value!r}",
    )


def wait_for_element_contains_class_by_xpath(page: Page, xpath: str, class_name: str, timeout_ms: int) -> None:
    poll_until(
        page,
        lambda p: class_name in class_names(find_element(p, by_xpath(xpath))),
        timeout_ms,
        message=f"{xpath} has class {class_name}",
    )


def wait_for_element_not_contains_class_by_xpath(page: Page, xpath: str, class_name: str, timeout_ms: int) -> None:
    poll_until(
        page,
        lambda p: class_name not in class_names(find_element(p, by_xpath(xpath))),
        timeout_ms,
        message=f"{xpath} lacks class {class_name}",
    )


# ---------------- Generic ----------------

def wait_for_condition(
    page: Page,
    timeout_ms: int,
    condition: Callable[[Page], Any],
    poll_interval_ms: Optional[int] = None,
) -> Any:
    """Poll an arbitrary condition; returns whatever it produced."""
    return poll_until(
        page,
        condition,
        timeout_ms,
        interval_ms=poll_interval_ms,
    )


def xpath_for_class_name(element: str, class_name: str) -> str:
    """
    XPath for `element` whose class list holds `class_name` as a whole token.
    `element` may carry its axis, e.g. "//span" or "/i".
    """
    return f"{element}[contains(concat(' ', normalize-space(@class), ' '), ' {class_name} ')]"
