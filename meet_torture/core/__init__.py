"""
Core package: session adapter, condition poller and the DOM/script waits
built on it. Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from meet_torture.core.poller import poll_until, TimeoutExceeded
  from meet_torture.core.waits import wait_for_element_by_xpath
"""

__all__: list[str] = []
