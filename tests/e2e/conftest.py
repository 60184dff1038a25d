import pytest
from playwright.sync_api import sync_playwright

from meet_torture.meet import Conference, launch_browser
from meet_torture.utils.config import Settings
from meet_torture.utils.logger import attach_file_logger, detach_file_logger, get_logger


def pytest_collection_modifyitems(config, items):
    if Settings().MEET_BASE_URL:
        return
    skip = pytest.mark.skip(reason="MEET_BASE_URL is not set")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def settings() -> Settings:
    s = Settings()
    s.ensure_dirs()
    return s


@pytest.fixture(scope="session")
def browser(settings):
    handler = attach_file_logger(settings.REPORTS_DIR / "e2e.log")
    pw = sync_playwright().start()
    b = launch_browser(pw, settings)
    get_logger(__name__).info(f"Launched {settings.BROWSER_TYPE.value} {b.version}")
    yield b
    b.close()
    pw.stop()
    detach_file_logger(handler)


@pytest.fixture(scope="module")
def conference(browser, settings):
    conf = Conference(browser, settings)
    yield conf
    conf.close()
