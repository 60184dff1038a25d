# meet_torture/meet/ui.py
from __future__ import annotations

"""Conference UI actions
-----------------------
Toolbar clicks, the remote video menu, and the mute/camera indicator checks
shared by the mute, stop-video and PSNR scenarios.
"""

from typing import List, Optional

from playwright.sync_api import Page

from meet_torture.core.session import by_id, execute_script, find_element, find_elements, get_attribute, by_xpath
from meet_torture.core.waits import (
    wait_for_displayed_element_by_xpath,
    wait_for_displayed_or_not_by_xpath,
    wait_for_element_by,
    wait_for_element_not_present_or_not_displayed_by_xpath,
    xpath_for_class_name,
)
from meet_torture.meet.participant import Participant
from meet_torture.utils.logger import get_logger

log = get_logger(__name__)

MUTE_BUTTON = "toolbar_button_mute"
CAMERA_BUTTON = "toolbar_button_camera"
LOCAL_VIDEO_CONTAINER = "localVideoContainer"

INDICATOR_TIMEOUT_MS = 5000
VIDEO_UNMUTE_TIMEOUT_MS = 10000


# ---------------- Clicks ----------------

def click_on_toolbar_button(page: Page, button_id: str) -> None:
    find_element(page, by_id(button_id)).click()


def click_on_element(page: Page, css: str, wait_for_display: bool = False) -> None:
    if wait_for_display:
        page.locator(css).first.wait_for(state="visible", timeout=INDICATOR_TIMEOUT_MS)
    find_element(page, css).click()


def click_on_button(page: Page, name: str, wait_for_display: bool = False) -> None:
    click_on_element(page, f"button[name='{name}']", wait_for_display)


# ---------------- Indicators ----------------

def mute_icon_xpath(container_id: str, video: bool) -> str:
    """XPath of the audio/video muted icon inside a thumbnail container."""
    if video:
        return (f"//span[@id='{container_id}']"
                + xpath_for_class_name("//span", "videoMuted")
                + "/i[@class='icon-camera-disabled']")
    return (f"//span[@id='{container_id}']"
            + xpath_for_class_name("//span", "audioMuted")
            + "/i[@class='icon-mic-disabled']")


def _container_id(observer: Participant, testee: Participant) -> str:
    if observer is testee:
        return LOCAL_VIDEO_CONTAINER
    return f"participant_{testee.endpoint_id}"


def assert_mute_icon_is_displayed(
    observer: Participant,
    testee: Participant,
    muted: bool,
    video: bool,
    name: str,
) -> None:
    """
    Checks, from `observer`'s page, that `testee`'s thumbnail shows (or no
    longer shows) the muted icon. Fails with TimeoutExceeded naming `name`.
    """
    xpath = mute_icon_xpath(_container_id(observer, testee), video)
    kind = "video" if video else "audio"
    log.debug(f"{observer.name}: expecting {name} {kind} {'muted' if muted else 'unmuted'}")
    wait_for_displayed_or_not_by_xpath(observer.page, xpath, INDICATOR_TIMEOUT_MS, muted)


def toggle_mute_and_check(testee: Participant, testee_name: str, observer: Participant, muted: bool) -> None:
    """Click testee's mute button and verify both sides see the new state."""
    click_on_toolbar_button(testee.page, MUTE_BUTTON)
    assert_mute_icon_is_displayed(observer, testee, muted, False, testee_name)
    assert_mute_icon_is_displayed(testee, testee, muted, False, testee_name)


def mute_video_and_check(testee: Participant, observer: Participant) -> None:
    click_on_toolbar_button(testee.page, CAMERA_BUTTON)
    assert_mute_icon_is_displayed(observer, testee, True, True, testee.name)
    assert_mute_icon_is_displayed(testee, testee, True, True, testee.name)


def start_video_and_check(testee: Participant, observer: Participant) -> None:
    """Turn testee's camera back on; the camera-off icon must go away on both sides."""
    click_on_toolbar_button(testee.page, CAMERA_BUTTON)
    remote_icon = ("//span[starts-with(@id, 'participant_')]"
                   + xpath_for_class_name("//span", "videoMuted")
                   + "/i[@class='icon-camera-disabled']")
    wait_for_element_not_present_or_not_displayed_by_xpath(observer.page, remote_icon, VIDEO_UNMUTE_TIMEOUT_MS)
    wait_for_element_not_present_or_not_displayed_by_xpath(
        testee.page, mute_icon_xpath(LOCAL_VIDEO_CONTAINER, True), VIDEO_UNMUTE_TIMEOUT_MS
    )


def mute_remote_participant(moderator: Participant, target: Participant) -> None:
    """Mute `target` through the remote video menu on moderator's thumbnail of it."""
    page = moderator.page
    container = f"[id='participant_{target.endpoint_id}']"
    page.hover(container)
    page.hover(f"{container} span.remotevideomenu")

    wait_for_displayed_element_by_xpath(
        page, "//ul[@class='popupmenu']//a[contains(@class, 'mutelink')]", INDICATOR_TIMEOUT_MS
    )
    click_on_element(page, "ul.popupmenu a.mutelink", True)
    click_on_button(page, "modal-dialog-ok-button", True)

    # the target sees itself muted
    wait_for_element_by(
        target.page,
        by_xpath(xpath_for_class_name("//span", "audioMuted") + "//i[@class='icon-mic-disabled']"),
        INDICATOR_TIMEOUT_MS,
    )


# ---------------- Video ids ----------------

def get_large_video_id(page: Page) -> Optional[str]:
    res = execute_script(page, "APP.UI.getLargeVideoID()")
    return res if isinstance(res, str) else None


def get_remote_video_ids(page: Page) -> List[str]:
    ids = []
    for el in find_elements(page, by_xpath("//span[starts-with(@id, 'participant_')]//video")):
        vid = get_attribute(el, "id")
        if vid:
            ids.append(vid)
    return ids
