"""Camera stop/start scenarios. Tests run in file order and share one conference."""

import pytest

from meet_torture.core.session import execute_script
from meet_torture.core.waits import (
    execute_script_and_return_boolean,
    wait_for_element_by_xpath,
    wait_for_element_not_present_or_not_displayed_by_xpath,
    xpath_for_class_name,
)
from meet_torture.meet import ui
from meet_torture.meet.conference import wait_for_ice_connected, wait_for_participant_to_join_muc
from meet_torture.utils.timing import sleep_ms

pytestmark = pytest.mark.e2e

CAMERA_OFF_ICON = xpath_for_class_name("//span", "videoMuted") + "/i[@class='icon-camera-disabled']"

LISTEN_FOR_TRACK = """() => APP.conference._room.addEventListener(
  JitsiMeetJS.events.conference.%s, () => { APP.%s = true; })"""


@pytest.fixture(scope="module", autouse=True)
def two_participants(conference):
    conference.ensure_two_participants()


def stop_owner_video(conference):
    ui.mute_video_and_check(conference.participant(1), conference.participant(2))


def start_owner_video(conference):
    ui.start_video_and_check(conference.participant(1), conference.participant(2))


def test_stop_video_on_owner(conference):
    stop_owner_video(conference)


def test_start_video_on_owner(conference):
    start_owner_video(conference)


def test_large_video_survives_owner_stop_start(conference):
    owner = conference.participant(1).page
    stop_owner_video(conference)
    remote_on_large = ui.get_large_video_id(owner)
    start_owner_video(conference)
    assert ui.get_large_video_id(owner) == remote_on_large


def test_owner_stop_start_keeps_remote_tracks(conference):
    page = conference.participant(2).page
    execute_script(page, LISTEN_FOR_TRACK % ("TRACK_REMOVED", "_remoteRemoved"))
    execute_script(page, LISTEN_FOR_TRACK % ("TRACK_ADDED", "_remoteAdded"))

    stop_owner_video(conference)
    start_owner_video(conference)
    sleep_ms(1000)

    assert not execute_script_and_return_boolean(page, "APP._remoteRemoved"), "Remote stream was removed"
    assert not execute_script_and_return_boolean(page, "APP._remoteAdded"), "Remote stream was added"


def test_stop_video_on_participant(conference):
    ui.mute_video_and_check(conference.participant(2), conference.participant(1))


def test_start_video_on_participant(conference):
    p1, p2 = conference.participant(1), conference.participant(2)
    ui.click_on_toolbar_button(p2.page, ui.CAMERA_BUTTON)
    wait_for_element_not_present_or_not_displayed_by_xpath(p1.page, CAMERA_OFF_ICON, ui.INDICATOR_TIMEOUT_MS)
    wait_for_element_not_present_or_not_displayed_by_xpath(p2.page, CAMERA_OFF_ICON, ui.INDICATOR_TIMEOUT_MS)


def test_stop_owner_video_before_participant2_joins(conference, settings):
    p1, p2 = conference.participant(1), conference.participant(2)
    p2.hang_up()
    sleep_ms(1000)

    ui.click_on_toolbar_button(p1.page, ui.CAMERA_BUTTON)
    sleep_ms(500)

    conference.ensure_two_participants()
    wait_for_participant_to_join_muc(p2.page, settings.JOIN_TIMEOUT)
    wait_for_ice_connected(p2.page)
    wait_for_element_by_xpath(p2.page, CAMERA_OFF_ICON, ui.INDICATOR_TIMEOUT_MS)

    start_owner_video(conference)
    sleep_ms(1500)
