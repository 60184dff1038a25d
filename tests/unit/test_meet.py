import pytest

from meet_torture.core.poller import TimeoutExceeded
from meet_torture.meet import conference, heartbeat, ui
from meet_torture.meet.conference import Conference, get_protocol
from meet_torture.meet.heartbeat import HeartbeatTask
from meet_torture.meet.participant import Participant, ParticipantError
from meet_torture.utils.config import Settings
from tests.unit.fakes import FakeElement, FakeParticipant, sequence


def test_mute_icon_xpath_for_audio_and_video():
    audio = ui.mute_icon_xpath("localVideoContainer", video=False)
    video = ui.mute_icon_xpath("participant_ab12", video=True)
    assert audio.startswith("//span[@id='localVideoContainer']//span[")
    assert "' audioMuted '" in audio and audio.endswith("/i[@class='icon-mic-disabled']")
    assert "' videoMuted '" in video and video.endswith("/i[@class='icon-camera-disabled']")


def test_mute_icon_seen_by_remote_observer(clock):
    observer, testee = FakeParticipant("participant2"), FakeParticipant("participant1", endpoint_id="ab12")
    icon = "xpath=" + ui.mute_icon_xpath("participant_ab12", video=False)
    observer.page.dom[icon] = sequence([], [FakeElement(visible=True)])
    ui.assert_mute_icon_is_displayed(observer, testee, True, False, "participant1")
    assert clock.now == 500


def test_local_observer_checks_local_container(clock):
    me = FakeParticipant("participant1")
    icon = "xpath=" + ui.mute_icon_xpath(ui.LOCAL_VIDEO_CONTAINER, video=True)
    me.page.dom[icon] = [FakeElement(visible=True)]
    with pytest.raises(TimeoutExceeded, match="Is not displayed"):
        ui.assert_mute_icon_is_displayed(me, me, False, True, "participant1")


def test_toggle_mute_clicks_and_checks_both_sides(clock):
    testee, observer = FakeParticipant("participant1", endpoint_id="ab12"), FakeParticipant("participant2")
    button = FakeElement()
    testee.page.dom["[id='toolbar_button_mute']"] = [button]
    ui.toggle_mute_and_check(testee, "participant1", observer, False)
    assert button.clicks == 1


def test_remote_video_ids(page):
    page.dom["xpath=//span[starts-with(@id, 'participant_')]//video"] = [
        FakeElement(attrs={"id": "remoteVideo_a"}),
        FakeElement(attrs={}),
        FakeElement(attrs={"id": "remoteVideo_b"}),
    ]
    assert ui.get_remote_video_ids(page) == ["remoteVideo_a", "remoteVideo_b"]


def test_large_video_id(page):
    page.scripts["APP.UI.getLargeVideoID()"] = "ab12"
    assert ui.get_large_video_id(page) == "ab12"


def test_protocol_is_lower_cased(page):
    page.scripts[conference._PROTOCOL_SCRIPT] = "UDP"
    assert get_protocol(page) == "udp"
    page.scripts[conference._PROTOCOL_SCRIPT] = None
    assert get_protocol(page) is None


def test_wait_for_ice_connected(clock, page):
    page.scripts[conference._ICE_CONNECTED_SCRIPT] = sequence(False, False, True)
    conference.wait_for_ice_connected(page, 5000)
    assert clock.now == 1000


def test_participant_requires_join():
    p = Participant("participant1", browser=None, settings=Settings(_env_file=None))
    assert not p.is_joined
    with pytest.raises(ParticipantError):
        _ = p.page
    p.hang_up()


def test_join_needs_base_url(monkeypatch):
    monkeypatch.delenv("MEET_BASE_URL", raising=False)
    p = Participant("participant1", browser=None, settings=Settings(_env_file=None))
    with pytest.raises(ParticipantError, match="MEET_BASE_URL"):
        p.join("room")


def test_conference_names_participants_in_join_order():
    conf = Conference(browser=None, settings=Settings(_env_file=None), room="torture1")
    assert conf.participant(3).name == "participant3"
    assert [p.name for p in conf.participants] == ["participant1", "participant2", "participant3"]
    assert conf.room == "torture1"
    assert Conference(browser=None, settings=Settings(_env_file=None)).room.startswith("torture")


def test_heartbeat_records_failures(monkeypatch, clock):
    monkeypatch.setattr(heartbeat, "now_ms", clock.now_ms)
    monkeypatch.setattr(heartbeat, "sleep_ms", clock.sleep_ms)
    p1, p2 = FakeParticipant("participant1"), FakeParticipant("participant2")
    for p in (p1, p2):
        p.page.scripts[conference._IN_MUC_SCRIPT] = True
        p.page.scripts[conference._ICE_CONNECTED_SCRIPT] = True
    p2.page.scripts[conference._ICE_CONNECTED_SCRIPT] = sequence(True, False)

    task = HeartbeatTask([p1, p2], duration_ms=3000, period_ms=1000, delay_ms=1000)
    failures = task.run()

    assert task.beats == 2
    assert [(f.at_ms, f.participant, f.reason) for f in failures] == [(2000, "participant2", "ICE not connected")]
    assert not task.healthy
    assert clock.now == 3000
