"""
Unit tests for NotificationCenter
"""
from saafy.domain.valueobjects.notice_type import NoticeType
from saafy.services.notifications import PERSISTENT, NotificationCenter


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestNotificationCenter:

    def test_add_returns_increasing_ids(self):
        center = NotificationCenter()

        first = center.add("one")
        second = center.add("two")

        assert second > first
        assert [n.message for n in center.active()] == ["one", "two"]

    def test_shortcuts_set_type(self):
        center = NotificationCenter()
        center.success("ok")
        center.error("bad")
        center.info("fyi")
        center.warning("careful")

        assert [n.type for n in center.active()] == [
            NoticeType.SUCCESS,
            NoticeType.ERROR,
            NoticeType.INFO,
            NoticeType.WARNING,
        ]

    def test_notices_expire(self):
        clock = Clock()
        center = NotificationCenter(clock)
        center.add("short", duration=1.0)
        center.add("default")

        clock.now = 2.0
        assert [n.message for n in center.active()] == ["default"]

        clock.now = 3.5
        assert center.active() == []

    def test_persistent_notice(self):
        clock = Clock()
        center = NotificationCenter(clock)
        center.add("sticky", duration=PERSISTENT)

        clock.now = 10_000
        assert len(center.active()) == 1

    def test_remove(self):
        center = NotificationCenter()
        notice_id = center.add("bye")

        assert center.remove(notice_id) is True
        assert center.remove(notice_id) is False
        assert center.active() == []

    def test_listeners_receive_notices(self):
        center = NotificationCenter()
        seen = []
        center.add_listener(seen.append)

        center.error("boom")

        assert seen[0].message == "boom"
        assert seen[0].type == NoticeType.ERROR

    def test_failing_listener_does_not_block(self):
        center = NotificationCenter()
        seen = []

        def broken(notice):
            raise RuntimeError("listener bug")

        center.add_listener(broken)
        center.add_listener(seen.append)
        center.info("still delivered")

        assert len(seen) == 1

    def test_clear(self):
        center = NotificationCenter()
        center.add("a")
        center.clear()

        assert center.active() == []
