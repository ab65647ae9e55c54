"""
Tests for the in-memory abuse tracker.

Run with: pytest tests/unit/test_abuse_tracker.py -v
"""
from datetime import timedelta
from types import SimpleNamespace

from contact.abuse import AbuseTracker, get_client_ip

IP = '198.51.100.10'
OTHER_IP = '198.51.100.20'


class TestRateLimit:

    def test_five_attempts_allowed_sixth_limited(self, tracker):
        for _ in range(5):
            assert tracker.rate_limited(IP) is False

        assert tracker.rate_limited(IP) is True

    def test_window_slides_from_oldest_attempt(self, tracker, clock):
        tracker.rate_limited(IP)
        clock.advance(seconds=30)
        for _ in range(4):
            tracker.rate_limited(IP)
        assert tracker.rate_limited(IP) is True

        # Oldest attempt ages out at 60s; the other four are still inside.
        clock.advance(seconds=30)
        assert tracker.rate_limited(IP) is False
        assert tracker.rate_limited(IP) is True

    def test_limited_attempts_are_not_recorded(self, tracker, clock):
        for _ in range(5):
            tracker.rate_limited(IP)
        for _ in range(3):
            clock.advance(seconds=10)
            assert tracker.rate_limited(IP) is True

        clock.advance(seconds=30)
        assert tracker.rate_limited(IP) is False

    def test_ips_are_independent(self, tracker):
        for _ in range(5):
            tracker.rate_limited(IP)

        assert tracker.rate_limited(OTHER_IP) is False

    def test_retry_after_counts_down_to_window_end(self, tracker, clock):
        for _ in range(5):
            tracker.rate_limited(IP)
        clock.advance(seconds=20)

        assert tracker.retry_after(IP) == 40
        assert tracker.retry_after(OTHER_IP) == 0


class TestBadEvents:

    def test_seven_bad_events_do_not_block(self, tracker):
        for _ in range(7):
            tracker.mark_bad(IP)

        assert tracker.is_blocked(IP) is False

    def test_eighth_bad_event_blocks_for_an_hour(self, tracker, clock):
        for _ in range(8):
            tracker.mark_bad(IP)

        assert tracker.is_blocked(IP) is True
        assert tracker.retry_after(IP) == 3600

        clock.advance(minutes=59)
        assert tracker.is_blocked(IP) is True

        clock.advance(minutes=1)
        assert tracker.is_blocked(IP) is False
        assert IP not in tracker._blocked

    def test_old_bad_events_fall_out_of_window(self, tracker, clock):
        for _ in range(7):
            tracker.mark_bad(IP)
        clock.advance(minutes=10)

        tracker.mark_bad(IP)

        assert tracker.is_blocked(IP) is False

    def test_bad_events_do_not_leak_between_ips(self, tracker):
        for _ in range(4):
            tracker.mark_bad(IP)
            tracker.mark_bad(OTHER_IP)

        assert tracker.is_blocked(IP) is False
        assert tracker.is_blocked(OTHER_IP) is False

    def test_custom_limits(self, clock):
        tracker = AbuseTracker(
            bad_threshold=2,
            block_duration=timedelta(minutes=5),
            clock=clock,
        )
        tracker.mark_bad(IP)
        tracker.mark_bad(IP)

        assert tracker.is_blocked(IP) is True
        clock.advance(minutes=5)
        assert tracker.is_blocked(IP) is False


class TestLifecycle:

    def test_from_settings(self, settings):
        settings.CONTACT_RATE_LIMIT_MAX = 3
        settings.CONTACT_RATE_LIMIT_WINDOW_SECONDS = 30
        settings.CONTACT_BAD_EVENT_THRESHOLD = 4
        settings.CONTACT_BAD_EVENT_WINDOW_SECONDS = 120
        settings.CONTACT_BLOCK_SECONDS = 900

        tracker = AbuseTracker.from_settings(settings)

        assert tracker.max_requests == 3
        assert tracker.rate_window == timedelta(seconds=30)
        assert tracker.bad_threshold == 4
        assert tracker.bad_window == timedelta(minutes=2)
        assert tracker.block_duration == timedelta(minutes=15)

    def test_reset_forgets_everything(self, tracker):
        for _ in range(8):
            tracker.rate_limited(IP)
            tracker.mark_bad(IP)

        tracker.reset()

        assert tracker.is_blocked(IP) is False
        assert tracker.rate_limited(IP) is False


class TestClientIP:

    def test_first_forwarded_hop_wins(self):
        request = SimpleNamespace(META={
            'HTTP_X_FORWARDED_FOR': ' 203.0.113.7 , 10.0.0.1',
            'REMOTE_ADDR': '10.0.0.1',
        })
        assert get_client_ip(request) == '203.0.113.7'

    def test_remote_addr_fallback(self):
        request = SimpleNamespace(META={'REMOTE_ADDR': '10.0.0.1'})
        assert get_client_ip(request) == '10.0.0.1'

    def test_unknown_when_nothing_available(self):
        request = SimpleNamespace(META={})
        assert get_client_ip(request) == 'unknown'
