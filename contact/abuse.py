"""
Abuse Tracking for the Contact Form

Per-IP sliding-window rate limiting, bad-event counting, and temporary
blocks. State lives in process memory only: every gunicorn worker keeps its
own tracker, so limits are best-effort and per process.
"""
import logging
import threading
from collections import defaultdict, deque
from datetime import timedelta

from django.utils import timezone

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Get client IP address from request (first X-Forwarded-For hop wins)."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or 'unknown'


class AbuseTracker:
    """
    In-memory abuse tracker keyed by client IP.

    - Rate limit: at most ``max_requests`` accepted attempts per ``rate_window``.
    - Escalation: ``bad_threshold`` bad events within ``bad_window`` block the
      IP for ``block_duration``.

    ``clock`` returns the current aware datetime; tests pass a fake one.
    """

    def __init__(
        self,
        max_requests=5,
        rate_window=timedelta(seconds=60),
        bad_threshold=8,
        bad_window=timedelta(minutes=10),
        block_duration=timedelta(hours=1),
        clock=timezone.now,
    ):
        self.max_requests = max_requests
        self.rate_window = rate_window
        self.bad_threshold = bad_threshold
        self.bad_window = bad_window
        self.block_duration = block_duration
        self.clock = clock

        self._lock = threading.Lock()
        self._hits = defaultdict(deque)
        self._bad_events = defaultdict(deque)
        self._blocked = {}

    @classmethod
    def from_settings(cls, settings):
        """Build a tracker from the CONTACT_* settings."""
        return cls(
            max_requests=settings.CONTACT_RATE_LIMIT_MAX,
            rate_window=timedelta(seconds=settings.CONTACT_RATE_LIMIT_WINDOW_SECONDS),
            bad_threshold=settings.CONTACT_BAD_EVENT_THRESHOLD,
            bad_window=timedelta(seconds=settings.CONTACT_BAD_EVENT_WINDOW_SECONDS),
            block_duration=timedelta(seconds=settings.CONTACT_BLOCK_SECONDS),
        )

    @staticmethod
    def _prune(windows, cutoff):
        """Drop timestamps at or before ``cutoff`` and forget empty IPs."""
        for ip in list(windows):
            events = windows[ip]
            while events and events[0] <= cutoff:
                events.popleft()
            if not events:
                del windows[ip]

    def rate_limited(self, ip):
        """
        Check the rate window for ``ip``.

        Returns True if the IP already has ``max_requests`` attempts inside
        the window. Otherwise records this attempt and returns False.
        """
        now = self.clock()
        with self._lock:
            self._prune(self._hits, now - self.rate_window)
            if len(self._hits.get(ip, ())) >= self.max_requests:
                logger.info(f"Contact form rate limit hit for {ip}")
                return True
            self._hits[ip].append(now)
            return False

    def is_blocked(self, ip):
        """True while a block for ``ip`` has not expired. Expired blocks are evicted."""
        now = self.clock()
        with self._lock:
            until = self._blocked.get(ip)
            if until is None:
                return False
            if now < until:
                return True
            del self._blocked[ip]
            return False

    def block(self, ip, duration=None):
        """Block ``ip`` until now + ``duration`` (defaults to ``block_duration``)."""
        until = self.clock() + (duration or self.block_duration)
        with self._lock:
            self._blocked[ip] = until
        logger.warning(f"Contact form: blocking {ip} until {until.isoformat()}")

    def mark_bad(self, ip):
        """Record a rejected submission and block the IP once the threshold is reached."""
        now = self.clock()
        with self._lock:
            self._bad_events[ip].append(now)
            self._prune(self._bad_events, now - self.bad_window)
            count = len(self._bad_events.get(ip, ()))
        logger.info(f"Contact form bad event for {ip} ({count}/{self.bad_threshold})")
        if count >= self.bad_threshold:
            self.block(ip)

    def retry_after(self, ip):
        """Seconds until ``ip`` is neither blocked nor rate limited (0 if free now)."""
        now = self.clock()
        with self._lock:
            until = self._blocked.get(ip)
            if until is not None and now < until:
                return max(int((until - now).total_seconds()), 1)

            hits = self._hits.get(ip)
            if hits and len(hits) >= self.max_requests:
                window_end = hits[0] + self.rate_window
                if window_end > now:
                    return max(int((window_end - now).total_seconds()), 1)
        return 0

    def reset(self):
        """Forget everything."""
        with self._lock:
            self._hits.clear()
            self._bad_events.clear()
            self._blocked.clear()
