"""
Shared pytest fixtures.
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.apps import apps
from rest_framework.test import APIClient

from contact.abuse import AbuseTracker


class FakeClock:
    """Callable clock for the abuse tracker that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=dt_timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    """A fresh tracker with the default limits and a fake clock."""
    return AbuseTracker(clock=clock)


@pytest.fixture
def app_tracker(clock):
    """The contact app's per-process tracker, wiped and put on the fake clock."""
    app_tracker = apps.get_app_config('contact').abuse_tracker
    original_clock = app_tracker.clock
    app_tracker.reset()
    app_tracker.clock = clock
    yield app_tracker
    app_tracker.reset()
    app_tracker.clock = original_clock


@pytest.fixture
def smtp_settings(settings):
    settings.SMTP_HOST = 'smtp.example.com'
    settings.SMTP_PORT = 587
    settings.SMTP_SECURE = False
    settings.SMTP_USER = 'contact@example.com'
    settings.SMTP_PASS = 'app-password'
    settings.CONTACT_TO = 'team@example.com'
    settings.CONTACT_FROM_NAME = 'Website Contact'
    return settings


@pytest.fixture
def captcha_ok():
    with patch('core.turnstile_service.turnstile_service.verify_token') as mock_captcha:
        mock_captcha.return_value = True
        yield mock_captcha


@pytest.fixture
def valid_submission():
    return {
        'name': 'Jane Doe',
        'email': 'jane@example.com',
        'organization': 'Green Valley Cooperative',
        'interest': 'Partnership',
        'message': (
            'Hello team, we are a small nonprofit working on renewable energy '
            'projects in rural communities and would love to discuss a possible '
            'partnership with your organization sometime next month.'
        ),
        '_gotcha': '',
        'cf-turnstile-response': 'test-token',
    }
