"""
Tests for Cloudflare Turnstile verification.
"""
from unittest.mock import Mock, patch

import pytest
import requests

from core.turnstile_service import TurnstileService, TurnstileVerificationError


@pytest.fixture
def turnstile_settings(settings):
    settings.TURNSTILE_ENABLED = True
    settings.TURNSTILE_SECRET_KEY = 'secret-key'
    settings.TURNSTILE_TIMEOUT = 10
    return settings


def api_response(status_code=200, payload=None):
    response = Mock(status_code=status_code, text='')
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def mock_post():
    with patch('core.turnstile_service.requests.post') as mock_post:
        yield mock_post


class TestTurnstileService:

    def test_disabled_accepts_everything(self, settings, mock_post):
        settings.TURNSTILE_ENABLED = False

        assert TurnstileService().verify_token('') is True
        mock_post.assert_not_called()

    def test_missing_token(self, turnstile_settings, mock_post):
        assert TurnstileService().verify_token('') is False
        mock_post.assert_not_called()

    def test_missing_secret(self, turnstile_settings, mock_post):
        turnstile_settings.TURNSTILE_SECRET_KEY = ''

        assert TurnstileService().verify_token('token') is False
        mock_post.assert_not_called()

    def test_success(self, turnstile_settings, mock_post):
        mock_post.return_value = api_response(payload={'success': True})

        assert TurnstileService().verify_token('token', user_ip='203.0.113.7') is True
        mock_post.assert_called_once_with(
            TurnstileService.VERIFY_URL,
            data={'secret': 'secret-key', 'response': 'token', 'remoteip': '203.0.113.7'},
            timeout=10,
        )

    def test_rejected_token(self, turnstile_settings, mock_post):
        mock_post.return_value = api_response(
            payload={'success': False, 'error-codes': ['timeout-or-duplicate']}
        )

        assert TurnstileService().verify_token('token') is False
        assert 'remoteip' not in mock_post.call_args.kwargs['data']

    @pytest.mark.parametrize('error', [
        requests.exceptions.Timeout(),
        requests.exceptions.ConnectionError('down'),
    ])
    def test_network_errors_fail_closed(self, turnstile_settings, mock_post, error):
        mock_post.side_effect = error

        assert TurnstileService().verify_token('token') is False

    def test_api_error_raises(self, turnstile_settings, mock_post):
        mock_post.return_value = api_response(status_code=500)

        with pytest.raises(TurnstileVerificationError):
            TurnstileService().verify_token('token')

    def test_error_messages(self):
        message = TurnstileService().get_error_message(['invalid-input-response', 'bogus'])

        assert message == 'CAPTCHA verification failed; Unknown error: bogus'
