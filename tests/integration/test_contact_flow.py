"""
End-to-end tests for the contact form: real Turnstile client (HTTP mocked),
real abuse tracker, locmem email backend.

Run with: pytest tests/integration/test_contact_flow.py -v
"""
from unittest.mock import Mock, patch

import pytest
from rest_framework import status

URL = '/api/contact'


@pytest.fixture
def turnstile_settings(settings):
    settings.TURNSTILE_ENABLED = True
    settings.TURNSTILE_SECRET_KEY = 'secret-key'
    return settings


def siteverify(success=True, status_code=200):
    response = Mock(status_code=status_code, text='')
    response.json.return_value = {'success': success, 'error-codes': [] if success else ['invalid-input-response']}
    return response


@patch('core.turnstile_service.requests.post')
class TestContactFlow:

    def test_full_submission(
        self, mock_post, api_client, app_tracker, smtp_settings, turnstile_settings,
        valid_submission, mailoutbox
    ):
        mock_post.return_value = siteverify(success=True)

        response = api_client.post(URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'ok': True}
        assert mock_post.call_args.kwargs['data']['remoteip'] == '127.0.0.1'
        assert len(mailoutbox) == 1
        assert mailoutbox[0].reply_to == ['jane@example.com']

    def test_repeated_captcha_failures_end_in_block(
        self, mock_post, api_client, app_tracker, clock, turnstile_settings, valid_submission
    ):
        mock_post.return_value = siteverify(success=False)

        for _ in range(8):
            response = api_client.post(URL, valid_submission, format='json')
            assert response.json() == {'ok': False, 'error': 'turnstile_failed'}
            clock.advance(seconds=20)

        response = api_client.post(URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert mock_post.call_count == 8

    def test_turnstile_outage_is_a_server_error(
        self, mock_post, api_client, app_tracker, turnstile_settings, valid_submission, mailoutbox
    ):
        mock_post.return_value = siteverify(status_code=503)

        response = api_client.post(URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'ok': False, 'error': 'Server error.'}
        assert mailoutbox == []
        assert not app_tracker.is_blocked('127.0.0.1')
