"""
Tests for the Contact Form Endpoint
"""
import smtplib
from unittest.mock import MagicMock, patch

import pytest
from rest_framework import status
from rest_framework.test import APIRequestFactory

from contact.views import ContactFormSubmitView

URL = '/api/contact'
CLIENT_IP = '127.0.0.1'


@pytest.fixture
def submit(api_client):
    def _submit(data, **extra):
        return api_client.post(URL, data, format='json', **extra)
    return _submit


class TestContactFormSubmission:
    """Test the happy path and the request-level gates."""

    def test_submit_valid_contact_form(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission, mailoutbox
    ):
        response = submit(valid_submission)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'ok': True}
        assert len(mailoutbox) == 1

        email = mailoutbox[0]
        assert email.from_email == 'Website Contact <contact@example.com>'
        assert email.to == ['team@example.com']
        assert email.reply_to == ['jane@example.com']
        assert email.subject == 'New contact: Jane Doe'
        assert 'Organization: Green Valley Cooperative' in email.body
        html, mimetype = email.alternatives[0]
        assert mimetype == 'text/html'
        assert 'Jane Doe' in html
        assert f'IP: {CLIENT_IP}' in html

    def test_captcha_checked_with_token_and_ip(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission
    ):
        submit(valid_submission)

        captcha_ok.assert_called_once_with('test-token', CLIENT_IP)

    def test_wrong_method_rejected(self, api_client, app_tracker):
        response = api_client.get(URL)

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json() == {'ok': False, 'error': 'Method not allowed'}

    def test_options_rejected(self, api_client, app_tracker):
        response = api_client.options(URL)

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json() == {'ok': False, 'error': 'Method not allowed'}

    def test_non_json_body_rejected(self, api_client, app_tracker, captcha_ok):
        response = api_client.post(URL, 'name=Jane', content_type='application/x-www-form-urlencoded')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'ok': False, 'error': 'Send JSON body'}
        captcha_ok.assert_not_called()

    def test_malformed_json_rejected(self, api_client, app_tracker):
        response = api_client.post(URL, '{"name": ', content_type='application/json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['ok'] is False

    def test_oversized_body_rejected(self, submit, app_tracker, valid_submission):
        valid_submission['message'] = 'word ' * 30000

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        assert response.json()['ok'] is False

    def test_unexpected_error_becomes_500(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission
    ):
        with patch(
            'contact.serializers.ContactFormSubmitSerializer.is_valid',
            side_effect=RuntimeError('boom')
        ):
            response = submit(valid_submission)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'ok': False, 'error': 'Server error.'}


class TestHoneypot:
    """A filled honeypot looks like success but does nothing."""

    def test_honeypot_returns_fake_success(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission, mailoutbox
    ):
        valid_submission['_gotcha'] = 'http://spam.example.com'

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'ok': True}
        assert mailoutbox == []
        captcha_ok.assert_not_called()

    def test_honeypot_leaves_tracker_untouched(self, submit, app_tracker, valid_submission):
        valid_submission['_gotcha'] = 'bot'

        for _ in range(10):
            submit(valid_submission)

        assert not app_tracker.is_blocked(CLIENT_IP)
        assert app_tracker.retry_after(CLIENT_IP) == 0
        assert not app_tracker.rate_limited(CLIENT_IP)


class TestCaptcha:
    """Test Turnstile verification gate."""

    def test_missing_token(self, submit, app_tracker, valid_submission, mailoutbox):
        del valid_submission['cf-turnstile-response']

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'ok': False, 'error': 'missing_turnstile_token'}
        assert len(app_tracker._bad_events[CLIENT_IP]) == 1
        assert mailoutbox == []

    @patch('core.turnstile_service.turnstile_service.verify_token')
    def test_failed_verification(self, mock_captcha, submit, app_tracker, valid_submission):
        mock_captcha.return_value = False

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'ok': False, 'error': 'turnstile_failed'}
        assert len(app_tracker._bad_events[CLIENT_IP]) == 1


class TestFieldValidation:
    """Test the ordered field checks; every failure is a bad event."""

    @pytest.mark.parametrize('field', ['name', 'email', 'message'])
    def test_required_fields(self, field, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission[field] = '   '

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            'ok': False,
            'error': 'name, email and message are required.',
        }
        assert len(app_tracker._bad_events[CLIENT_IP]) == 1

    def test_invalid_email(self, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission['email'] = 'not-an-email'

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'ok': False, 'error': 'Invalid email.'}

    def test_invalid_email_reported_before_other_problems(
        self, submit, app_tracker, captcha_ok, valid_submission
    ):
        valid_submission.update(email='not-an-email', name='x', message='short')

        response = submit(valid_submission)

        assert response.json()['error'] == 'Invalid email.'

    def test_non_string_values_do_not_mask_email_error(
        self, submit, app_tracker, captcha_ok, valid_submission
    ):
        valid_submission.update(email='not-an-email', organization=['Acme'], interest={'a': 1})

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid email.'}

    def test_non_string_values_are_stringified(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission, mailoutbox
    ):
        valid_submission['interest'] = 42

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_200_OK
        assert 'Interest: 42' in mailoutbox[0].body

    def test_overlong_email_rejected_not_truncated(
        self, submit, app_tracker, captcha_ok, valid_submission
    ):
        valid_submission['email'] = 'a' * 250 + '@example.com'

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid email.'}

    def test_name_with_newline_is_collapsed(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission, mailoutbox
    ):
        valid_submission['name'] = 'Jane\nDoe'

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'ok': True}
        assert mailoutbox[0].subject == 'New contact: Jane Doe'
        assert 'Name: Jane Doe' in mailoutbox[0].body

    def test_single_word_name(self, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission['name'] = 'Jane'

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid name.'}

    def test_gibberish_name(self, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission['name'] = 'Xkcdrtpq Wzzvbnm'

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid name.'}

    def test_gibberish_organization(self, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission['organization'] = 'qwrtpsdfgh'

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid organization.'}

    def test_base64_message(self, submit, app_tracker, captcha_ok, valid_submission, mailoutbox):
        valid_submission['message'] = 'dGhpcyBpcyBhIHJhbmRvbSBibG9iIG9mIGRhdGE='

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'ok': False, 'error': 'Invalid message.'}
        assert len(app_tracker._bad_events[CLIENT_IP]) == 1
        assert mailoutbox == []

    def test_short_message(self, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission['message'] = 'Hello there'

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid message.'}

    def test_message_with_too_many_links(self, submit, app_tracker, captcha_ok, valid_submission):
        valid_submission['message'] = (
            'Please look at https://one.example.com and https://two.example.com '
            'and also https://three.example.com for our offer.'
        )

        response = submit(valid_submission)

        assert response.json() == {'ok': False, 'error': 'Invalid message.'}

    def test_aliases_and_normalization(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission, mailoutbox
    ):
        del valid_submission['organization']
        del valid_submission['interest']
        valid_submission.update(
            org='Sunrise Foundation',
            topic='Training',
            email='  Jane@Example.COM ',
            name='  Jane Doe  ',
        )

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_200_OK
        email = mailoutbox[0]
        assert email.reply_to == ['jane@example.com']
        assert email.subject == 'New contact: Jane Doe'
        assert 'Organization: Sunrise Foundation' in email.body
        assert 'Interest: Training' in email.body


class TestRateLimiting:
    """Test per-IP rate limiting through the endpoint."""

    def test_sixth_submission_in_a_minute_is_limited(
        self, submit, app_tracker, clock, smtp_settings, captcha_ok, valid_submission
    ):
        for _ in range(5):
            response = submit(valid_submission)
            assert response.status_code == status.HTTP_200_OK

        response = submit(valid_submission)
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.json() == {
            'ok': False,
            'error': 'Too many requests, try again later.',
        }
        assert response['Retry-After'] == '60'

        clock.advance(seconds=60)
        response = submit(valid_submission)
        assert response.status_code == status.HTTP_200_OK

    def test_limits_are_per_ip(
        self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission
    ):
        for _ in range(5):
            submit(valid_submission)

        response = submit(valid_submission, HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1')

        assert response.status_code == status.HTTP_200_OK


class TestBlocking:
    """Test escalation from bad events to a temporary block."""

    def test_blocked_ip_is_forbidden(self, submit, app_tracker, captcha_ok, valid_submission):
        app_tracker.block(CLIENT_IP)

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {'ok': False, 'error': 'IP temporarily blocked.'}
        assert response['Retry-After'] == '3600'
        captcha_ok.assert_not_called()

    def test_eight_bad_events_block_for_an_hour(
        self, submit, app_tracker, clock, smtp_settings, captcha_ok, valid_submission
    ):
        bad = dict(valid_submission, email='not-an-email')

        # 15s apart keeps every request under the rate limit
        for _ in range(8):
            response = submit(bad)
            assert response.status_code == status.HTTP_400_BAD_REQUEST
            clock.advance(seconds=15)

        response = submit(valid_submission)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        clock.advance(hours=1)
        response = submit(valid_submission)
        assert response.status_code == status.HTTP_200_OK


class TestMailFailures:
    """SMTP failures come back as distinct 500 codes."""

    def test_missing_credentials(self, submit, app_tracker, smtp_settings, captcha_ok, valid_submission):
        smtp_settings.SMTP_PASS = ''

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            'ok': False,
            'error': 'SMTP credentials missing.',
            'code': 'smtp_not_configured',
        }

    @patch('contact.mail.get_connection')
    def test_verify_failure(
        self, mock_get_connection, submit, app_tracker, smtp_settings, captcha_ok, valid_submission
    ):
        connection = MagicMock()
        connection.open.side_effect = smtplib.SMTPAuthenticationError(
            535, b'5.7.3 Authentication unsuccessful'
        )
        mock_get_connection.return_value = connection

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()['code'] == 'smtp_verify_failed'
        connection.send_messages.assert_not_called()
        connection.close.assert_called_once()

    @patch('contact.mail.get_connection')
    def test_send_failure(
        self, mock_get_connection, submit, app_tracker, smtp_settings, captcha_ok, valid_submission
    ):
        connection = MagicMock()
        connection.send_messages.side_effect = smtplib.SMTPDataError(554, b'Message rejected')
        mock_get_connection.return_value = connection

        response = submit(valid_submission)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()['code'] == 'smtp_send_failed'
        connection.send_messages.assert_called_once()
        connection.close.assert_called_once()


class TestInjectedTracker:
    """The view accepts its tracker through as_view()."""

    def test_view_uses_injected_tracker(
        self, tracker, app_tracker, smtp_settings, captcha_ok, valid_submission
    ):
        factory = APIRequestFactory()
        view = ContactFormSubmitView.as_view(abuse_tracker=tracker)
        tracker.block('10.0.0.5')

        request = factory.post(URL, valid_submission, format='json', REMOTE_ADDR='10.0.0.5')
        response = view(request)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not app_tracker.is_blocked('10.0.0.5')
