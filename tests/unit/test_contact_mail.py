"""
Tests for contact email composition and delivery errors.
"""
from unittest.mock import patch

import pytest

from contact.mail import (
    ContactMailer,
    MailConfigurationError,
    build_html_body,
    build_subject,
    build_text_body,
)
from contact.models import Submission


@pytest.fixture
def submission():
    return Submission(
        name='Jane Doe',
        email='jane@example.com',
        message='Line one <script>alert("x")</script>\nLine two & more',
        ip_address='203.0.113.7',
    )


class TestComposition:

    def test_subject(self, submission):
        assert build_subject(submission) == 'New contact: Jane Doe'

    def test_subject_stays_on_one_line(self, submission):
        multiline = Submission(name='Jane\n  Doe', email=submission.email, message=submission.message)

        assert build_subject(multiline) == 'New contact: Jane Doe'

    def test_text_body_is_verbatim_with_placeholders(self, submission):
        body = build_text_body(submission)

        assert body.splitlines() == [
            'Name: Jane Doe',
            'Email: jane@example.com',
            'Organization: -',
            'Interest: -',
            '',
            'Message:',
            'Line one <script>alert("x")</script>',
            'Line two & more',
        ]

    def test_html_body_escapes_user_content(self, submission):
        html = build_html_body(submission)

        assert '<script>' not in html
        assert '&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;' in html
        assert '<br>Line two &amp; more' in html
        assert 'IP: 203.0.113.7' in html


class TestContactMailer:

    def test_reads_settings(self, smtp_settings):
        mailer = ContactMailer()

        assert mailer.host == 'smtp.example.com'
        assert mailer.to_address == 'team@example.com'
        assert mailer.from_address == 'Website Contact <contact@example.com>'

    def test_recipient_falls_back_to_smtp_user(self, smtp_settings):
        smtp_settings.CONTACT_TO = ''

        assert ContactMailer().to_address == 'contact@example.com'

    @pytest.mark.parametrize('secure,use_ssl,use_tls', [(True, True, False), (False, False, True)])
    @patch('contact.mail.get_connection')
    def test_connection_security(self, mock_get_connection, secure, use_ssl, use_tls, smtp_settings):
        ContactMailer(secure=secure, timeout=5).get_connection()

        kwargs = mock_get_connection.call_args.kwargs
        assert kwargs['use_ssl'] is use_ssl
        assert kwargs['use_tls'] is use_tls
        assert kwargs['timeout'] == 5
        assert kwargs['host'] == 'smtp.example.com'
        assert kwargs['username'] == 'contact@example.com'

    @patch('contact.mail.get_connection')
    def test_missing_credentials_never_connect(self, mock_get_connection, submission, smtp_settings):
        smtp_settings.SMTP_USER = ''

        with pytest.raises(MailConfigurationError) as excinfo:
            ContactMailer().send(submission)

        assert excinfo.value.code == 'smtp_not_configured'
        mock_get_connection.assert_not_called()

    def test_send_delivers_one_message(self, submission, smtp_settings, mailoutbox):
        sent = ContactMailer().send(submission)

        assert sent == 1
        assert len(mailoutbox) == 1
        assert mailoutbox[0].reply_to == ['jane@example.com']
