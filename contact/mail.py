"""
Contact Form Email

Composes the notification email for a validated submission and relays it
through the configured SMTP server. One attempt, no retries.
"""
import logging
from email.utils import formataddr

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """Base class for contact email failures. ``code`` is safe to show callers."""

    code = 'smtp_error'
    public_message = 'Email could not be sent.'

    def __init__(self, message, smtp_code=None):
        super().__init__(message)
        self.smtp_code = smtp_code


class MailConfigurationError(MailDeliveryError):
    code = 'smtp_not_configured'
    public_message = 'SMTP credentials missing.'


class MailVerifyError(MailDeliveryError):
    code = 'smtp_verify_failed'
    public_message = 'Email service unavailable.'


class MailSendError(MailDeliveryError):
    code = 'smtp_send_failed'
    public_message = 'Email could not be sent.'


def _smtp_error_detail(exc):
    """Pull an SMTP reply code and readable message out of an exception."""
    smtp_code = getattr(exc, 'smtp_code', None)
    smtp_error = getattr(exc, 'smtp_error', None)
    if isinstance(smtp_error, bytes):
        smtp_error = smtp_error.decode('utf-8', 'replace')
    return smtp_code, smtp_error or str(exc) or type(exc).__name__


def build_subject(submission):
    # Header values must stay on one line.
    return f"New contact: {' '.join(submission.name.split())}"


def build_text_body(submission):
    return "\n".join([
        f"Name: {submission.name}",
        f"Email: {submission.email}",
        f"Organization: {submission.organization or '-'}",
        f"Interest: {submission.interest or '-'}",
        "",
        "Message:",
        submission.message,
    ])


def build_html_body(submission):
    # Template autoescaping takes care of user content.
    return render_to_string('contact/emails/submission.html', {
        'submission': submission,
    })


class ContactMailer:
    """
    Sends contact notifications through an SMTP relay.

    From is the authenticated SMTP user (many relays, Microsoft 365
    included, refuse anything else); Reply-To is the submitter.
    """

    def __init__(
        self,
        host=None,
        port=None,
        secure=None,
        username=None,
        password=None,
        to_address=None,
        from_name=None,
        timeout=None,
        backend=None,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.secure = settings.SMTP_SECURE if secure is None else secure
        self.username = settings.SMTP_USER if username is None else username
        self.password = settings.SMTP_PASS if password is None else password
        self.to_address = to_address or settings.CONTACT_TO or self.username
        self.from_name = from_name or settings.CONTACT_FROM_NAME
        self.timeout = timeout or settings.SMTP_TIMEOUT
        self.backend = backend or settings.EMAIL_BACKEND

    @property
    def from_address(self):
        return formataddr((self.from_name, self.username))

    def get_connection(self):
        # Implicit TLS when secure, STARTTLS otherwise.
        return get_connection(
            backend=self.backend,
            fail_silently=False,
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            use_ssl=self.secure,
            use_tls=not self.secure,
            timeout=self.timeout,
        )

    def build_message(self, submission, connection=None):
        message = EmailMultiAlternatives(
            subject=build_subject(submission),
            body=build_text_body(submission),
            from_email=self.from_address,
            to=[self.to_address],
            reply_to=[submission.email],
            connection=connection,
        )
        message.attach_alternative(build_html_body(submission), "text/html")
        return message

    def send(self, submission):
        """
        Verify the relay, then send the notification for ``submission``.

        Raises:
            MailConfigurationError: SMTP user or password is not configured
            MailVerifyError: connecting or logging in to the relay failed
            MailSendError: the relay rejected the message or the connection dropped
        """
        if not self.username or not self.password:
            logger.error("Contact email not sent: SMTP credentials missing")
            raise MailConfigurationError("SMTP credentials missing")

        connection = self.get_connection()
        try:
            try:
                connection.open()
            except Exception as exc:
                smtp_code, detail = _smtp_error_detail(exc)
                logger.error(
                    f"SMTP verify failed for {self.host}:{self.port}: "
                    f"{smtp_code or ''} {detail}"
                )
                raise MailVerifyError(detail, smtp_code=smtp_code) from exc

            message = self.build_message(submission, connection=connection)
            try:
                sent = message.send(fail_silently=False)
            except Exception as exc:
                smtp_code, detail = _smtp_error_detail(exc)
                logger.error(f"SMTP send failed: {smtp_code or ''} {detail}")
                raise MailSendError(detail, smtp_code=smtp_code) from exc
        finally:
            connection.close()

        logger.info(
            f"Contact email sent to {self.to_address} for {submission.email} "
            f"(from {submission.ip_address})"
        )
        return sent
