"""
Contact Form Views

Public endpoint for the website contact form.
"""
import logging

from django.apps import apps
from django.conf import settings
from rest_framework import exceptions, status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.turnstile_service import turnstile_service
from .abuse import get_client_ip
from .mail import ContactMailer, MailDeliveryError
from .serializers import ContactFormSubmitSerializer, first_error_message

logger = logging.getLogger(__name__)

HONEYPOT_FIELD = '_gotcha'
TURNSTILE_FIELD = 'cf-turnstile-response'


class ContactFormSubmitView(APIView):
    """
    Public endpoint for contact form submissions.

    POST /api/contact
    {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "organization": "Acme",       // or "org"
        "interest": "Partnership",    // or "topic"
        "message": "...",
        "_gotcha": "",                // honeypot, must stay empty
        "cf-turnstile-response": "..."
    }

    Gates run in order and stop at the first failure:
    honeypot, IP block, rate limit, CAPTCHA, field validation, email.
    Every response is ``{"ok": bool, "error": str}``.

    ``abuse_tracker`` and ``mailer_class`` can be injected through
    ``as_view()``; by default the per-process tracker built by the contact
    app is used.
    """

    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    # OPTIONS falls through to 405; CORS preflight is answered by corsheaders.
    metadata_class = None

    abuse_tracker = None
    mailer_class = ContactMailer

    def get_abuse_tracker(self):
        if self.abuse_tracker is not None:
            return self.abuse_tracker
        return apps.get_app_config('contact').abuse_tracker

    def get_mailer(self):
        return self.mailer_class()

    def reject(self, error, http_status, code=None, headers=None):
        data = {'ok': False, 'error': error}
        if code:
            data['code'] = code
        return Response(data, status=http_status, headers=headers)

    def handle_exception(self, exc):
        """Turn every failure into an ``{ok: false}`` response; nothing escapes."""
        if isinstance(exc, exceptions.MethodNotAllowed):
            return self.reject('Method not allowed', status.HTTP_405_METHOD_NOT_ALLOWED)

        if isinstance(exc, exceptions.APIException):
            return self.reject(first_error_message(exc.detail), exc.status_code)

        logger.exception(f"Contact API error: {exc}")
        return self.reject('Server error.', status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        """Submit the contact form."""
        max_bytes = getattr(settings, 'CONTACT_MAX_BODY_BYTES', 100 * 1024)
        try:
            content_length = int(request.META.get('CONTENT_LENGTH') or 0)
        except ValueError:
            content_length = 0
        if content_length > max_bytes:
            return self.reject('Payload too large.', status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

        if 'application/json' not in (request.content_type or '').lower():
            return self.reject('Send JSON body', status.HTTP_400_BAD_REQUEST)

        body = request.data if isinstance(request.data, dict) else {}

        # Honeypot: pretend success so bots learn nothing
        if str(body.get(HONEYPOT_FIELD) or '').strip():
            logger.info("Contact form honeypot triggered")
            return Response({'ok': True}, status=status.HTTP_200_OK)

        tracker = self.get_abuse_tracker()
        ip = get_client_ip(request)

        if tracker.is_blocked(ip):
            return self.reject(
                'IP temporarily blocked.',
                status.HTTP_403_FORBIDDEN,
                headers={'Retry-After': str(tracker.retry_after(ip))}
            )

        if tracker.rate_limited(ip):
            return self.reject(
                'Too many requests, try again later.',
                status.HTTP_429_TOO_MANY_REQUESTS,
                headers={'Retry-After': str(tracker.retry_after(ip))}
            )

        # Cloudflare Turnstile
        token = body.get(TURNSTILE_FIELD)
        if not token:
            tracker.mark_bad(ip)
            return self.reject('missing_turnstile_token', status.HTTP_400_BAD_REQUEST)

        remote_ip = ip if ip != 'unknown' else None
        if not turnstile_service.verify_token(str(token), remote_ip):
            tracker.mark_bad(ip)
            return self.reject('turnstile_failed', status.HTTP_400_BAD_REQUEST)

        serializer = ContactFormSubmitSerializer(data=body, context={'ip_address': ip})
        if not serializer.is_valid():
            error = first_error_message(serializer.errors)
            logger.warning(f"Contact form rejected from {ip}: {error}")
            tracker.mark_bad(ip)
            return self.reject(error, status.HTTP_400_BAD_REQUEST)

        submission = serializer.save()

        try:
            self.get_mailer().send(submission)
        except MailDeliveryError as exc:
            return self.reject(
                exc.public_message,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                code=exc.code
            )

        return Response({'ok': True}, status=status.HTTP_200_OK)
