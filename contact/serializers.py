"""
Contact Form Serializers

Normalizes and validates the public contact form payload.
"""
from rest_framework import serializers

from .heuristics import has_two_words, is_valid_email, looks_gibberish, too_many_urls
from .models import (
    MAX_EMAIL_LEN,
    MAX_INTEREST_LEN,
    MAX_MESSAGE_LEN,
    MAX_NAME_LEN,
    MAX_ORG_LEN,
    Submission,
)

MIN_MESSAGE_LEN = 20

ERROR_REQUIRED = 'name, email and message are required.'
ERROR_EMAIL = 'Invalid email.'
ERROR_NAME = 'Invalid name.'
ERROR_ORGANIZATION = 'Invalid organization.'
ERROR_MESSAGE = 'Invalid message.'


def _clean(value, max_length):
    return str(value or '').strip()[:max_length]


def first_error_message(errors):
    """Return the first error string from a (possibly nested) serializer errors dict."""
    if isinstance(errors, dict):
        for value in errors.values():
            message = first_error_message(value)
            if message:
                return message
        return None
    if isinstance(errors, list):
        for value in errors:
            message = first_error_message(value)
            if message:
                return message
        return None
    return str(errors)


class LenientCharField(serializers.CharField):
    """
    CharField that stringifies any JSON value instead of rejecting it.

    Lists, objects and booleans become their ``str()`` form so the ordered
    rules in ``validate()`` decide what the caller is told.
    """

    def to_internal_value(self, data):
        value = str(data)
        return value.strip() if self.trim_whitespace else value


def _text_field(help_text):
    return LenientCharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default='',
        help_text=help_text
    )


class ContactFormSubmitSerializer(serializers.Serializer):
    """
    Public contact form submission serializer.

    Fields are trimmed and capped (an over-long email is rejected rather
    than cut), then checked in a fixed order so the
    caller always gets the first failing rule as a single message.
    ``org`` and ``topic`` are accepted as aliases of ``organization`` and
    ``interest``.

    ``save()`` returns a :class:`Submission`; pass the caller IP as
    ``context={'ip_address': ...}``.
    """

    name = _text_field("Full name of the person contacting us")
    email = _text_field("Email address for the reply")
    organization = _text_field("Company or organization")
    org = _text_field("Alias of organization")
    interest = _text_field("What the enquiry is about")
    topic = _text_field("Alias of interest")
    message = _text_field("Message content (20-5000 characters)")

    def validate_name(self, value):
        # Collapse runs of whitespace, newlines included, to single spaces.
        return ' '.join(str(value or '').split())[:MAX_NAME_LEN]

    def validate_email(self, value):
        return str(value or '').strip().lower()

    def validate_organization(self, value):
        return _clean(value, MAX_ORG_LEN)

    def validate_org(self, value):
        return _clean(value, MAX_ORG_LEN)

    def validate_interest(self, value):
        return _clean(value, MAX_INTEREST_LEN)

    def validate_topic(self, value):
        return _clean(value, MAX_INTEREST_LEN)

    def validate_message(self, value):
        return _clean(value, MAX_MESSAGE_LEN)

    def validate(self, attrs):
        name = attrs.get('name', '')
        email = attrs.get('email', '')
        organization = attrs.get('organization') or attrs.get('org', '')
        interest = attrs.get('interest') or attrs.get('topic', '')
        message = attrs.get('message', '')

        if not name or not email or not message:
            raise serializers.ValidationError(ERROR_REQUIRED, code='required')

        if len(email) > MAX_EMAIL_LEN or not is_valid_email(email):
            raise serializers.ValidationError(ERROR_EMAIL, code='invalid_email')

        if not has_two_words(name) or looks_gibberish(name):
            raise serializers.ValidationError(ERROR_NAME, code='invalid_name')

        if organization and looks_gibberish(organization):
            raise serializers.ValidationError(ERROR_ORGANIZATION, code='invalid_organization')

        if (
            len(message) < MIN_MESSAGE_LEN
            or too_many_urls(message)
            or looks_gibberish(message)
        ):
            raise serializers.ValidationError(ERROR_MESSAGE, code='invalid_message')

        return {
            'name': name,
            'email': email,
            'organization': organization,
            'interest': interest,
            'message': message,
        }

    def create(self, validated_data):
        return Submission(
            ip_address=self.context.get('ip_address', 'unknown'),
            **validated_data
        )
