"""
Translation middleware.

Translates every successful HTML response before it is sent and remembers
the chosen language in a cookie.
"""
import logging

from django.conf import settings

from .applier import forced_language, parse_html, translate_soup
from .dictionaries import load_dictionary
from .languages import detect_language

logger = logging.getLogger(__name__)


def set_language_cookie(response, lang):
    response.set_cookie(
        settings.I18N_COOKIE_NAME,
        lang,
        max_age=settings.I18N_COOKIE_AGE,
        samesite='Lax',
    )


class TranslationMiddleware:
    """Apply the visitor's dictionary to ``text/html`` responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if not self.should_translate(response):
            return response

        charset = response.charset or 'utf-8'
        soup = parse_html(response.content.decode(charset, errors='replace'))
        lang = detect_language(
            request.path,
            stored=request.COOKIES.get(settings.I18N_COOKIE_NAME),
            forced=forced_language(soup),
        )
        translate_soup(soup, load_dictionary(lang), lang)

        response.content = str(soup).encode(charset)
        if response.has_header('Content-Length'):
            response['Content-Length'] = str(len(response.content))
        set_language_cookie(response, lang)
        request.LANGUAGE_CODE = lang
        logger.debug(f"Translated {request.path} to {lang}")
        return response

    @staticmethod
    def should_translate(response):
        if response.status_code != 200 or getattr(response, 'streaming', False):
            return False
        content_type = response.get('Content-Type', '')
        return content_type.startswith('text/html')
