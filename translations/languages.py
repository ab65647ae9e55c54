"""
Language detection.
"""
from django.conf import settings


def supported_languages():
    return list(getattr(settings, 'I18N_LANGUAGES', ['en', 'es', 'pt']))


def default_language():
    return getattr(settings, 'I18N_DEFAULT_LANGUAGE', 'en')


def is_supported(lang):
    return bool(lang) and lang in supported_languages()


def path_language(path):
    """First non-empty path segment, if it names a supported language."""
    segments = [segment for segment in (path or '').split('/') if segment]
    if segments and is_supported(segments[0]):
        return segments[0]
    return None


def detect_language(path, stored=None, forced=None):
    """
    Pick the active language.

    Precedence: ``forced`` override, then the first URL path segment,
    then the ``stored`` preference (cookie), then the default language.
    Unsupported values are skipped at every step.
    """
    if is_supported(forced):
        return forced

    from_path = path_language(path)
    if from_path:
        return from_path

    if is_supported(stored):
        return stored

    return default_language()


def toggle_target(current):
    """Language the toggle button switches to."""
    return 'es' if current == 'en' else 'en'


def toggle_label(lang):
    """Text shown on the toggle button while ``lang`` is active."""
    return 'ES' if lang == 'en' else 'EN'


def language_home(lang):
    """Landing path for ``lang``: the default language lives at the site root."""
    if lang == default_language():
        return '/'
    return f'/{lang}/'
