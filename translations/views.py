"""
Translation Views

- Dictionary files for browsers: GET /assets/i18n/<lang>.json
- Language switch links: GET /lang/<lang>/ and the toggle GET /lang/
- The translated landing page: GET / and GET /<lang>/
"""
from urllib.parse import urlparse

from django.conf import settings
from django.http import Http404, JsonResponse
from django.shortcuts import redirect
from django.views.generic import TemplateView

from .dictionaries import load_dictionary
from .languages import detect_language, is_supported, language_home, toggle_target
from .middleware import set_language_cookie


def dictionary_view(request, lang):
    """Serve the JSON dictionary for ``lang``."""
    if not is_supported(lang):
        raise Http404(f"Unsupported language: {lang}")
    response = JsonResponse(load_dictionary(lang), json_dumps_params={'ensure_ascii': False})
    response['Cache-Control'] = 'no-store'
    return response


def _switch_to(lang):
    response = redirect(language_home(lang))
    set_language_cookie(response, lang)
    return response


def switch_language(request, lang):
    """Go to the landing page of ``lang`` and remember the choice."""
    if not is_supported(lang):
        raise Http404(f"Unsupported language: {lang}")
    return _switch_to(lang)


def toggle_language(request):
    """Flip between English and Spanish based on the page the visitor came from."""
    referer_path = urlparse(request.META.get('HTTP_REFERER', '')).path
    current = detect_language(
        referer_path,
        stored=request.COOKIES.get(settings.I18N_COOKIE_NAME),
    )
    return _switch_to(toggle_target(current))


class HomePageView(TemplateView):
    """Landing page with the contact form; the middleware translates it."""

    template_name = 'translations/home.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['languages'] = settings.I18N_LANGUAGES
        context['turnstile_site_key'] = getattr(settings, 'TURNSTILE_SITE_KEY', '')
        return context
