"""
Tests for page translation: detection, dictionaries, HTML rewriting, views.
"""
import json

from translations.applier import apply_dictionary, parse_attr_mapping
from translations.dictionaries import load_dictionary
from translations.languages import detect_language, language_home, toggle_target

PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<title>Contact us</title>
<meta name="description" content="Get in touch.">
</head>
<body>
<a id="lang-toggle" href="/lang/">ES</a>
<h1 data-i18n="hero.title">Let's work together</h1>
<p data-i18n="missing.key">Untouched</p>
<input data-i18n-attr="placeholder:contact.name, title : contact.hint, bogus" placeholder="Full name" title="Hint">
</body>
</html>"""

SPANISH = {
    'meta.title': 'Contáctanos',
    'meta.description': 'Ponte en contacto.',
    'hero.title': 'Trabajemos juntos',
    'contact.name': 'Nombre completo',
    'contact.hint': '',
}


class TestDetectLanguage:

    def test_forced_wins(self):
        assert detect_language('/es/', stored='pt', forced='pt') == 'pt'

    def test_path_beats_stored(self):
        assert detect_language('/es/about', stored='pt') == 'es'

    def test_stored_beats_default(self):
        assert detect_language('/', stored='pt') == 'pt'

    def test_default(self):
        assert detect_language('/about/') == 'en'

    def test_unsupported_values_are_skipped(self):
        assert detect_language('/fr/', stored='de', forced='it') == 'en'

    def test_toggle_and_home(self):
        assert toggle_target('en') == 'es'
        assert toggle_target('pt') == 'en'
        assert language_home('en') == '/'
        assert language_home('pt') == '/pt/'


class TestDictionaries:

    def test_loads_shipped_dictionary(self):
        assert load_dictionary('es')['hero.title'] == 'Trabajemos juntos'

    def test_unsupported_language(self):
        assert load_dictionary('fr') == {}

    def test_missing_file(self, settings, tmp_path):
        settings.I18N_DICTIONARY_DIR = tmp_path

        assert load_dictionary('es') == {}

    def test_invalid_json(self, settings, tmp_path):
        settings.I18N_DICTIONARY_DIR = tmp_path
        (tmp_path / 'es.json').write_text('{not json', encoding='utf-8')

        assert load_dictionary('es') == {}

    def test_non_object_json(self, settings, tmp_path):
        settings.I18N_DICTIONARY_DIR = tmp_path
        (tmp_path / 'es.json').write_text(json.dumps(['a', 'b']), encoding='utf-8')

        assert load_dictionary('es') == {}


class TestApplier:

    def test_parse_attr_mapping(self):
        assert parse_attr_mapping('placeholder:a, title : b, junk, :c, d:') == [
            ('placeholder', 'a'),
            ('title', 'b'),
        ]

    def test_rewrites_page(self):
        html = apply_dictionary(PAGE, SPANISH, 'es')

        assert '<title>Contáctanos</title>' in html
        assert 'content="Ponte en contacto."' in html
        assert '<html lang="es">' in html
        assert '>Trabajemos juntos</h1>' in html
        assert 'placeholder="Nombre completo"' in html
        assert '>EN</a>' in html

    def test_untranslated_keys_are_left_alone(self):
        html = apply_dictionary(PAGE, SPANISH, 'es')

        assert '>Untouched</p>' in html
        assert 'title="Hint"' in html

    def test_empty_dictionary_only_sets_language(self):
        html = apply_dictionary(PAGE, {}, 'en')

        assert "Let's work together" in html
        assert '<title>Contact us</title>' in html
        assert '>ES</a>' in html


class TestTranslatedPages:

    def test_language_from_path(self, client):
        response = client.get('/es/')

        assert response.status_code == 200
        content = response.content.decode()
        assert 'lang="es"' in content
        assert 'Trabajemos juntos' in content
        assert response.cookies['lang'].value == 'es'

    def test_language_from_cookie(self, client):
        client.cookies['lang'] = 'pt'

        response = client.get('/')

        assert 'Vamos trabalhar juntos' in response.content.decode()
        assert response.cookies['lang'].value == 'pt'

    def test_default_language(self, client):
        response = client.get('/')

        content = response.content.decode()
        assert "Let&#x27;s work together" in content or "Let's work together" in content
        assert response.cookies['lang'].value == 'en'

    def test_json_responses_are_not_rewritten(self, client):
        response = client.get('/assets/i18n/pt.json')

        assert 'lang' not in response.cookies


class TestDictionaryView:

    def test_serves_dictionary(self, client):
        response = client.get('/assets/i18n/es.json')

        assert response.status_code == 200
        assert response['Cache-Control'] == 'no-store'
        assert response.json()['contact.submit'] == 'Enviar'

    def test_unknown_language(self, client):
        response = client.get('/assets/i18n/fr.json')

        assert response.status_code == 404


class TestLanguageSwitch:

    def test_switch_to_spanish(self, client):
        response = client.get('/lang/es/')

        assert response.status_code == 302
        assert response['Location'] == '/es/'
        assert response.cookies['lang'].value == 'es'

    def test_switch_to_english_goes_home(self, client):
        response = client.get('/lang/en/')

        assert response['Location'] == '/'
        assert response.cookies['lang'].value == 'en'

    def test_switch_to_unknown_language(self, client):
        assert client.get('/lang/fr/').status_code == 404

    def test_toggle_from_english(self, client):
        client.cookies['lang'] = 'en'

        response = client.get('/lang/')

        assert response['Location'] == '/es/'

    def test_toggle_from_spanish_page(self, client):
        response = client.get('/lang/', HTTP_REFERER='http://testserver/es/')

        assert response['Location'] == '/'
        assert response.cookies['lang'].value == 'en'
