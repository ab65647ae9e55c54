"""
HTML translation applier.

Rewrites a page with a translation dictionary:

- ``data-i18n="key"``: element text becomes ``dictionary[key]``
- ``data-i18n-attr="placeholder:key, title:key2"``: each listed attribute
  is set from the dictionary
- ``<title>`` from ``meta.title``, ``<meta name="description">`` from
  ``meta.description``
- ``<html lang>`` is set to the active language and ``#lang-toggle`` shows
  the language it switches to

Keys with no (or an empty) translation leave the original markup alone.
"""
from bs4 import BeautifulSoup

from .languages import toggle_label

FORCED_LANG_ATTR = 'data-forced-lang'


def parse_html(html):
    return BeautifulSoup(html, 'html.parser')


def forced_language(soup):
    """The page-level override declared as ``<html data-forced-lang="..">``."""
    html_tag = soup.find('html')
    if html_tag is None:
        return None
    return html_tag.get(FORCED_LANG_ATTR) or None


def parse_attr_mapping(value):
    """Split ``"placeholder:key, title:key2"`` into ``[('placeholder', 'key'), ...]``."""
    pairs = []
    for pair in (value or '').split(','):
        pair = pair.strip()
        if not pair or ':' not in pair:
            continue
        attr, key = (part.strip() for part in pair.split(':', 1))
        if attr and key:
            pairs.append((attr, key))
    return pairs


def translate_soup(soup, dictionary, lang):
    """Apply ``dictionary`` to ``soup`` in place and return it."""
    for element in soup.select('[data-i18n]'):
        text = dictionary.get(element.get('data-i18n'))
        if text:
            element.string = text

    for element in soup.select('[data-i18n-attr]'):
        for attr, key in parse_attr_mapping(element.get('data-i18n-attr')):
            text = dictionary.get(key)
            if text:
                element[attr] = text

    title = dictionary.get('meta.title')
    if title and soup.title is not None:
        soup.title.string = title

    description = dictionary.get('meta.description')
    meta = soup.find('meta', attrs={'name': 'description'})
    if description and meta is not None:
        meta['content'] = description

    html_tag = soup.find('html')
    if html_tag is not None:
        html_tag['lang'] = lang

    toggle = soup.find(id='lang-toggle')
    if toggle is not None:
        toggle.string = toggle_label(lang)

    return soup


def apply_dictionary(html, dictionary, lang):
    """Translate an HTML document string and return the new markup."""
    return str(translate_soup(parse_html(html), dictionary, lang))
