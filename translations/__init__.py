"""
Translations App

Server-side page translation for the public website:
- Language detection (forced override, URL path, cookie, default)
- JSON dictionaries per language under assets/i18n/
- HTML rewriting of data-i18n / data-i18n-attr elements, title and description
- Language switch links that remember the visitor's choice
"""
