"""
Tests for the contact form spam heuristics.
"""
import pytest

from contact.heuristics import has_two_words, is_valid_email, looks_gibberish, too_many_urls


class TestLooksGibberish:

    @pytest.mark.parametrize('text', [
        'Jane Doe',
        'Green Valley Cooperative',
        'We would like to know more about your consulting services for schools.',
    ])
    def test_plausible_text_passes(self, text):
        assert looks_gibberish(text) is False

    @pytest.mark.parametrize('text', ['', None, '12345 !!!', '   '])
    def test_no_letters(self, text):
        assert looks_gibberish(text) is True

    def test_too_few_vowels(self):
        assert looks_gibberish('Brt Smth') is True

    def test_too_many_vowels(self):
        assert looks_gibberish('aeiou aeiou') is True

    def test_long_consonant_run(self):
        assert looks_gibberish('Jane Dxcvbnm') is True

    def test_consonant_run_spans_words(self):
        assert looks_gibberish('Angst Schreiber') is True
        assert looks_gibberish('watch splendid') is True

    def test_base64_blob(self):
        # Passes the vowel and consonant rules; only the blob shape gives it away.
        assert looks_gibberish('abababababababababab12') is True
        assert looks_gibberish('ababab abababab') is False

    def test_short_blob_is_not_base64(self):
        assert looks_gibberish('ababab12') is False


class TestFieldRules:

    @pytest.mark.parametrize('email,expected', [
        ('jane@example.com', True),
        ('jane.doe+news@mail.example.org', True),
        ('not-an-email', False),
        ('jane@example', False),
        ('jane doe@example.com', False),
        ('jane@example.com\n', False),
        ('', False),
    ])
    def test_is_valid_email(self, email, expected):
        assert is_valid_email(email) is expected

    def test_has_two_words(self):
        assert has_two_words('Jane Doe') is True
        assert has_two_words('Jane') is False
        assert has_two_words('') is False

    def test_too_many_urls(self):
        two = 'see http://a.example.com and https://b.example.com'
        assert too_many_urls(two) is False
        assert too_many_urls(two + ' and HTTPS://c.example.com') is True
