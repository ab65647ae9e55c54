"""
Spam Heuristics for Contact Form Fields

Small rule set for spotting random strings typed (or generated) into the
form. Every function is pure: string in, boolean out.
"""
import re

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
TWO_WORDS_RE = re.compile(r'\S+\s+\S+')
URL_RE = re.compile(r'https?://', re.IGNORECASE)
VOWEL_RE = re.compile(r'[aeiou]', re.IGNORECASE)
NON_LETTER_RE = re.compile(r'[^a-z]+', re.IGNORECASE)
CONSONANT_RUN_RE = re.compile(r'[bcdfghjklmnpqrstvwxyz]{6,}', re.IGNORECASE)
BASE64_LIKE_RE = re.compile(r'^[A-Za-z0-9+/=]{20,}$')

MIN_VOWEL_RATIO = 0.15
MAX_VOWEL_RATIO = 0.7
MAX_URLS = 2


def is_valid_email(value):
    return bool(EMAIL_RE.fullmatch(value or ''))


def has_two_words(value):
    return bool(TWO_WORDS_RE.search(value or ''))


def too_many_urls(value, limit=MAX_URLS):
    return len(URL_RE.findall(value or '')) > limit


def looks_gibberish(value):
    """
    Heuristic check for random text.

    Rejects input with no ASCII letters, a vowel ratio outside
    [0.15, 0.7], a run of six or more consonants once non-letters are
    stripped (so runs may span words), or a base64-looking blob of 20+
    characters.
    """
    value = str(value or '')
    letters = NON_LETTER_RE.sub('', value)
    if not letters:
        return True

    ratio = len(VOWEL_RE.findall(letters)) / len(letters)
    if ratio < MIN_VOWEL_RATIO or ratio > MAX_VOWEL_RATIO:
        return True

    if CONSONANT_RUN_RE.search(letters):
        return True

    if BASE64_LIKE_RE.fullmatch(value):
        return True

    return False
