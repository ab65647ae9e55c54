"""
Translation dictionaries.

One flat JSON object per language, keyed by translation key, stored as
``<I18N_DICTIONARY_DIR>/<lang>.json``.
"""
import json
import logging
from pathlib import Path

from django.conf import settings

from .languages import is_supported

logger = logging.getLogger(__name__)


def dictionary_path(lang):
    return Path(settings.I18N_DICTIONARY_DIR) / f'{lang}.json'


def load_dictionary(lang):
    """
    Load the dictionary for ``lang``.

    Returns an empty dict for unsupported languages and for files that are
    missing, unreadable or not a JSON object, so pages fall back to their
    original text.
    """
    if not is_supported(lang):
        return {}

    path = dictionary_path(lang)
    try:
        with open(path, encoding='utf-8') as fh:
            data = json.load(fh)
    except FileNotFoundError:
        logger.warning(f"Translation dictionary not found: {path}")
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read translation dictionary {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Translation dictionary {path} is not a JSON object")
        return {}

    return data
