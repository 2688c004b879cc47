"""
i18n module: dict-based translation with fallback to the default locale (Korean).
"""

from typing import Optional

from powerplay.locales.ko import KO_STRINGS
from powerplay.locales.en import EN_STRINGS

DEFAULT_LOCALE = "ko"
LOCALES = ("ko", "en")

_STRINGS = {"ko": KO_STRINGS, "en": EN_STRINGS}


def t(key: str, lang: str = DEFAULT_LOCALE, **kwargs) -> str:
    """Get translated string. Falls back to KO, then to the key itself."""
    strings = _STRINGS.get(lang, _STRINGS[DEFAULT_LOCALE])
    text = strings.get(key, _STRINGS[DEFAULT_LOCALE].get(key, key))
    return text.format(**kwargs) if kwargs else text


def normalize_locale(value: Optional[str]) -> Optional[str]:
    """'en-US' -> 'en'; unsupported or empty values -> None"""
    if not value:
        return None
    code = value.strip().lower().replace("_", "-").split("-")[0]
    return code if code in LOCALES else None


def negotiate_locale(accept_language: Optional[str]) -> Optional[str]:
    """Pick the best supported locale from an Accept-Language header."""
    if not accept_language:
        return None
    candidates = []
    for index, part in enumerate(accept_language.split(",")):
        pieces = part.strip().split(";")
        quality = 1.0
        for param in pieces[1:]:
            param = param.strip()
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        locale = normalize_locale(pieces[0])
        if locale and quality > 0:
            candidates.append((-quality, index, locale))
    if not candidates:
        return None
    return sorted(candidates)[0][2]


def get_catalog(lang: str) -> dict:
    """Full catalog for a locale with default-locale keys filled in."""
    catalog = dict(_STRINGS[DEFAULT_LOCALE])
    catalog.update(_STRINGS.get(lang, {}))
    return catalog
