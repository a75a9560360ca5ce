# transcript_gateway/core/language.py
"""
Language matching for caption selection.

Stateless functions over static tables:
- resolve_language: preferred code vs. a video's caption languages -> LanguageMatch
- language_variants: regional expansion used for per-language retries
- normalize_language_code: bare-scalar normalization (unknown -> "en")
- detect_language_from_text: optional low-confidence guess, never on the matching path
"""

from __future__ import annotations

from typing import Dict, Iterable, List, NamedTuple, Tuple

from langdetect import DetectorFactory, LangDetectException, detect_langs

from transcript_gateway.core.schema import LanguageMatch, MatchKind

# Make language detection deterministic
DetectorFactory.seed = 0


LANGUAGE_VARIANTS: Dict[str, List[str]] = {
    "en": ["en", "en-US", "en-GB", "en-CA", "en-AU"],
    "en-US": ["en-US", "en"],
    "en-GB": ["en-GB", "en"],
    "es": ["es", "es-ES", "es-MX", "es-AR"],
    "es-ES": ["es-ES", "es"],
    "es-MX": ["es-MX", "es"],
    "fr": ["fr", "fr-FR", "fr-CA"],
    "fr-FR": ["fr-FR", "fr"],
    "fr-CA": ["fr-CA", "fr"],
    "de": ["de", "de-DE", "de-AT", "de-CH"],
    "de-DE": ["de-DE", "de"],
    "pt": ["pt", "pt-BR", "pt-PT"],
    "pt-BR": ["pt-BR", "pt"],
    "pt-PT": ["pt-PT", "pt"],
    "it": ["it", "it-IT"],
    "ja": ["ja", "ja-JP"],
    "ko": ["ko", "ko-KR"],
    "zh": ["zh", "zh-CN", "zh-TW", "zh-HK"],
    "zh-CN": ["zh-CN", "zh"],
    "zh-TW": ["zh-TW", "zh"],
    "ru": ["ru", "ru-RU"],
    "ar": ["ar", "ar-SA", "ar-EG"],
    "hi": ["hi", "hi-IN"],
    "nl": ["nl", "nl-NL"],
    "sv": ["sv", "sv-SE"],
    "no": ["no", "nb", "nn"],
    "da": ["da", "da-DK"],
    "fi": ["fi", "fi-FI"],
    "pl": ["pl", "pl-PL"],
    "tr": ["tr", "tr-TR"],
    "he": ["he", "iw"],
    "th": ["th", "th-TH"],
    "vi": ["vi", "vi-VN"],
    "id": ["id", "id-ID"],
    "ms": ["ms", "ms-MY"],
}

# Fallback order when neither an exact nor a family match exists.
LANGUAGE_PRIORITY: Tuple[str, ...] = (
    "en", "es", "fr", "de", "pt", "it", "ja", "ko", "zh", "ru", "ar", "hi",
)

COUNTRY_BY_LANGUAGE: Dict[str, str] = {
    "en": "US",
    "en-US": "US",
    "en-GB": "GB",
    "en-CA": "CA",
    "en-AU": "AU",
    "es": "ES",
    "es-MX": "MX",
    "es-AR": "AR",
    "fr": "FR",
    "fr-CA": "CA",
    "de": "DE",
    "pt": "BR",
    "pt-BR": "BR",
    "pt-PT": "PT",
    "it": "IT",
    "ja": "JP",
    "ko": "KR",
    "zh": "CN",
    "zh-CN": "CN",
    "zh-TW": "TW",
    "ru": "RU",
}

MATCH_CONFIDENCE: Dict[MatchKind, float] = {
    MatchKind.EXACT: 1.0,
    MatchKind.FAMILY: 0.8,
    MatchKind.PRIORITY_FALLBACK: 0.6,
    MatchKind.FIRST_AVAILABLE: 0.3,
    MatchKind.NONE: 0.0,
}

_VARIANTS_BY_KEY = {key.lower(): values for key, values in LANGUAGE_VARIANTS.items()}
_COUNTRY_BY_KEY = {key.lower(): value for key, value in COUNTRY_BY_LANGUAGE.items()}
_BASE_LANGUAGES = frozenset(key for key in _VARIANTS_BY_KEY if "-" not in key)


def _canonical(code: str) -> str:
    return code.strip().lower().replace("_", "-")


def _primary_subtag(code: str) -> str:
    return _canonical(code).split("-")[0]


def _match(selected: str, kind: MatchKind, available: List[str]) -> LanguageMatch:
    return LanguageMatch(
        selected_language=selected,
        kind=kind,
        confidence=MATCH_CONFIDENCE[kind],
        alternatives=tuple(code for code in available if code != selected),
    )


def resolve_language(available_languages: Iterable[str], preferred: str) -> LanguageMatch:
    """
    Resolve a preferred language against the available caption languages.

    First rule that matches wins: exact, family (same primary subtag),
    priority fallback, first available, none.
    """
    available = [code for code in available_languages if code]

    if not available:
        return LanguageMatch(
            selected_language=preferred,
            kind=MatchKind.NONE,
            confidence=MATCH_CONFIDENCE[MatchKind.NONE],
        )

    wanted = _canonical(preferred)
    for code in available:
        if _canonical(code) == wanted:
            return _match(code, MatchKind.EXACT, available)

    family = _primary_subtag(preferred)
    for code in available:
        if _primary_subtag(code) == family:
            return _match(code, MatchKind.FAMILY, available)

    for priority in LANGUAGE_PRIORITY:
        for code in available:
            if _primary_subtag(code) == priority:
                return _match(code, MatchKind.PRIORITY_FALLBACK, available)

    return _match(available[0], MatchKind.FIRST_AVAILABLE, available)


def language_variants(code: str) -> List[str]:
    """
    Expand a language code into its known regional variants, itself first.

    Regional codes also pull in their base family. Unknown codes yield a
    singleton of the normalized code.
    """
    key = _canonical(code)
    variants = _VARIANTS_BY_KEY.get(key)
    if variants is None:
        return [key]

    expanded = list(variants)
    base = key.split("-")[0]
    if base != key and base in _VARIANTS_BY_KEY:
        expanded.extend(_VARIANTS_BY_KEY[base])
    return list(dict.fromkeys(expanded))


def normalize_language_code(code: str | None) -> str:
    """Normalize to a base language code; unknown or empty input maps to "en"."""
    if not code or not isinstance(code, str):
        return "en"

    normalized = _canonical(code)
    if normalized in _BASE_LANGUAGES:
        return normalized

    base = normalized.split("-")[0]
    if base in _BASE_LANGUAGES:
        return base

    for key, variants in _VARIANTS_BY_KEY.items():
        if normalized in (variant.lower() for variant in variants):
            return key.split("-")[0]

    return "en"


def country_for_language(code: str) -> str:
    return _COUNTRY_BY_KEY.get(_canonical(code), "US")


class LanguageGuess(NamedTuple):
    language: str
    confidence: float
    method: str


def detect_language_from_text(text: str) -> LanguageGuess:
    """
    Guess the language of a transcript sample.

    Auxiliary only: confidence is capped at 0.7 and nothing in resolve_language
    depends on it.
    """
    if not text or len(text) < 50:
        return LanguageGuess("en", 0.1, "default")

    try:
        candidates = detect_langs(text)
    except LangDetectException:
        return LanguageGuess("en", 0.3, "fallback")

    if not candidates:
        return LanguageGuess("en", 0.3, "fallback")

    best = candidates[0]
    return LanguageGuess(normalize_language_code(best.lang), min(0.7, round(best.prob, 2)), "langdetect")
