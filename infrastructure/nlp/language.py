"""
Language Detection

Lightweight stop-word voting detector used by default. It only needs to tell
apart the languages the platform is configured for; anything it cannot place
is reported as ``"unknown"`` and left to the fallback/strict rules of the
annotation service.
"""

import logging
import re
from collections import Counter
from typing import Dict, FrozenSet, Iterable, Optional

from interfaces.nlp_interfaces import LanguageDetector

logger = logging.getLogger(__name__)

UNKNOWN_LANGUAGE = "unknown"

_WORD = re.compile(r"[^\W\d_]+", re.UNICODE)

STOPWORDS: Dict[str, FrozenSet[str]] = {
    "en": frozenset("the and of to in is that it for was on are with as be this by at not "
                    "have from or an but they you he she we his her their what which".split()),
    "de": frozenset("der die das und ist nicht ein eine zu den von mit sich des auf für im "
                    "dem sie es auch als an wir ich nach wird bei".split()),
    "fr": frozenset("le la les et est un une des du en que qui dans pour pas sur au avec ce "
                    "il elle nous vous sont par plus".split()),
    "es": frozenset("el la los las y es un una de que en por con para no se del al lo como "
                    "más pero sus le ya o este".split()),
    "it": frozenset("il lo la gli le e è un una di che in per con non si del della al come "
                    "più ma sono anche questo".split()),
    "nl": frozenset("de het een en is van in dat op te zijn niet met voor die er maar ook "
                    "als bij aan om".split()),
    "pt": frozenset("o a os as e é um uma de que em por com para não se do da ao como mais "
                    "mas seu também".split()),
}


class StopwordLanguageDetector(LanguageDetector):
    """
    Detects the language with the most stop-word hits.

    Args:
        supported_languages: Codes the configured analyzers support
        min_hits: Hits required before a language is reported at all
    """

    def __init__(self, supported_languages: Iterable[str], min_hits: int = 1):
        self.supported_languages = frozenset(code.lower() for code in supported_languages)
        self.min_hits = min_hits

    def detect(self, text: str) -> str:
        words = [word.lower() for word in _WORD.findall(text or "")]
        votes: Counter = Counter()
        for word in words:
            for language, stopwords in STOPWORDS.items():
                if word in stopwords:
                    votes[language] += 1

        if not votes:
            return UNKNOWN_LANGUAGE
        # ties go to the language that scored first
        language, hits = votes.most_common(1)[0]
        if hits < self.min_hits:
            return UNKNOWN_LANGUAGE
        logger.debug(f"Detected language {language} with {hits} stop-word hits")
        return language

    def is_supported(self, language: Optional[str]) -> bool:
        return bool(language) and language.lower() in self.supported_languages
