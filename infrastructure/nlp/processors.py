#!/usr/bin/env python3
"""
Built-in Text Processors

Two processors ship with the platform:

- ``SimpleTextProcessor`` ("simple"): dependency-free regex sentence and token
  splitting with lower-cased lemmas and lexicon sentiment. Always registered.
- ``SpacyTextProcessor`` ("spacy"): spaCy tokenisation, lemmas, part-of-speech
  and named entities. Requires the ``spacy`` extra and a downloaded model.

Annotators recognised in a pipeline specification: ``tokenizer`` (implied),
``sentiment`` (run sentence sentiment right after annotation).

Author: Graph NLP Platform
Date: 2026
"""

import logging
import re
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from domain.entities import AnnotatedText, PipelineSpecification, Sentence, Tag
from infrastructure.nlp.engines import get_spacy_model
from infrastructure.nlp.language import STOPWORDS
from interfaces.nlp_interfaces import TextProcessor

logger = logging.getLogger(__name__)

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
TOKEN = re.compile(r"\w+(?:['-]\w+)*", re.UNICODE)

POSITIVE_WORDS = frozenset(
    "good great excellent positive happy love like best strong improve improved success "
    "successful benefit gain growth wonderful pleased optimistic".split()
)
NEGATIVE_WORDS = frozenset(
    "bad poor terrible negative sad hate dislike worst weak decline declined failure fail "
    "loss risk crisis awful concerned pessimistic".split()
)

# Sentence sentiment scale, 0 (very negative) to 4 (very positive)
VERY_NEGATIVE, NEGATIVE, NEUTRAL, POSITIVE, VERY_POSITIVE = range(5)


def lexicon_sentiment(lemmas: Iterable[str]) -> int:
    """Score a bag of lemmas on the five-point sentiment scale."""
    score = 0
    for lemma in lemmas:
        if lemma in POSITIVE_WORDS:
            score += 1
        elif lemma in NEGATIVE_WORDS:
            score -= 1
    if score >= 2:
        return VERY_POSITIVE
    if score == 1:
        return POSITIVE
    if score == 0:
        return NEUTRAL
    if score == -1:
        return NEGATIVE
    return VERY_NEGATIVE


def _group_tags(tags: Iterable[Tag]) -> List[Tag]:
    """Merge tags with the same lemma, summing multiplicity, first-seen order."""
    grouped: "OrderedDict[str, Tag]" = OrderedDict()
    for tag in tags:
        existing = grouped.get(tag.lemma)
        if existing is None:
            grouped[tag.lemma] = tag
            continue
        existing.multiplicity += tag.multiplicity
        existing.pos.extend(p for p in tag.pos if p not in existing.pos)
        existing.ne.extend(n for n in tag.ne if n not in existing.ne)
    return list(grouped.values())


class SimpleTextProcessor(TextProcessor):
    """Regex-based processor with no external model."""

    NAME = "simple"

    @property
    def name(self) -> str:
        return self.NAME

    def annotate_text(self, text: str, language: str,
                      specification: PipelineSpecification) -> AnnotatedText:
        stopwords = STOPWORDS.get(language, frozenset()) if specification.exclude_stopwords else frozenset()
        sentences = []
        for index, sentence_text in enumerate(s for s in SENTENCE_BOUNDARY.split(text.strip()) if s):
            tags = [Tag(lemma=token.lower()) for token in TOKEN.findall(sentence_text)
                    if token.lower() not in stopwords]
            sentences.append(Sentence(text=sentence_text, index=index, tags=_group_tags(tags)))

        annotated = AnnotatedText(
            text=text,
            language=language,
            sentences=sentences,
            metadata={"processor": self.name, "pipeline": specification.name},
        )
        if specification.has_annotator("sentiment"):
            self.sentiment(annotated)
        return annotated

    def sentiment(self, annotated_text: AnnotatedText) -> AnnotatedText:
        for sentence in annotated_text.sentences:
            lemmas = []
            for tag in sentence.tags:
                lemmas.extend([tag.lemma.lower()] * tag.multiplicity)
            sentence.sentiment = lexicon_sentiment(lemmas)
        return annotated_text


class SpacyTextProcessor(SimpleTextProcessor):
    """
    spaCy-backed processor.

    The model is taken from the pipeline option ``model``, falling back to the
    processor configuration (``spacy_model``). Multi-token named entities are
    added as extra tags carrying the entity label, so filters such as
    ``PERSON/Marie Curie`` match.
    """

    NAME = "spacy"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.default_model = self.config.get("spacy_model", "en_core_web_sm")

    def _model_for(self, specification: PipelineSpecification) -> Any:
        return get_spacy_model(specification.options.get("model", self.default_model))

    def create_pipeline(self, specification: PipelineSpecification) -> None:
        super().create_pipeline(specification)
        logger.info(f"Pipeline {specification.name} registered with spaCy processor")

    def annotate_text(self, text: str, language: str,
                      specification: PipelineSpecification) -> AnnotatedText:
        doc = self._model_for(specification)(text)
        sentences = []
        for index, sent in enumerate(doc.sents):
            tags = []
            for token in sent:
                if token.is_space or token.is_punct:
                    continue
                if specification.exclude_stopwords and token.is_stop:
                    continue
                ne = [token.ent_type_] if token.ent_type_ else []
                tags.append(Tag(lemma=token.lemma_.lower(), pos=[token.pos_], ne=ne))
            for ent in sent.ents:
                if len(ent) > 1:
                    tags.append(Tag(lemma=ent.text, ne=[ent.label_]))
            sentences.append(Sentence(text=sent.text, index=index, tags=_group_tags(tags)))

        annotated = AnnotatedText(
            text=text,
            language=language,
            sentences=sentences,
            metadata={"processor": self.name, "pipeline": specification.name},
        )
        if specification.has_annotator("sentiment"):
            self.sentiment(annotated)
        return annotated
