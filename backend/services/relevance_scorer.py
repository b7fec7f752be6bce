"""Keyword-overlap relevance scoring over the FAQ collection."""
import logging
import re
from dataclasses import dataclass
from typing import List, Sequence

from models.faq import FaqEntry
from config import MIN_SCORE, TOP_K

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def normalize_text(text: str) -> str:
    """Lowercase, drop everything outside [a-z0-9\\s] and trim."""
    return _NON_ALNUM.sub("", text.lower()).strip()


@dataclass
class ScoredFaq:
    """FAQ entry with its keyword-overlap score."""
    faq: FaqEntry
    score: int


class RelevanceScorer:
    """Rank FAQ entries against a user query by normalized keyword overlap."""

    TITLE_WORD_WEIGHT = 2
    CONTENT_WORD_WEIGHT = 1
    TITLE_PHRASE_WEIGHT = 5
    CONTENT_PHRASE_WEIGHT = 2
    RAW_TITLE_WEIGHT = 3
    RAW_CONTENT_WEIGHT = 1

    MIN_WORD_LENGTH = 3
    MIN_PHRASE_LENGTH = 6

    def __init__(self, min_score: float = MIN_SCORE, top_k: int = TOP_K):
        """
        Initialize the scorer.

        Args:
            min_score: Entries scoring below this are dropped
            top_k: Maximum number of entries returned
        """
        self.min_score = min_score
        self.top_k = top_k

    def score_entry(self, query: str, faq: FaqEntry) -> int:
        """
        Score one FAQ entry against a query.

        Each query word counts once: in the title if it appears there,
        otherwise in the content. Phrase bonuses apply on top.
        """
        normalized_query = normalize_text(query)
        query_words = [
            word for word in normalized_query.split()
            if len(word) >= self.MIN_WORD_LENGTH
        ]
        normalized_title = normalize_text(faq.title)
        normalized_content = normalize_text(faq.content)

        score = 0
        for word in query_words:
            if word in normalized_title:
                score += self.TITLE_WORD_WEIGHT
            elif word in normalized_content:
                score += self.CONTENT_WORD_WEIGHT

        if len(normalized_query) >= self.MIN_PHRASE_LENGTH:
            if normalized_query in normalized_title:
                score += self.TITLE_PHRASE_WEIGHT
            if normalized_query in normalized_content:
                score += self.CONTENT_PHRASE_WEIGHT

        raw_query = query.lower()
        if raw_query in faq.title.lower():
            score += self.RAW_TITLE_WEIGHT
        if raw_query in faq.content.lower():
            score += self.RAW_CONTENT_WEIGHT

        return score

    def score_all(self, query: str, corpus: Sequence[FaqEntry]) -> List[ScoredFaq]:
        """Score and rank entries, keeping those at or above the threshold."""
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return []

        scored = [ScoredFaq(faq=faq, score=self.score_entry(query, faq)) for faq in corpus]
        relevant = [item for item in scored if item.score >= self.min_score]
        # sorted() is stable, so equal scores keep corpus order
        ranked = sorted(relevant, key=lambda item: item.score, reverse=True)
        return ranked[:self.top_k]

    def find_relevant(self, query: str, corpus: Sequence[FaqEntry]) -> List[FaqEntry]:
        """
        Return at most `top_k` FAQ entries most relevant to the query.

        Args:
            query: Raw user message
            corpus: Every stored FAQ entry, in store order

        Returns:
            FAQ entries sorted by non-increasing score
        """
        ranked = self.score_all(query, corpus)
        if ranked:
            logger.info(
                f"Matched {len(ranked)} of {len(corpus)} FAQs "
                f"(top score: {ranked[0].score})"
            )
        else:
            logger.info(f"No FAQs above threshold {self.min_score} out of {len(corpus)}")
        return [item.faq for item in ranked]
