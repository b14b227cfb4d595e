"""
Fuzzy matching with typo tolerance for the property search bar
"""
import logging
from typing import Callable, List, Optional, TypeVar

from models import (
    FuzzySearchResult, FuzzyPropertyResult, PropertySearchItem,
    SearchSuggestion, SuggestionType
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Minimum score for a candidate to be kept
DEFAULT_THRESHOLD = 0.6
# Minimum score for a dictionary word to replace a query word
AUTOCORRECT_THRESHOLD = 0.8

# Common real estate terms for auto-correction
REAL_ESTATE_DICTIONARY = [
    'apartment', 'house', 'villa', 'penthouse', 'commercial', 'residential',
    'bedroom', 'bathroom', 'kitchen', 'balcony', 'parking', 'garden',
    'mumbai', 'delhi', 'bangalore', 'pune', 'hyderabad', 'chennai',
    'bhk', 'sqft', 'square feet', 'carpet area', 'built up area',
    'ready to move', 'under construction', 'newly launched', 'resale'
]


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings"""
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                current[j - 1] + 1,
                previous[j] + 1,
                previous[j - 1] + cost
            ))
        previous = current

    return previous[-1]


def calculate_fuzzy_score(query: str, text: str) -> float:
    """
    Score how well query matches text, in [0, 1]

    Exact matches score 1.0, substrings 0.8-0.9 depending on position,
    word-level containment 0.7-0.9, and anything else falls back to a
    normalized edit distance that is dropped below 0.6.
    """
    if not query or not text:
        return 0.0

    query_lower = query.lower()
    text_lower = text.lower()

    if query_lower == text_lower:
        return 1.0

    index = text_lower.find(query_lower)
    if index != -1:
        return 0.9 - (index / len(text_lower)) * 0.1

    words = text_lower.split()
    query_words = query_lower.split()

    word_matches = sum(
        1 for query_word in query_words
        if any(query_word in word for word in words)
    )
    if word_matches > 0:
        return 0.7 + (word_matches / len(query_words)) * 0.2

    distance = levenshtein_distance(query_lower, text_lower)
    max_length = max(len(query_lower), len(text_lower))
    fuzzy_score = 1 - (distance / max_length)

    return fuzzy_score if fuzzy_score > DEFAULT_THRESHOLD else 0.0


def find_match_positions(query: str, text: str) -> List[int]:
    """Character positions in text covered by non-overlapping occurrences of query"""
    positions = []
    if not query or not text:
        return positions

    query_lower = query.lower()
    text_lower = text.lower()

    index = text_lower.find(query_lower)
    while index != -1:
        positions.extend(range(index, index + len(query_lower)))
        index = text_lower.find(query_lower, index + len(query_lower))

    return positions


def _rank(query: str, text: str, score: float):
    # Highest score first, then the candidate closest in length to the query
    return (-score, abs(len(text) - len(query)))


def fuzzy_search(query: str, items: List[T], get_text: Callable[[T], str],
                 threshold: float = DEFAULT_THRESHOLD, max_results: int = 10,
                 case_sensitive: bool = False, include_matches: bool = True) -> List[FuzzySearchResult]:
    """Find fuzzy matches for query among arbitrary items"""
    if not query or not items:
        return []

    results = []
    for item in items:
        if item is None:
            continue

        try:
            text = get_text(item)
        except (AttributeError, KeyError, TypeError) as e:
            logger.warning(f"Skipping item in fuzzy search: {e}")
            continue

        if not isinstance(text, str) or not text.strip():
            continue

        search_text = text if case_sensitive else text.lower()
        search_query = query if case_sensitive else query.lower()
        score = calculate_fuzzy_score(search_query, search_text)

        if score >= threshold:
            results.append(FuzzySearchResult(
                item=text,
                score=score,
                matches=find_match_positions(search_query, search_text) if include_matches else [],
                original_text=text
            ))

    results.sort(key=lambda r: _rank(query, r.item, r.score))
    return results[:max_results]


def fuzzy_search_properties(query: str, properties: List[PropertySearchItem],
                            threshold: float = DEFAULT_THRESHOLD,
                            max_results: int = 10) -> List[FuzzyPropertyResult]:
    """Score properties by their best weighted field match"""
    if not query or not properties:
        return []

    results = []
    for prop in properties:
        if prop is None or not prop.id:
            continue

        fields = [
            ('title', prop.title or '', 1.0),
            ('description', prop.description or '', 0.8),
            ('location', prop.location or '', 0.9),
            ('property_type', prop.property_type or '', 0.7),
        ]

        max_score = 0.0
        matched_fields = []
        for name, text, weight in fields:
            if not text.strip():
                continue
            score = calculate_fuzzy_score(query, text) * weight
            max_score = max(max_score, score)
            if score > DEFAULT_THRESHOLD:
                matched_fields.append(name)

        if max_score >= threshold:
            results.append(FuzzyPropertyResult(
                property=prop,
                score=max_score,
                matched_fields=matched_fields
            ))

    results.sort(key=lambda r: r.score, reverse=True)
    return results[:max_results]


def _substring_suggestions(query: str, candidates: List[str], max_results: int) -> List[SearchSuggestion]:
    query_lower = query.lower()
    results = []
    for candidate in candidates:
        if not isinstance(candidate, str) or query_lower not in candidate.lower():
            continue
        exact = candidate.lower() == query_lower
        results.append(SearchSuggestion(
            suggestion=candidate,
            score=1.0 if exact else 0.9,
            type=SuggestionType.EXACT if exact else SuggestionType.PARTIAL
        ))

    results.sort(key=lambda s: _rank(query, s.suggestion, s.score))
    return results[:max_results]


def generate_search_suggestions(query: str, candidates: List[str],
                                threshold: float = DEFAULT_THRESHOLD,
                                max_results: int = 5) -> List[SearchSuggestion]:
    """
    Rank candidate suggestions for a partially typed query

    Falls back to plain substring filtering if fuzzy scoring fails.
    """
    if not query or not candidates:
        return []

    results = []
    try:
        for candidate in candidates:
            if not isinstance(candidate, str) or not candidate.strip():
                continue

            score = calculate_fuzzy_score(query, candidate)
            if score < threshold:
                continue

            if score == 1.0:
                suggestion_type = SuggestionType.EXACT
            elif query.lower() in candidate.lower():
                suggestion_type = SuggestionType.PARTIAL
            else:
                suggestion_type = SuggestionType.FUZZY

            results.append(SearchSuggestion(
                suggestion=candidate,
                score=score,
                type=suggestion_type
            ))
    except Exception as e:
        logger.warning(f"Fuzzy suggestion scoring failed for '{query}', using substring filter: {e}")
        return _substring_suggestions(query, candidates, max_results)

    results.sort(key=lambda s: _rank(query, s.suggestion, s.score))
    return results[:max_results]


def auto_correct_query(query: str, dictionary: Optional[List[str]]) -> str:
    """Replace likely typos word by word with their closest dictionary term"""
    if not query or not dictionary:
        return query or ''

    corrected_words = []
    for word in query.split(' '):
        # Short words are left alone
        if len(word) < 3:
            corrected_words.append(word)
            continue

        best_match = word
        best_score = 0.0
        for dict_word in dictionary:
            if not isinstance(dict_word, str) or not dict_word.strip():
                continue
            score = calculate_fuzzy_score(word, dict_word)
            if score > best_score and score > AUTOCORRECT_THRESHOLD:
                best_score = score
                best_match = dict_word

        corrected_words.append(best_match)

    corrected = ' '.join(corrected_words)
    if corrected != query:
        logger.debug(f"Auto-corrected '{query}' to '{corrected}'")
    return corrected
