"""
Deterministic text metrics for SEO scoring.

This module computes, without any external state:
- Word, sentence and paragraph counts and reading time
- Keyword occurrence counts and density
- Title heuristics and a simplified Flesch reading ease score
- A pass/fail SEO checklist

Tokenization is whitespace/regex based; there is no real NLP here.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


WORDS_PER_MINUTE = 200

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60

POWER_WORDS = ("ultimate", "complete", "essential", "proven", "best", "top", "how to", "guide")

# (minimum score, label), checked in order
READABILITY_LEVELS = (
    (90, "Very Easy (5th grade)"),
    (80, "Easy (6th grade)"),
    (70, "Fairly Easy (7th grade)"),
    (60, "Standard (8th-9th grade)"),
    (50, "Fairly Difficult (10th-12th grade)"),
    (30, "Difficult (College)"),
)
HARDEST_READABILITY_LEVEL = "Very Difficult (College Graduate)"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"(?:\r?\n){2,}")
_SYLLABLE_WORD = re.compile(r"\b[a-z]+\b")
_SILENT_ENDING = re.compile(r"(?:[^aeiouy]es|ed|[^aeiouy]e)$")
_LEADING_Y = re.compile(r"^y")
_VOWEL_GROUP = re.compile(r"[aeiouy]{1,2}")

STOPWORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "shall", "can", "this",
    "that", "these", "those", "it", "its", "you", "your", "we", "our",
    "they", "their", "he", "she", "him", "her", "his", "my", "i", "me",
    "as", "if", "when", "where", "why", "how", "what", "which", "who",
    "all", "each", "every", "both", "few", "more", "most", "other",
    "some", "such", "no", "not", "only", "own", "same", "so", "than",
    "too", "very", "just", "also", "now", "here", "there", "then",
}


@dataclass
class KeywordHit:
    """Occurrences of one target keyword in the body."""
    keyword: str
    count: int
    density: float  # percent of body words, 2 decimals

    def to_dict(self) -> dict:
        return {"keyword": self.keyword, "count": self.count, "density": f"{self.density:.2f}"}


@dataclass
class KeywordAnalysis:
    """Keyword usage across the body."""
    found: list[KeywordHit] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    total_occurrences: int = 0
    density: float = 0.0

    def to_dict(self) -> dict:
        return {
            "found": [hit.to_dict() for hit in self.found],
            "missing": list(self.missing),
            "total_occurrences": self.total_occurrences,
            "density": f"{self.density:.2f}",
        }


@dataclass
class TitleAnalysis:
    """Heuristic assessment of a title."""
    length: int
    score: int
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    has_keyword: bool = False

    def to_dict(self) -> dict:
        return {
            "length": self.length,
            "score": self.score,
            "issues": list(self.issues),
            "suggestions": list(self.suggestions),
            "has_keyword": self.has_keyword,
        }


@dataclass
class ReadabilityResult:
    """Simplified Flesch reading ease result."""
    score: int
    level: str
    avg_sentence_length: float = 0.0
    avg_syllables_per_word: float = 0.0

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "level": self.level,
            "avg_sentence_length": f"{self.avg_sentence_length:.1f}",
            "avg_syllables_per_word": f"{self.avg_syllables_per_word:.2f}",
        }


@dataclass
class ChecklistItem:
    """A named pass/fail rule with a human-readable current value."""
    item: str
    passed: bool
    current: str

    def to_dict(self) -> dict:
        return {"item": self.item, "passed": self.passed, "current": self.current}


@dataclass
class BasicMetrics:
    """All deterministic metrics for a title/body/keyword set."""
    word_count: int
    character_count: int
    sentence_count: int
    paragraph_count: int
    reading_time: int
    keyword_analysis: KeywordAnalysis
    title_analysis: TitleAnalysis
    readability: ReadabilityResult

    def to_dict(self) -> dict:
        return {
            "word_count": self.word_count,
            "character_count": self.character_count,
            "sentence_count": self.sentence_count,
            "paragraph_count": self.paragraph_count,
            "reading_time": self.reading_time,
            "keyword_analysis": self.keyword_analysis.to_dict(),
            "title_analysis": self.title_analysis.to_dict(),
            "readability": self.readability.to_dict(),
        }


def round_half_up(value: float, digits: int = 0):
    """
    Round with halves going up, so 72.5 -> 73 and 0.125 -> 0.13.

    Returns an int when digits is 0, otherwise a float.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def word_count(text: Optional[str]) -> int:
    """Count whitespace-separated words. Empty or missing text has 0 words."""
    if not text:
        return 0
    return len(text.split())


def sentence_count(text: Optional[str]) -> int:
    """Count non-empty segments between runs of '.', '!' and '?'."""
    if not text:
        return 0
    return sum(1 for segment in _SENTENCE_SPLIT.split(text) if segment.strip())


def paragraph_count(text: Optional[str]) -> int:
    """Count non-empty blocks separated by blank lines."""
    if not text:
        return 0
    return sum(1 for block in _PARAGRAPH_SPLIT.split(text) if block.strip())


def reading_time_minutes(text: Optional[str]) -> int:
    """Estimated reading time in whole minutes at 200 words per minute."""
    return math.ceil(word_count(text) / WORDS_PER_MINUTE)


def count_syllables(text: Optional[str]) -> int:
    """
    Heuristically count syllables across all alphabetic words in text.

    Each word loses a trailing silent ending and a leading 'y', then every
    group of one or two vowels counts as a syllable, with at least one per word.
    """
    if not text:
        return 0

    total = 0
    for word in _SYLLABLE_WORD.findall(text.lower()):
        word = _SILENT_ENDING.sub("", word)
        word = _LEADING_Y.sub("", word)
        groups = _VOWEL_GROUP.findall(word)
        total += len(groups) if groups else 1
    return total


def count_occurrences(keyword: str, text: str) -> int:
    """Case-insensitive count of a literal keyword inside text."""
    if not keyword or not text:
        return 0
    return len(re.findall(re.escape(keyword), text, re.IGNORECASE))


def contains_keyword(text: Optional[str], keywords: list[str]) -> bool:
    """Check whether any keyword is a case-insensitive substring of text."""
    if not text:
        return False
    lowered = text.lower()
    return any(kw and kw.lower() in lowered for kw in keywords)


def analyze_keywords(body: Optional[str], keywords: list[str]) -> KeywordAnalysis:
    """
    Measure how often each target keyword appears in the body.

    Args:
        body: Body text.
        keywords: Ordered target keywords.

    Returns:
        KeywordAnalysis with per-keyword counts and densities, the keywords
        that were not found, and the aggregate density.
    """
    total_words = word_count(body)
    if not keywords or total_words == 0:
        return KeywordAnalysis(missing=list(keywords))

    analysis = KeywordAnalysis()
    for keyword in keywords:
        count = count_occurrences(keyword, body)
        if count > 0:
            analysis.found.append(KeywordHit(
                keyword=keyword,
                count=count,
                density=round_half_up(count / total_words * 100, 2),
            ))
            analysis.total_occurrences += count
        else:
            analysis.missing.append(keyword)

    analysis.density = round_half_up(analysis.total_occurrences / total_words * 100, 2)
    return analysis


def analyze_title(title: Optional[str], keywords: list[str]) -> TitleAnalysis:
    """
    Score a title out of 100.

    Deductions: 20 for a title under 30 characters, 10 for one over 60,
    and 25 when keywords are set but none appears in the title. A missing
    title scores 0. A title without a leading digit or power word gets a
    suggestion but no deduction.
    """
    if not title:
        return TitleAnalysis(
            length=0,
            score=0,
            issues=["Title is missing"],
            suggestions=["Add a descriptive title"],
        )

    analysis = TitleAnalysis(length=len(title), score=100)

    if len(title) < TITLE_MIN_LENGTH:
        analysis.issues.append("Title is too short")
        analysis.suggestions.append("Expand title to 50-60 characters")
        analysis.score -= 20
    elif len(title) > TITLE_MAX_LENGTH:
        analysis.issues.append("Title may be truncated in search results")
        analysis.suggestions.append("Shorten title to under 60 characters")
        analysis.score -= 10

    if keywords:
        analysis.has_keyword = contains_keyword(title, keywords)
        if not analysis.has_keyword:
            analysis.issues.append("Primary keyword not found in title")
            analysis.suggestions.append("Include your primary keyword in the title")
            analysis.score -= 25

    starts_with_number = title[0].isdigit()
    title_lower = title.lower()
    has_power_word = any(word in title_lower for word in POWER_WORDS)
    if not starts_with_number and not has_power_word:
        analysis.suggestions.append("Consider starting with a number or adding a power word")

    return analysis


def readability_level(score: float) -> str:
    """Map a reading ease score to a grade-level label."""
    for minimum, label in READABILITY_LEVELS:
        if score >= minimum:
            return label
    return HARDEST_READABILITY_LEVEL


def calculate_readability(text: Optional[str]) -> ReadabilityResult:
    """
    Compute a simplified Flesch reading ease score clamped to 0-100.

    score = 206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words)
    """
    words = word_count(text)
    sentences = sentence_count(text)
    if words == 0 or sentences == 0:
        return ReadabilityResult(score=0, level=readability_level(0))

    avg_sentence_length = words / sentences
    avg_syllables_per_word = count_syllables(text) / words

    score = 206.835 - 1.015 * avg_sentence_length - 84.6 * avg_syllables_per_word
    score = max(0.0, min(100.0, score))

    return ReadabilityResult(
        score=round_half_up(score),
        level=readability_level(score),
        avg_sentence_length=avg_sentence_length,
        avg_syllables_per_word=avg_syllables_per_word,
    )


def generate_checklist(
    title: Optional[str],
    body: Optional[str],
    meta_description: Optional[str],
    keywords: list[str],
) -> list[ChecklistItem]:
    """
    Build the ordered SEO checklist.

    Every item is computed independently from the inputs alone.
    """
    words = word_count(body)
    checklist = []

    checklist.append(ChecklistItem(
        item="Title length (50-60 chars)",
        passed=bool(title) and 50 <= len(title) <= 60,
        current=f"{len(title)} characters" if title else "No title",
    ))

    title_has_keyword = contains_keyword(title, keywords)
    if not keywords:
        keyword_current = "No keywords set"
    elif title_has_keyword:
        matched = next(kw for kw in keywords if kw and kw.lower() in title.lower())
        keyword_current = f"Found: {matched}"
    else:
        keyword_current = "Not found"
    checklist.append(ChecklistItem(
        item="Keyword in title",
        passed=title_has_keyword,
        current=keyword_current,
    ))

    checklist.append(ChecklistItem(
        item="Meta description length (150-160 chars)",
        passed=bool(meta_description) and 150 <= len(meta_description) <= 160,
        current=f"{len(meta_description)} characters" if meta_description else "No meta description",
    ))

    checklist.append(ChecklistItem(
        item="Minimum word count (300+ words)",
        passed=words >= 300,
        current=f"{words} words",
    ))

    checklist.append(ChecklistItem(
        item="Optimal word count (1000+ words)",
        passed=words >= 1000,
        current=f"{words} words",
    ))

    density = analyze_keywords(body, keywords).density
    checklist.append(ChecklistItem(
        item="Keyword density (1-3%)",
        passed=1 <= density <= 3,
        current=f"{density:.2f}%",
    ))

    return checklist


def compute_basic_metrics(
    title: Optional[str],
    body: Optional[str],
    keywords: list[str],
) -> BasicMetrics:
    """Compute every deterministic metric for a title, body and keyword list."""
    return BasicMetrics(
        word_count=word_count(body),
        character_count=len(body or ""),
        sentence_count=sentence_count(body),
        paragraph_count=paragraph_count(body),
        reading_time=reading_time_minutes(body),
        keyword_analysis=analyze_keywords(body, keywords),
        title_analysis=analyze_title(title, keywords),
        readability=calculate_readability(body),
    )


def extract_key_terms(text: Optional[str], top_n: int = 20) -> list[tuple[str, int]]:
    """
    Extract the most frequent non-stopword terms from text.

    Ties keep first-seen order, so the result is deterministic.
    """
    if not text:
        return []
    words = re.findall(r"\b[a-z]{3,}\b", text.lower())
    counter = Counter(w for w in words if w not in STOPWORDS)
    return counter.most_common(top_n)
