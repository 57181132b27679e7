"""
Content quality analyzer.

Word count bands, document language, sentence length, paragraphing,
keyword stuffing, and Flesch readability metrics (reported in data only).
"""

from __future__ import annotations

import re
from collections import Counter

from site_auditor.engines.base import (
    Analyzer,
    AnalyzerResult,
    IssueCollector,
    PageData,
    Severity,
    round_half_up,
)
from site_auditor.engines.crawler.extractor import PageExtractor

THIN_CONTENT_WORDS = 300
LOW_CONTENT_WORDS = 600
MAX_AVG_SENTENCE_WORDS = 25
MIN_PARAGRAPHS = 3
KEYWORD_DENSITY_LIMIT = 5.0  # percent

VOWELS = "aeiouy"
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
NON_ALPHA_RE = re.compile(r"[^a-z]")


# ─────────────────────────────────────────────
# Readability helpers
# ─────────────────────────────────────────────

def split_sentences(text: str) -> list[str]:
    return [s for s in SENTENCE_SPLIT_RE.split(text) if s.strip()]


def count_word_syllables(word: str) -> int:
    """Vowel-group syllable estimate, minimum 1."""
    clean = NON_ALPHA_RE.sub("", word.lower())
    if len(clean) <= 3:
        return 1

    count = 0
    previous_vowel = False
    for char in clean:
        is_vowel = char in VOWELS
        if is_vowel and not previous_vowel:
            count += 1
        previous_vowel = is_vowel

    if clean.endswith("e"):
        count -= 1
    if clean.endswith("le") and clean[-3] not in VOWELS:
        count += 1

    return max(1, count)


def readability_metrics(text: str) -> dict[str, float]:
    words = text.split()
    sentences = split_sentences(text)
    syllables = sum(count_word_syllables(w) for w in words)

    words_per_sentence = len(words) / len(sentences) if sentences else 0.0
    syllables_per_word = syllables / len(words) if words else 0.0

    reading_ease = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
    grade = 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59

    return {
        "word_count": len(words),
        "sentence_count": len(sentences),
        "avg_words_per_sentence": round_half_up(words_per_sentence * 10) / 10,
        "avg_syllables_per_word": round_half_up(syllables_per_word * 10) / 10,
        "flesch_reading_ease": round_half_up(max(0.0, min(100.0, reading_ease))),
        "flesch_kincaid_grade": round_half_up(max(0.0, grade) * 10) / 10,
    }


# ─────────────────────────────────────────────
# Analyzer
# ─────────────────────────────────────────────

class ContentAnalyzer(Analyzer):
    NAME = "Content Quality"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        text = extracted.get_text_content()
        words = text.split()
        word_count = len(words)
        language = extracted.get_language()
        issues = IssueCollector(self.NAME)

        if word_count < THIN_CONTENT_WORDS:
            issues.add(
                "THIN_CONTENT", f"Page has thin content ({word_count} words)", Severity.WARNING, 20,
                recommendation="Consider adding more valuable content. Aim for at least 300 words for better SEO",
            )
        elif word_count < LOW_CONTENT_WORDS:
            issues.add(
                "LOW_WORD_COUNT", f"Page has relatively low word count ({word_count} words)", Severity.INFO, 10,
                recommendation=(
                    "Consider expanding content to provide more value. "
                    "Aim for 600+ words for in-depth topics"
                ),
            )

        if not language:
            issues.add(
                "MISSING_LANG", "Page is missing lang attribute on <html> tag", Severity.WARNING, 10,
                recommendation='Add lang="en" (or appropriate language code) to the <html> tag',
            )

        sentences = split_sentences(text)
        if sentences:
            avg = word_count / len(sentences)
            if avg > MAX_AVG_SENTENCE_WORDS:
                issues.add(
                    "LONG_SENTENCES", f"Average sentence length is high ({avg:.1f} words)", Severity.INFO, 5,
                    recommendation="Break up long sentences for better readability. Aim for 15-20 words per sentence",
                )

        if word_count > THIN_CONTENT_WORDS and extracted.get_paragraph_count() < MIN_PARAGRAPHS:
            issues.add(
                "FEW_PARAGRAPHS", "Content has few paragraph breaks", Severity.INFO, 5,
                recommendation="Break up content into smaller paragraphs for better readability",
            )

        self._check_keyword_density(words, issues)

        return issues.build({
            "word_count": word_count,
            "language": language,
            "readability_metrics": readability_metrics(text),
        })

    def _check_keyword_density(self, words: list[str], issues: IssueCollector) -> None:
        candidates = [w for w in (w.lower() for w in words) if len(w) > 3]
        if not candidates:
            return

        frequencies = Counter(
            clean for clean in (NON_ALPHA_RE.sub("", w) for w in candidates) if len(clean) > 3
        )
        for word, count in frequencies.items():
            density = count / len(candidates) * 100
            if density > KEYWORD_DENSITY_LIMIT:
                issues.add(
                    "KEYWORD_STUFFING", f'Word "{word}" appears too frequently ({density:.1f}% density)',
                    Severity.WARNING, 10,
                    recommendation="Reduce repetition of this word. Aim for 1-3% keyword density",
                )
