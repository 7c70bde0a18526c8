#!/usr/bin/env python3
"""
Text feature extraction for collected posts.

Lexicon-based keyword, sentiment and term extraction used to tag records
fetched from community and research sources.
"""

import re
from collections import Counter
from typing import Dict, List, Sequence

from bs4 import BeautifulSoup

STOPWORDS = frozenset({
    'about', 'after', 'again', 'also', 'anyone', 'been', 'before', 'being', 'could',
    'does', 'doing', 'from', 'have', 'having', 'here', 'into', 'just', 'like', 'more',
    'much', 'only', 'other', 'over', 'really', 'same', 'should', 'some', 'than', 'that',
    'their', 'them', 'then', 'there', 'these', 'they', 'this', 'those', 'very', 'want',
    'were', 'what', 'when', 'where', 'which', 'while', 'will', 'with', 'would', 'your',
})

POSITIVE_WORDS = ('help', 'improve', 'better', 'good', 'great', 'amazing', 'wonderful',
                  'effective', 'success', 'positive')
NEGATIVE_WORDS = ('problem', 'issue', 'bad', 'terrible', 'awful', 'difficult', 'struggle',
                  'pain', 'negative', 'worse')

SYMPTOM_TERMS = ('high blood sugar', 'low blood sugar', 'fatigue', 'thirst', 'frequent urination',
                 'blurred vision', 'slow healing', 'confusion', 'hypoglycemia')
TREATMENT_TERMS = ('insulin', 'metformin', 'exercise', 'diet', 'cinnamon', 'lemon',
                   'cold therapy', 'cold shower', 'fasting')
MEDICATION_TERMS = ('insulin', 'metformin', 'glipizide', 'glimepiride', 'pioglitazone', 'empagliflozin')
LIFESTYLE_TERMS = ('diet', 'exercise', 'stress', 'sleep', 'alcohol', 'smoking', 'weight management')
LOCATION_TERMS = ('USA', 'UK', 'Canada', 'Australia', 'Europe', 'Asia', 'Africa')

DIABETES_TYPE_MARKERS: Sequence = (
    ('type1', ('type 1', 't1d', 'insulin dependent')),
    ('type2', ('type 2', 't2d', 'non-insulin dependent')),
    ('gestational', ('gestational', 'pregnancy')),
    ('prediabetes', ('prediabetes', 'pre-diabetes')),
)

_PUNCTUATION = re.compile(r'[^\w\s]')


def html_to_text(markup: str) -> str:
    """Visible text of an HTML fragment such as an RSS summary."""
    if '<' not in markup:
        return markup.strip()
    soup = BeautifulSoup(markup, 'html.parser')
    for element in soup(['script', 'style']):
        element.decompose()
    return soup.get_text(' ', strip=True)


def extract_keywords(text: str, limit: int = 10) -> List[str]:
    """Most frequent words longer than three characters, first-seen order on ties."""
    words = _PUNCTUATION.sub('', text.lower()).split()
    counts = Counter(word for word in words if len(word) > 3 and word not in STOPWORDS)
    return [word for word, _ in counts.most_common(limit)]


def analyze_sentiment(text: str) -> str:
    """Lexicon sentiment: positive, negative or neutral."""
    lowered = text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if positive > negative:
        return 'positive'
    if negative > positive:
        return 'negative'
    return 'neutral'


def classify_diabetes_type(text: str) -> str:
    lowered = text.lower()
    for label, markers in DIABETES_TYPE_MARKERS:
        if any(marker in lowered for marker in markers):
            return label
    return 'unknown'


def find_terms(text: str, terms: Sequence[str]) -> List[str]:
    """Terms from the list that occur in text (case-insensitive)."""
    lowered = text.lower()
    return [term for term in terms if term.lower() in lowered]


def extract_location(text: str) -> str:
    """First location keyword found in text, 'Global' otherwise."""
    for keyword in LOCATION_TERMS:
        if re.search(rf'\b{re.escape(keyword)}\b', text):
            return keyword
    return 'Global'


def extract_features(text: str) -> Dict[str, object]:
    """
    All text features as Record keyword arguments.

    Returns:
        Dictionary with keywords, sentiment, symptoms, treatments,
        medications, lifestyle_factors, location and a diabetes_type tag
    """
    return {
        'keywords': extract_keywords(text),
        'sentiment': analyze_sentiment(text),
        'symptoms': find_terms(text, SYMPTOM_TERMS),
        'treatments': find_terms(text, TREATMENT_TERMS),
        'medications': find_terms(text, MEDICATION_TERMS),
        'lifestyle_factors': find_terms(text, LIFESTYLE_TERMS),
        'location': extract_location(text),
        'tags': {'diabetes_type': classify_diabetes_type(text)},
    }
