"""
Topic ranking for a fetched page.

The corpus is the page's own resolved fields, repeated by how much they say
about the page, and scored with a single-document TF-IDF. Nothing here
touches the network: the stopword list is whatever is installed locally.
"""

import logging

from nltk.corpus import stopwords
from nltk.tokenize import RegexpTokenizer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS, TfidfVectorizer

logger = logging.getLogger(__name__)

MAX_TOPICS = 15
MAX_FEATURES = 200

# repetitions per field when building the corpus
FIRST_TITLE_WEIGHT = 5
TITLE_WEIGHT = 3
DESCRIPTION_WEIGHT = 3
HEADING_WEIGHT = 2

# navigation and call-to-action words that rank high on almost any page
PAGE_NOISE = frozenset({
    "click", "please", "read", "more", "also", "like", "get", "use", "new",
    "see", "said", "says", "back", "next", "previous", "home", "login",
    "sign", "cookie", "cookies", "subscribe", "newsletter", "share", "menu",
    "comments", "reply", "posted", "updated", "copyright", "rights", "reserved",
})

_WORD_TOKENIZER = RegexpTokenizer(r"[a-z]{3,}")


def _load_stop_words() -> frozenset:
    try:
        return frozenset(stopwords.words("english")) | PAGE_NOISE
    except LookupError:
        # nltk corpus not installed; never download it from inside a resolver
        logger.info("NLTK stopwords not installed, using scikit-learn's list")
        return frozenset(ENGLISH_STOP_WORDS) | PAGE_NOISE


STOP_WORDS = _load_stop_words()


def _tokenize(text: str) -> list[str]:
    return [t for t in _WORD_TOKENIZER.tokenize(text.lower()) if t not in STOP_WORDS]


def build_corpus(titles: list[str], descriptions: list[str], headings: list[str], paragraphs: list[str]) -> str:
    """
    Join the page's fields into one text, repeating the high-signal ones.
    The highest-priority title counts most; paragraphs appear once.
    """
    parts = []
    for i, title in enumerate(titles):
        parts.extend([title] * (FIRST_TITLE_WEIGHT if i == 0 else TITLE_WEIGHT))
    for description in descriptions:
        parts.extend([description] * DESCRIPTION_WEIGHT)
    for heading in headings:
        parts.extend([heading] * HEADING_WEIGHT)
    parts.extend(paragraphs)
    return " ".join(parts)


def extract_topics(corpus: str, top_n: int = MAX_TOPICS) -> list[str]:
    """Top scoring unigrams and bigrams of the corpus, best first."""
    tokens = _tokenize(corpus)
    if not tokens:
        return []

    vectorizer = TfidfVectorizer(ngram_range=(1, 2), max_features=MAX_FEATURES, sublinear_tf=True)
    try:
        row = vectorizer.fit_transform([" ".join(tokens)]).toarray()[0]
    except ValueError as exc:
        logger.warning("Topic ranking failed: %s", exc)
        return []

    ranked = sorted(zip(vectorizer.get_feature_names_out(), row), key=lambda pair: pair[1], reverse=True)
    return [term for term, score in ranked[:top_n] if score > 0]
