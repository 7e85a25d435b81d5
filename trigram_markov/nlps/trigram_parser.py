"""
Trigram Parser

Turns a raw text corpus into the normalised trigrams the Markov model is
trained on.

Functions:
    - normalise: Lowercases a word and strips everything outside a-z.
    - normalise_words: Normalises a list of words, dropping the ones left empty.
    - parse: Collects whitespace separated words from a text stream.
    - trigrams_from_words: Normalises words and slides a window of three over them.
    - read_corpus: Reads a plain-text or CSV corpus from disk.
    - parse_text_to_normalised_trigrams: Raw text to trigrams.
    - parse_file_to_normalised_trigrams: Corpus file to trigrams.

Dependencies:
    - re: For stripping non-alphabetic characters.
    - pandas: For reading CSV corpora.
"""

import io
import os
import re
from collections import namedtuple

import pandas as pd

Trigram = namedtuple("Trigram", ["word1", "word2", "word3"])

NON_ALPHA_PATTERN = re.compile(r"[^a-z]")


class InsufficientInputError(ValueError):
    """Raised when a corpus holds fewer than three usable words."""


def normalise(word):
    """
    Makes a word lower case and removes any digits, punctuation or other
    characters outside the ASCII alphabet.

    Example:
        >>> normalise("Don't!")
        'dont'
    """
    return NON_ALPHA_PATTERN.sub("", word.lower())


def normalise_words(words):
    """Normalises every word. Words that normalise to empty strings are discarded."""
    normalised = []
    for word in words:
        word = normalise(word)
        if word:
            normalised.append(word)
    return normalised


def parse(stream):
    """
    Collates the whitespace separated words of a text stream.

    Args:
        stream: Any iterable of lines, such as an open text file or io.StringIO.

    Returns:
        list: Raw words in corpus order.
    """
    words = []
    for line in stream:
        words.extend(line.split())
    return words


def trigrams_from_words(words):
    """
    Normalises a list of raw words and returns every run of three consecutive words.

    Args:
        words (list): Raw words as returned by `parse`.

    Returns:
        list: Trigram tuples.

    Raises:
        InsufficientInputError: If fewer than 3 words survive normalisation.
    """
    words = normalise_words(words)
    if len(words) < 3:
        raise InsufficientInputError("input has less than 3 words")

    return [Trigram(words[i], words[i + 1], words[i + 2])
            for i in range(len(words) - 2)]


def _read_pd_csv(csv_file_path, header=None):
    """Reads a CSV file and joins the non-empty rows of its first column with newlines."""
    df = pd.read_csv(csv_file_path, encoding="UTF-8", header=header)
    return "\n".join(df.iloc[:, 0].dropna().astype(str))


def read_corpus(path):
    """
    Reads a corpus file into a single string.

    Files ending in `.csv` contribute the non-empty first-column cells; anything
    else is read as UTF-8 text.
    """
    if os.path.splitext(path)[1].lower() == ".csv":
        return _read_pd_csv(path)

    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def parse_text_to_normalised_trigrams(text):
    """Parses all normalised trigrams from a string."""
    return trigrams_from_words(parse(io.StringIO(text)))


def parse_file_to_normalised_trigrams(path):
    """Parses all normalised trigrams from a corpus file."""
    return parse_text_to_normalised_trigrams(read_corpus(path))
