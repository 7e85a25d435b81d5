"""
Trigram Markov Model

This module implements a second-order Markov chain over words. The model is
trained one trigram at a time and generates novel text of an exact requested
length by sampling successors weighted by their observed counts.

Classes:
    - MarkovModel: Frequency table of "third word given first two words" plus
      the generation loop and its dead-end recovery policy.
    - EmptyModelError: Raised when text is requested from an untrained model.

Usage:
    >>> import random
    >>> model = MarkovModel(random.Random(42).randrange)
    >>> for trigram in trigrams:
    ...     model.add(trigram)
    >>> model.generate(25)

Notes:
    - The pseudo-random source is injected as a callable taking an upper bound
      `n` and returning an integer in [0, n). Tests replace it with a
      deterministic counter.
    - Prefixes and expanded successor lists are sorted before indexing so that
      generation is reproducible for a given random source.
"""

import logging


class EmptyModelError(ValueError):
    """Raised when generation is requested before any trigram was added."""


def capitalise(word):
    """Upper-case the first character of a word, leaving the rest untouched."""
    return word[:1].upper() + word[1:]


class MarkovModel:
    """
    Accepts trigrams and generates novel text using a second-order Markov chain.

    Attributes:
        frequencies (dict): Maps a prefix ("word1 word2") to a dict of successor
            words and their occurrence counts.
        prng (callable): Pseudo-random integer source, prng(n) -> [0, n).
        logger (logging.Logger): Logger receiving generation events.
    """

    def __init__(self, prng, logger=None):
        """
        Initializes an empty model.

        Args:
            prng (callable): Function taking an upper bound n and returning a
                pseudo-random integer in [0, n).
            logger (Logger, optional): Logger instance; defaults to the module logger.
        """
        self.frequencies = {}
        self.prng = prng
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def _get_prefix_by_numerical_index(self, i):
        """
        Returns the prefix at position i of the lexically sorted prefix keys.

        The index wraps around the number of prefixes. The frequency table must
        be populated before this is called.
        """
        keys = sorted(self.frequencies)
        return keys[i % len(keys)]

    def _choose_adjoining_word(self, options):
        """
        Chooses a successor at random, weighted by its count.

        Args:
            options (dict): Successor words mapped to their counts. Must not be empty.

        Returns:
            str: The chosen successor.
        """
        choices = []
        for word, count in options.items():
            choices.extend([word] * count)
        # sorted so the pick is deterministic for a known prng
        choices.sort()

        return choices[self.prng(len(choices))]

    def _handle_dead_end(self, words, num_words):
        """
        Ends the current sentence when the last two words were never seen as a prefix.

        The last word gets a full stop, then the sequence is extended towards
        num_words: a fresh capitalised prefix from the table when more than two
        words remain, "You heard" when exactly two remain, "amen" when one remains.
        The list is modified in place.

        Args:
            words (list): Words generated so far.
            num_words (int): Total number of words requested.
        """
        remaining = num_words - len(words)
        assert remaining > 0, "dead end reached with no words left to generate"

        words[-1] = f"{words[-1]}."

        if remaining > 2:
            appendage = self._get_prefix_by_numerical_index(
                self.prng(len(self.frequencies))).split(" ")
            appendage[0] = capitalise(appendage[0])
        elif remaining == 2:
            appendage = ["You", "heard"]
        else:
            appendage = ["amen"]

        self.logger.debug("Dead end handled", extra={
            "metrics": {
                "words_generated": len(words),
                "remaining": remaining,
                "appended": " ".join(appendage)
            }
        })
        words.extend(appendage)

    def add(self, trigram):
        """
        Stores a trigram by incrementing the count of its third word under its prefix.

        Args:
            trigram (Trigram): Any triple of (word1, word2, word3).
        """
        word1, word2, word3 = trigram
        prefix = f"{word1} {word2}"

        successors = self.frequencies.get(prefix)
        if successors is None:
            self.frequencies[prefix] = {word3: 1}
        elif word3 not in successors:
            successors[word3] = 1
        else:
            successors[word3] += 1

    def train(self, trigrams):
        """
        Adds every trigram of an iterable to the model.

        Args:
            trigrams (iterable): Trigrams produced by the tokenizer.

        Returns:
            int: Number of trigrams added.
        """
        count = 0
        for trigram in trigrams:
            self.add(trigram)
            count += 1

        self.logger.info("Model trained", extra={
            "metrics": {
                "trigram_count": count,
                "prefix_count": len(self.frequencies)
            }
        })
        return count

    def generate(self, num_words):
        """
        Generates novel text of exactly num_words words using the Markov chain.

        Args:
            num_words (int): Number of words to generate, at least 1.

        Returns:
            str: Generated text, first word capitalised, ending with a full stop.

        Raises:
            EmptyModelError: If no trigram has been added yet.
            ValueError: If num_words is less than 1.
        """
        if not self.frequencies:
            self.logger.warning("Text generation failed - model is empty")
            raise EmptyModelError("Model is empty")
        if num_words < 1:
            raise ValueError(f"num_words must be at least 1, got {num_words}")

        self.logger.info("Text generation started", extra={
            "metrics": {
                "num_words": num_words,
                "prefix_count": len(self.frequencies)
            }
        })

        seed_prefix = self._get_prefix_by_numerical_index(
            self.prng(len(self.frequencies)))
        words = seed_prefix.split(" ")

        if num_words == 1:
            self.logger.info("Text generation completed", extra={
                "metrics": {
                    "words_generated": 1,
                    "dead_ends": 0,
                    "seed_prefix": seed_prefix
                }
            })
            return capitalise(words[0]) + "."

        dead_ends = 0
        while len(words) < num_words:
            prefix = " ".join(words[-2:])
            successors = self.frequencies.get(prefix)
            if successors is None:
                self._handle_dead_end(words, num_words)
                dead_ends += 1
            else:
                words.append(self._choose_adjoining_word(successors))

        words[0] = capitalise(words[0])
        generated_text = " ".join(words) + "."

        self.logger.info("Text generation completed", extra={
            "metrics": {
                "words_generated": len(words),
                "dead_ends": dead_ends,
                "seed_prefix": seed_prefix
            }
        })
        return generated_text
