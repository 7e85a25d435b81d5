#!/usr/bin/env python3
"""
Trigram Markov Text Generation Script

Builds a trigram Markov model from a text corpus and writes a novel text of
the requested length to a file. Handles configuration, logging, resource
monitoring and optional CPU/memory profiling around the run.

Example:
    python -m trigram_markov.models.run_generation -n 50 --input text/corpus.txt --output out.txt
"""
import sys
import time
import random
import argparse

from trigram_markov.models.markov_model import MarkovModel, EmptyModelError
from trigram_markov.nlps.trigram_parser import (
    InsufficientInputError,
    parse_file_to_normalised_trigrams,
)
from trigram_markov.utils.config_loader import ConfigError, load_config
from trigram_markov.utils.loggers.json_logger import get_logger, log_json
from trigram_markov.utils.profiling import cpu_profile, write_memory_profile
from trigram_markov.utils.system_monitoring import ResourceMonitor


class TextGenerationPipeline:
    """
    Runs the full pipeline of:
    1. Loading and tokenizing the corpus into trigrams
    2. Training the Markov model
    3. Generating text of the configured length
    4. Writing the text to the output file
    """

    def __init__(self, config, logger, prng=None):
        """
        Initialize the pipeline.

        Args:
            config (dict): Effective configuration, see config_loader.DEFAULT_CONFIG
            logger (Logger): Logger instance for pipeline events
            prng (callable, optional): Random source replacing the seeded default
        """
        self.config = config
        self.logger = logger
        self.seed = config.get("seed")
        if self.seed is None:
            self.seed = time.time_ns()
        self.prng = prng or random.Random(self.seed).randrange

        self.resource_monitor = None
        if config.get("trace") or config.get("memprofile"):
            self.resource_monitor = ResourceMonitor(
                logger=self.logger,
                monitoring_interval=config.get("monitoring_interval", 5.0)
            )

        self.logger.info("TextGenerationPipeline initialized", extra={
            "metrics": {
                "input": config["input"],
                "output": config["output"],
                "num_words": config["num_words"],
                "seed": self.seed
            }
        })

    def load_trigrams(self):
        """
        Tokenize the configured corpus.

        Returns:
            list: Normalised trigrams
        """
        try:
            trigrams = parse_file_to_normalised_trigrams(self.config["input"])
        except InsufficientInputError as e:
            self.logger.error("Corpus too small to build a model", extra={
                "metrics": {"input": self.config["input"], "error": str(e)}
            })
            raise

        self.logger.info("Corpus parsed", extra={
            "metrics": {"input": self.config["input"], "trigram_count": len(trigrams)}
        })
        return trigrams

    def build_model(self, trigrams):
        """Create a model wired to the pipeline's random source and train it."""
        model = MarkovModel(self.prng, logger=self.logger)
        model.train(trigrams)
        return model

    def write_output(self, text):
        """
        Persist the generated text.

        Returns:
            int: Number of bytes written
        """
        data = text.encode("utf-8")
        with open(self.config["output"], "wb") as f:
            f.write(data)

        log_json(self.logger, "Output written", {
            "output": self.config["output"],
            "bytes_written": len(data)
        })
        return len(data)

    def run(self):
        """
        Run the pipeline: train, generate and persist.

        Returns:
            tuple: (generated_text, bytes_written)
        """
        if self.config.get("trace"):
            self.resource_monitor.start("trigram_generation")

        try:
            with cpu_profile(self.config.get("cpuprofile"), logger=self.logger):
                model = self.build_model(self.load_trigrams())
                try:
                    text = model.generate(self.config["num_words"])
                except EmptyModelError:
                    self.logger.error(
                        "Failed to generate novel text from markov model")
                    raise
                bytes_written = self.write_output(text)
        finally:
            if self.config.get("trace"):
                self.resource_monitor.stop()

        if self.config.get("memprofile"):
            write_memory_profile(
                self.config["memprofile"], self.resource_monitor, logger=self.logger)

        return text, bytes_written


def build_arg_parser():
    """Command line options; unset options fall back to the YAML config."""
    parser = argparse.ArgumentParser(
        description="Generate pseudo-random novel text learnt from an input corpus")
    parser.add_argument("-n", "--num-words", type=int, dest="num_words",
                        help="Desired length in words of output (default: 100)")
    parser.add_argument("--input", help="Filepath of the input text from which the model is built")
    parser.add_argument("--output", help="Name of file in which to persist output")
    parser.add_argument("--cpuprofile", help="Write a cProfile stats file to this path")
    parser.add_argument("--memprofile", help="Write a JSON memory snapshot to this path")
    parser.add_argument("--trace", action="store_true", default=None,
                        help="Log resource usage from a background thread during the run")
    parser.add_argument("--seed", type=int, help="Seed for the random source (default: wall-clock time)")
    parser.add_argument("--env", choices=["development", "test", "production"],
                        default="development", help="Environment (default: development)")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--log-file", dest="log_file", help="Write JSON logs to this file")
    return parser


def main(argv=None):
    """
    Entry point of the command line interface.

    Returns:
        int: Process exit status
    """
    args = build_arg_parser().parse_args(argv)
    overrides = {
        key: getattr(args, key)
        for key in ("num_words", "input", "output", "cpuprofile", "memprofile",
                    "trace", "seed", "log_file")
    }

    bootstrap_logger = get_logger(f"trigram_markov_{args.env}")
    try:
        config = load_config(environment=args.env, config_path=args.config,
                             overrides=overrides, logger=bootstrap_logger)
    except ConfigError as e:
        bootstrap_logger.error(str(e))
        return 1

    logger = get_logger(f"trigram_markov_{args.env}",
                        log_file=config.get("log_file"),
                        console_json=config.get("console_json", True))

    try:
        pipeline = TextGenerationPipeline(config, logger)
        _, bytes_written = pipeline.run()
    except (ValueError, OSError) as e:
        logger.error(f"Text generation failed: {e}", exc_info=True)
        return 1

    print(f"\033[1m{bytes_written} bytes written to output file: {config['output']}\033[0m")
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
