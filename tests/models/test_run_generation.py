#!/usr/bin/env python3
"""
Tests for the text generation pipeline and its command line interface.
"""

import json
import os
import pytest
from unittest.mock import MagicMock

from trigram_markov.models.markov_model import EmptyModelError
from trigram_markov.models.run_generation import TextGenerationPipeline, build_arg_parser, main
from trigram_markov.nlps.trigram_parser import InsufficientInputError
from trigram_markov.utils.config_loader import DEFAULT_CONFIG

CORPUS = "To be, or not to be, that is the question. To be or not to be!"


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    return MagicMock()


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "corpus.txt"
    path.write_text(CORPUS, encoding="utf-8")
    return path


@pytest.fixture
def config(tmp_path, corpus_file):
    """Pipeline configuration writing into a temporary directory"""
    config = dict(DEFAULT_CONFIG)
    config.update({
        "input": str(corpus_file),
        "output": str(tmp_path / "out.txt"),
        "num_words": 12,
        "seed": 5,
    })
    return config


class TestTextGenerationPipeline:

    def test_run_writes_output(self, config, mock_logger):
        text, bytes_written = TextGenerationPipeline(config, mock_logger).run()

        with open(config["output"], encoding="utf-8") as f:
            written = f.read()
        assert written == text
        assert bytes_written == len(text.encode("utf-8"))
        assert len(text.split(" ")) == 12
        assert text.endswith(".")

    def test_seed_makes_output_reproducible(self, config, mock_logger):
        first, _ = TextGenerationPipeline(config, mock_logger).run()
        second, _ = TextGenerationPipeline(config, mock_logger).run()
        assert first == second

    def test_seed_defaults_to_clock(self, config, mock_logger, mocker):
        config["seed"] = None
        mocker.patch("trigram_markov.models.run_generation.time.time_ns", return_value=1234)
        pipeline = TextGenerationPipeline(config, mock_logger)
        assert pipeline.seed == 1234

    def test_injected_prng(self, config, mock_logger):
        config["num_words"] = 1
        pipeline = TextGenerationPipeline(config, mock_logger, prng=lambda n: 0)
        text, _ = pipeline.run()
        # "be or" is the lexically first prefix of the corpus
        assert text == "Be."

    def test_insufficient_input(self, config, mock_logger, tmp_path):
        small = tmp_path / "small.txt"
        small.write_text("Hello 123 world", encoding="utf-8")
        config["input"] = str(small)

        with pytest.raises(InsufficientInputError):
            TextGenerationPipeline(config, mock_logger).run()
        mock_logger.error.assert_called()
        assert not os.path.exists(config["output"])

    def test_empty_model_is_logged(self, config, mock_logger, mocker):
        mocker.patch("trigram_markov.models.run_generation.parse_file_to_normalised_trigrams",
                     return_value=[])
        with pytest.raises(EmptyModelError):
            TextGenerationPipeline(config, mock_logger).run()
        mock_logger.error.assert_called_with("Failed to generate novel text from markov model")

    def test_trace_starts_and_stops_monitor(self, config, mock_logger, mocker):
        monitor_cls = mocker.patch("trigram_markov.models.run_generation.ResourceMonitor")
        config["trace"] = True

        TextGenerationPipeline(config, mock_logger).run()

        monitor_cls.return_value.start.assert_called_once_with("trigram_generation")
        monitor_cls.return_value.stop.assert_called_once()

    def test_trace_stops_monitor_on_failure(self, config, mock_logger, mocker):
        monitor_cls = mocker.patch("trigram_markov.models.run_generation.ResourceMonitor")
        config["trace"] = True
        config["input"] = os.path.join(os.path.dirname(config["input"]), "missing.txt")

        with pytest.raises(FileNotFoundError):
            TextGenerationPipeline(config, mock_logger).run()
        monitor_cls.return_value.stop.assert_called_once()

    def test_no_monitor_without_trace_or_memprofile(self, config, mock_logger):
        assert TextGenerationPipeline(config, mock_logger).resource_monitor is None

    def test_profiles_are_written(self, config, mock_logger, tmp_path):
        config["cpuprofile"] = str(tmp_path / "cpu.prof")
        config["memprofile"] = str(tmp_path / "mem.json")

        TextGenerationPipeline(config, mock_logger).run()

        assert os.path.getsize(config["cpuprofile"]) > 0
        with open(config["memprofile"]) as f:
            snapshot = json.load(f)
        assert snapshot["memory"]["current_mb"] > 0


class TestCommandLine:

    def test_arg_parser_leaves_unset_options_empty(self):
        args = build_arg_parser().parse_args([])
        assert args.num_words is None
        assert args.trace is None
        assert args.env == "development"

    def test_arg_parser_flags(self):
        args = build_arg_parser().parse_args(
            ["-n", "7", "--input", "in.txt", "--output", "o.txt", "--trace", "--seed", "3"])
        assert (args.num_words, args.input, args.output, args.trace, args.seed) == (
            7, "in.txt", "o.txt", True, 3)

    def test_main_success(self, corpus_file, tmp_path, capsys):
        config_file = tmp_path / "generator.yaml"
        config_file.write_text("num_words: 15\nseed: 11\nconsole_json: false\n")
        output = tmp_path / "result.txt"

        status = main(["--config", str(config_file), "--input", str(corpus_file),
                       "--output", str(output)])

        assert status == 0
        text = output.read_text(encoding="utf-8")
        assert len(text.split(" ")) == 15
        assert f"bytes written to output file: {output}" in capsys.readouterr().out

    def test_main_flag_overrides_config(self, corpus_file, tmp_path):
        config_file = tmp_path / "generator.yaml"
        config_file.write_text("num_words: 15\n")
        output = tmp_path / "result.txt"

        main(["--config", str(config_file), "--input", str(corpus_file),
              "--output", str(output), "-n", "4"])

        assert len(output.read_text(encoding="utf-8").split(" ")) == 4

    def test_main_insufficient_input(self, tmp_path):
        small = tmp_path / "small.txt"
        small.write_text("A Test", encoding="utf-8")
        assert main(["--input", str(small), "--output", str(tmp_path / "o.txt")]) == 1

    def test_main_missing_input(self, tmp_path):
        assert main(["--input", str(tmp_path / "nope.txt"),
                     "--output", str(tmp_path / "o.txt")]) == 1

    def test_main_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "nope.yaml")]) == 1

    def test_main_csv_with_blank_rows(self, tmp_path):
        csv_file = tmp_path / "comments.csv"
        csv_file.write_text("to be or,x\n,y\nnot to be,z\n", encoding="utf-8")
        output = tmp_path / "result.txt"

        status = main(["--input", str(csv_file), "--output", str(output),
                       "-n", "6", "--seed", "2"])

        assert status == 0
        text = output.read_text(encoding="utf-8")
        assert len(text.split(" ")) == 6
        assert "nan" not in text.lower()
