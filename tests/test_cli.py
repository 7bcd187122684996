"""Tests for the bayes-pool command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from bayes_pool.cli import EXIT_ERROR, EXIT_NOT_FOUND, main

TRAINING_DOCS = [
    {"class": "sports", "text": "the team won the final match"},
    {"class": "sports", "text": "great goal in the football match"},
    {"class": "politics", "text": "parliament passed the budget vote"},
    {"Class": "politics", "Text": "the minister announced a new election vote"},
]

TEST_DOCS = [
    {"class": "sports", "text": "the match was won"},
    {"class": "politics", "text": "budget vote"},
    {"class": "politics", "text": "football match"},
]


def _json_output(output: str):
    start = min(i for i in (output.find("{"), output.find("[")) if i >= 0)
    return json.loads(output[start:])


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    for name in ("BAYES_POOL_DATA_DIR", "BAYES_POOL_TOKENIZER", "BAYES_POOL_STRICT_LOAD"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


@pytest.fixture
def cli(runner, data_dir):
    """Invoke the CLI against the test data directory."""

    def invoke(*args: str):
        return runner.invoke(
            main,
            ["--data-dir", str(data_dir), "--tokenizer", "regex", "--log-level", "ERROR", *args],
        )

    return invoke


@pytest.fixture
def docs_file(tmp_path: Path) -> Path:
    path = tmp_path / "train.json"
    path.write_text(json.dumps(TRAINING_DOCS), encoding="utf-8")
    return path


@pytest.fixture
def trained(cli, docs_file):
    result = cli("train", "news", str(docs_file))
    assert result.exit_code == 0, result.output
    return result


class TestTrain:
    def test_creates_classifier(self, trained, data_dir):
        assert "Created classifier news from 4 documents" in trained.output
        assert (data_dir / "news.bc").is_file()

    def test_second_run_updates(self, cli, trained, docs_file, data_dir):
        result = cli("train", "news", str(docs_file))
        assert result.exit_code == 0
        assert "Updated classifier news" in result.output

        stored = json.loads((data_dir / "news.bc").read_text(encoding="utf-8"))
        assert stored["classes"]["politics"]["vote"] == 4

    def test_invalid_documents_file(self, cli, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"class": "a", "text": "b"}), encoding="utf-8")
        result = cli("train", "news", str(bad))
        assert result.exit_code == 2
        assert "JSON array" in result.output

    def test_document_without_class(self, cli, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps([{"text": "b"}]), encoding="utf-8")
        assert cli("train", "news", str(bad)).exit_code == 2

    def test_invalid_id(self, cli, docs_file):
        result = cli("train", "../escape", str(docs_file))
        assert result.exit_code == EXIT_ERROR


class TestClassify:
    def test_prints_class(self, cli, trained):
        result = cli("classify", "news", "football", "team")
        assert result.exit_code == 0
        assert result.output.strip() == "sports"

    def test_json_class(self, cli, trained):
        result = cli("classify", "-o", "json", "news", "budget vote")
        assert result.exit_code == 0
        assert json.loads(result.output) == "politics"

    def test_json_scores(self, cli, trained):
        result = cli("classify", "--scores", "-o", "json", "news", "election")
        assert result.exit_code == 0
        data = _json_output(result.output)
        assert data["predicted_class"] == "politics"
        assert set(data["scores"]) == {"politics", "sports"}

    def test_rich_scores_table(self, cli, trained):
        result = cli("classify", "--scores", "news", "goal")
        assert result.exit_code == 0
        assert "Prediction: sports" in result.output
        assert "politics" in result.output

    def test_unknown_classifier(self, cli):
        result = cli("classify", "ghost", "text")
        assert result.exit_code == EXIT_NOT_FOUND
        assert "not found" in result.output

    def test_no_words(self, cli, trained):
        result = cli("classify", "news", "the", "of", "42")
        assert result.exit_code == EXIT_ERROR
        assert "no words" in result.output


class TestEvaluate:
    def test_json_report(self, cli, trained, tmp_path):
        held_out = tmp_path / "test.json"
        held_out.write_text(json.dumps(TEST_DOCS), encoding="utf-8")

        result = cli("evaluate", "-o", "json", "news", str(held_out))

        assert result.exit_code == 0, result.output
        data = _json_output(result.output)
        assert data["total_docs"] == 3
        assert data["total_errors"] == 1
        assert data["per_class"]["politics"]["errors"] == 1
        assert data["confusion"]["politics"] == {"politics": 1, "sports": 1}

    def test_rich_report(self, cli, trained, tmp_path):
        held_out = tmp_path / "test.json"
        held_out.write_text(json.dumps(TEST_DOCS), encoding="utf-8")

        result = cli("evaluate", "news", str(held_out))

        assert result.exit_code == 0
        assert "Accuracy" in result.output

    def test_unknown_classifier(self, cli, docs_file):
        assert cli("evaluate", "ghost", str(docs_file)).exit_code == EXIT_NOT_FOUND


class TestListAndRemove:
    def test_list(self, cli, trained):
        result = cli("list")
        assert result.exit_code == 0
        assert "news" in result.output

    def test_list_reports_broken_files(self, cli, trained, data_dir):
        (data_dir / "broken.bc").write_text("{oops", encoding="utf-8")
        result = cli("list")
        assert result.exit_code == 0
        assert "Skipped broken model" in result.output

    def test_remove(self, cli, trained, data_dir):
        result = cli("remove", "news")
        assert result.exit_code == 0
        assert "Removed classifier news" in result.output
        assert not (data_dir / "news.bc").exists()

        again = cli("remove", "news")
        assert again.exit_code == EXIT_NOT_FOUND


class TestSettingsErrors:
    def test_non_integer_mystem_attempts(self, cli, monkeypatch):
        monkeypatch.setenv("MYSTEM_ATTEMPTS", "many")
        result = cli("list")
        assert result.exit_code == EXIT_ERROR
        assert "invalid settings" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_unknown_log_level(self, runner, data_dir):
        result = runner.invoke(
            main, ["--data-dir", str(data_dir), "--log-level", "CHATTY", "list"]
        )
        assert result.exit_code == EXIT_ERROR
        assert "invalid log level" in result.output
        assert isinstance(result.exception, SystemExit)


class TestTokenize:
    def test_counts_sorted_by_frequency(self, cli):
        result = cli("tokenize", "vote", "for", "the", "Budget", "vote")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == {"vote": 2, "budget": 1}
        assert list(data) == ["vote", "budget"]
