"""Command-line interface for bayes-pool.

Provides ``train``, ``classify``, ``evaluate``, ``list``, ``remove`` and
``tokenize`` commands over a directory of classifiers, with rich terminal
output using the ``click`` and ``rich`` libraries.

Usage::

    bayes-pool train news documents.json
    bayes-pool classify news "Сборная России выиграла матч"
    bayes-pool classify --scores news "parliament passed the budget"
    bayes-pool evaluate news test_documents.json
    bayes-pool list
    bayes-pool remove news

Settings come from the environment (see ``config.Settings``) and can be
overridden with the group options.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.table import Table

from .classifier import BayesClassifier
from .config import TOKENIZERS, Settings
from .errors import ClassifierError, NotFoundError
from .evaluation import EvaluationReport, evaluate
from .log import configure_logging
from .models import ClassificationResult, Document
from .pool import ClassifierPool

console = Console()
err_console = Console(stderr=True)

EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def _fail(message: str, code: int = EXIT_ERROR) -> NoReturn:
    err_console.print(f"[bold red]Error:[/] {message}")
    sys.exit(code)


def _load_documents(path: Path) -> list[Document]:
    """Read a JSON array of ``{"class": ..., "text": ...}`` objects."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise click.BadParameter(f"cannot read documents: {e}", param_hint="DOCS_FILE")

    if not isinstance(data, list):
        raise click.BadParameter("documents file must hold a JSON array", param_hint="DOCS_FILE")

    try:
        return [Document.from_dict(item) for item in data]
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="DOCS_FILE")


def _open_pool(settings: Settings) -> ClassifierPool:
    try:
        pool = ClassifierPool(
            settings.build_tokenizer(), settings.data_dir, strict=settings.strict_load
        )
    except (ClassifierError, OSError, ValueError) as e:
        _fail(str(e))
    for error in pool.load_errors:
        err_console.print(f"[yellow]Skipped broken model:[/] {error}")
    return pool


def _existing(pool: ClassifierPool, classifier_id: str) -> BayesClassifier:
    clf, _ = pool.classifier(classifier_id)
    if clf is None:
        _fail(str(NotFoundError(classifier_id)), EXIT_NOT_FOUND)
    return clf


@click.group()
@click.version_option(package_name="bayes-pool")
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory with classifier files (BAYES_POOL_DATA_DIR).")
@click.option("--tokenizer", type=click.Choice(TOKENIZERS), default=None,
              help="Tokenizer to use (BAYES_POOL_TOKENIZER).")
@click.option("--log-level", default=None,
              help="Log level (BAYES_POOL_LOG_LEVEL).")
@click.pass_context
def main(ctx: click.Context, data_dir: Path | None, tokenizer: str | None,
         log_level: str | None) -> None:
    """Naive Bayes text classifiers, one per id, stored in a directory."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        _fail(f"invalid settings: {e}")
    if data_dir is not None:
        settings.data_dir = data_dir
    if tokenizer is not None:
        settings.tokenizer = tokenizer
    if log_level is not None:
        settings.log_level = log_level

    try:
        configure_logging(settings.log_level)
    except ValueError as e:
        _fail(f"invalid log level {settings.log_level!r}: {e}")
    ctx.obj = settings


@main.command()
@click.argument("classifier_id")
@click.argument("docs_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def train(settings: Settings, classifier_id: str, docs_file: Path) -> None:
    """Train a classifier on a JSON file of labeled documents.

    The classifier is created if it does not exist yet.

    Example: bayes-pool train news documents.json
    """
    docs = _load_documents(docs_file)
    pool = _open_pool(settings)

    try:
        clf, existed = pool.classifier(classifier_id, create=True)
        with console.status(f"[bold blue]Training on {len(docs)} documents...", spinner="dots"):
            clf.train(docs)
    except (ClassifierError, ValueError) as e:
        _fail(str(e))

    action = "Updated" if existed else "Created"
    console.print(f"{action} classifier [bold]{classifier_id}[/] from {len(docs)} documents")


@main.command()
@click.argument("classifier_id")
@click.argument("text", nargs=-1, required=True)
@click.option("--scores", "show_scores", is_flag=True, help="Show the score of every class.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def classify(settings: Settings, classifier_id: str, text: tuple[str, ...],
             show_scores: bool, output: str) -> None:
    """Classify a text with an existing classifier.

    Example: bayes-pool classify news "the team won the final"
    """
    pool = _open_pool(settings)
    clf = _existing(pool, classifier_id)

    try:
        result = clf.scores(" ".join(text))
    except ClassifierError as e:
        _fail(str(e))

    if output == "json":
        payload = result.to_dict() if show_scores else result.predicted_class
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    elif show_scores:
        _render_scores(result)
    else:
        console.print(result.predicted_class)


@main.command(name="evaluate")
@click.argument("classifier_id")
@click.argument("docs_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def evaluate_command(settings: Settings, classifier_id: str, docs_file: Path,
                     output: str) -> None:
    """Measure per-class fail rates on a JSON file of labeled documents.

    Example: bayes-pool evaluate news test_documents.json
    """
    docs = _load_documents(docs_file)
    pool = _open_pool(settings)
    clf = _existing(pool, classifier_id)

    with console.status(f"[bold blue]Classifying {len(docs)} documents...", spinner="dots"):
        try:
            report = evaluate(clf, docs)
        except ClassifierError as e:
            _fail(str(e))

    if output == "json":
        click.echo(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        _render_report(report, classifier_id)


@main.command(name="list")
@click.pass_obj
def list_command(settings: Settings) -> None:
    """List the classifiers in the data directory."""
    pool = _open_pool(settings)

    table = Table(title=f"Classifiers in {settings.data_dir}")
    table.add_column("ID", style="cyan")
    table.add_column("Classes", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Vocabulary", justify="right")

    for classifier_id in pool.ids():
        clf, _ = pool.classifier(classifier_id)
        if clf is None:
            continue
        try:
            stats = clf.stats()
        except ClassifierError:
            table.add_row(classifier_id, "-", "-", "[yellow]training[/]")
            continue
        table.add_row(
            classifier_id,
            str(stats.class_count),
            str(stats.total_words),
            str(stats.vocabulary_size),
        )

    console.print(table)


@main.command()
@click.argument("classifier_id")
@click.pass_obj
def remove(settings: Settings, classifier_id: str) -> None:
    """Delete a classifier and its model file."""
    pool = _open_pool(settings)
    try:
        pool.remove(classifier_id)
    except NotFoundError as e:
        _fail(str(e), EXIT_NOT_FOUND)
    except ClassifierError as e:
        _fail(str(e))

    console.print(f"Removed classifier [bold]{classifier_id}[/]")


@main.command()
@click.argument("text", nargs=-1, required=True)
@click.pass_obj
def tokenize(settings: Settings, text: tuple[str, ...]) -> None:
    """Print the word counts the configured tokenizer produces."""
    try:
        counts = settings.build_tokenizer().tokenize(" ".join(text))
    except (ClassifierError, ValueError) as e:
        _fail(str(e))

    ordered = dict(sorted(counts.items(), key=lambda x: (-x[1], x[0])))
    click.echo(json.dumps(ordered, ensure_ascii=False, indent=2))


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_scores(result: ClassificationResult) -> None:
    """Render class scores as a rich table, best first."""
    table = Table(title=f"Prediction: {result.predicted_class}")
    table.add_column("Class", style="cyan")
    table.add_column("Log score", justify="right")

    for cls, score in sorted(result.scores.items(), key=lambda x: (-x[1], x[0])):
        style = "bold green" if cls == result.predicted_class else ""
        table.add_row(cls, f"{score:.4f}", style=style)

    console.print(table)


def _render_report(report: EvaluationReport, classifier_id: str) -> None:
    """Render an evaluation report as a rich table."""
    table = Table(title=f"Evaluation of {classifier_id}")
    table.add_column("Class", style="cyan")
    table.add_column("Docs", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Fail %", justify="right")

    for cls in sorted(report.per_class):
        stats = report.per_class[cls]
        if stats.fail_rate > 50:
            style = "bold red"
        elif stats.fail_rate > 20:
            style = "bold yellow"
        else:
            style = "green"
        table.add_row(
            cls, str(stats.total), str(stats.errors), f"[{style}]{stats.fail_rate:.2f}[/]"
        )

    table.add_row(
        "[bold]total[/]",
        str(report.total_docs),
        str(report.total_errors),
        f"{report.fail_rate:.2f}",
    )
    console.print(table)
    console.print(f"Accuracy: [bold]{report.accuracy:.2%}[/]")


if __name__ == "__main__":
    main()
