"""CLI command computing ranked metrics from runs and judgments."""

from pathlib import Path
from typing import Optional

import click

from ranking_evaluate.config import ON_MISSING_CHOICES, load_config
from ranking_evaluate.evaluator import RelevanceEvaluator
from ranking_evaluate.io import load_judgments, load_runs
from ranking_evaluate.metrics import MetricNameType
from ranking_evaluate.report import pivot_versions, to_dataframe
from ranking_evaluate.validation import InvalidInputError

from ._output import OUTPUT_HELP, level_option, write_output


@click.option("--runs", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True,
              help="Runs file (JSONL, one line per query and version with ranked hits).")
@click.option("--judgments", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True,
              help="Judgments file (JSONL, one line per query group with relevant_documents).")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="YAML configuration. Command-line options override it.")
@click.option("--metric", "-m", type=MetricNameType(), multiple=True,
              help="Metric(s) to compute, e.g. P@10, R@10, F1@3. Repeatable.")
@click.option("--workers", type=click.IntRange(min=1), default=None,
              help="Number of worker threads evaluating queries.")
@click.option("--name", type=str, default=None, help="Evaluation name.")
@click.option("--averaging-baseline", type=click.IntRange(min=0), default=None,
              help="Starting count of ancestor averages (1 averages the first value against zero).")
@click.option("--on-missing", type=click.Choice(ON_MISSING_CHOICES), default=None,
              help="How to handle query groups without judgments.")
@level_option
@click.option("--pivot/--no-pivot", default=True, help="One column per version.")
@click.option("--output", type=click.Path(path_type=Path), default=None, help=OUTPUT_HELP)
def evaluate(
    runs: Path,
    judgments: Path,
    config_path: Optional[Path],
    metric: tuple,
    workers: Optional[int],
    name: Optional[str],
    averaging_baseline: Optional[int],
    on_missing: Optional[str],
    level: tuple,
    pivot: bool,
    output: Optional[Path],
) -> int:
    """Evaluate ranked runs against relevance judgments.

    Computes every metric per query and version, then averages them over
    query groups, topics, corpora and the whole evaluation.
    """
    try:
        config = load_config(config_path).merged(
            name=name,
            metrics=metric,
            workers=workers,
            averaging_baseline=averaging_baseline,
            on_missing=on_missing,
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    try:
        evaluation = RelevanceEvaluator.from_config(config).evaluate(
            load_runs(runs), load_judgments(judgments)
        )
    except (InvalidInputError, ValueError) as e:
        raise click.ClickException(str(e))

    df = to_dataframe(evaluation, levels=level or None)
    click.echo((pivot_versions(df) if pivot else df).to_string(index=False))

    write_output(evaluation, df, output)
    return 0
