"""CLI command reporting on a stored evaluation."""

from pathlib import Path
from typing import Optional

import click

from ranking_evaluate.io import load
from ranking_evaluate.metrics import AveragedMetric, MetricNameType
from ranking_evaluate.report import (
    corpus_names,
    filter_evaluation,
    metric_names,
    pivot_versions,
    query_group_names,
    to_dataframe,
    topic_names,
    versions as version_names,
)

from ._output import OUTPUT_HELP, level_option, write_output

FORMAT_HELP = """
evaluation: nested evaluation JSON (as written by evaluate --output x.json)
records: JSONL of per-(query, version) metric records, replayed into the tree
"""


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "input_format", type=click.Choice(["evaluation", "records"]), default="evaluation",
              help="Input format." + FORMAT_HELP)
@click.option("--corpus", type=str, default=None, help="Keep only this corpus.")
@click.option("--topic", type=str, default=None, help="Keep only this topic.")
@click.option("--query-group", type=str, default=None, help="Keep only this query group.")
@click.option("--metric", "-m", type=MetricNameType(), multiple=True, help="Metric(s) to keep. Repeatable.")
@click.option("--version", "version_filter", type=str, multiple=True, help="Version(s) to keep. Repeatable.")
@click.option("--averaging-baseline", type=click.IntRange(min=0), default=0, show_default=True,
              help="Starting count of the averages rebuilt by filtering or replaying records. "
                   "Use the value the evaluation was run with.")
@level_option
@click.option("--pivot/--no-pivot", default=True, help="One column per version.")
@click.option("--list", "list_only", is_flag=True, help="Only list corpora, topics, query groups, metrics and versions.")
@click.option("--output", type=click.Path(path_type=Path), default=None, help=OUTPUT_HELP)
def report(
    input_path: Path,
    input_format: str,
    corpus: Optional[str],
    topic: Optional[str],
    query_group: Optional[str],
    metric: tuple,
    version_filter: tuple,
    averaging_baseline: int,
    level: tuple,
    pivot: bool,
    list_only: bool,
    output: Optional[Path],
) -> int:
    """Show, filter and export a stored evaluation.

    INPUT_PATH is the evaluation or records file to load.

    Filtering by corpus, topic, query group, metric or version rebuilds the
    aggregates from the selected queries only.
    """
    def averaged(name: str) -> AveragedMetric:
        return AveragedMetric(name, baseline=averaging_baseline)

    click.echo(f"Loading {input_path} (format: {input_format})", err=True)
    try:
        evaluation = load(input_path, format=input_format, metric_factory=averaged)
    except (ValueError, KeyError) as e:
        raise click.ClickException(f"Cannot load {input_path}: {e}")

    if list_only:
        click.echo(f"Metrics: {', '.join(metric_names(evaluation))}")
        click.echo(f"Versions: {', '.join(version_names(evaluation))}")
        for c in corpus_names(evaluation):
            click.echo(f"Corpus: {c}")
            for t in topic_names(evaluation, c):
                click.echo(f"  Topic: {t}")
                for g in query_group_names(evaluation, c, t):
                    click.echo(f"    Query group: {g}")
        return 0

    if corpus or topic or query_group or metric or version_filter:
        evaluation = filter_evaluation(
            evaluation,
            corpus=corpus,
            topic=topic,
            query_group=query_group,
            metrics=set(metric) or None,
            versions=set(version_filter) or None,
            metric_factory=averaged,
        )

    df = to_dataframe(evaluation, levels=level or None)
    if df.empty:
        click.echo("No metrics matched.")
    else:
        click.echo((pivot_versions(df) if pivot else df).to_string(index=False))

    write_output(evaluation, df, output)
    return 0
