"""Shared output handling for the CLI commands."""

from pathlib import Path
from typing import Optional

import click
import pandas as pd

from ranking_evaluate.domain import LEVELS, Evaluation
from ranking_evaluate.io import write_evaluation

OUTPUT_HELP = "Output file path. Format determined by extension: .json for the nested evaluation tree, .jsonl for JSON Lines, .csv for CSV."


def level_option(f):
    return click.option(
        "--level",
        type=click.Choice(LEVELS),
        multiple=True,
        help="Tree level(s) to show. Repeatable. If omitted, shows all levels.",
    )(f)


def write_output(evaluation: Evaluation, df: pd.DataFrame, output: Optional[Path]) -> None:
    if not output:
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.name.endswith(".json"):
        write_evaluation(evaluation, output)
    elif output.name.endswith(".jsonl"):
        df.to_json(output, lines=True, orient="records")
    elif output.name.endswith(".csv"):
        df.to_csv(output, index=False)
    else:
        raise click.ClickException(f"Unknown output format: {output}")
