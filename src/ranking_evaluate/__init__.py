"""
ranking_evaluate - Relevance evaluation of ranked search results.

Provides:
- calculator.py: fixed-scale decimal arithmetic
- metrics/: precision, recall and F-measure at k, averaged and static metrics
- domain/: the Evaluation -> Corpus -> Topic -> QueryGroup -> Query tree
- evaluator.py: RelevanceEvaluator driving the tree from runs and judgments
- io.py, report.py: load/write, filtering and tabular reports
- _commands/: CLI commands (evaluate, report)
"""

__version__ = '0.1.0'

from click import group

from ._commands._evaluate import evaluate
from ._commands._report import report


@group()
def main():
    pass


main.command("evaluate")(evaluate)
main.add_command(report)
