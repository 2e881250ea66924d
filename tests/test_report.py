"""Tests for listings, filtering and tabular reports."""

from decimal import Decimal

import pytest

from ranking_evaluate.domain import Evaluation
from ranking_evaluate.evaluator import RelevanceEvaluator
from ranking_evaluate.io import load_judgments, load_runs
from ranking_evaluate.metrics import DEFAULT_METRICS, AveragedMetric
from ranking_evaluate.report import (
    REPORT_COLUMNS,
    corpus_names,
    filter_evaluation,
    metric_names,
    pivot_versions,
    query_group_names,
    to_dataframe,
    topic_names,
    versions,
    walk,
)

from . import TEST_DATA


@pytest.fixture(scope="module")
def evaluation():
    return RelevanceEvaluator(name="bass-eval").evaluate(
        load_runs(TEST_DATA / "runs.jsonl"), load_judgments(TEST_DATA / "judgments.jsonl")
    )


def value_at(member, metric, version):
    return member.metric(metric).value_factory(version).value()


class TestListings:
    def test_names(self, evaluation):
        assert metric_names(evaluation) == DEFAULT_METRICS
        assert versions(evaluation) == ["v1.0", "v1.1"]
        assert corpus_names(evaluation) == ["electric_basses"]
        assert topic_names(evaluation, "electric_basses") == ["Fender basses", "Music Man basses"]
        assert query_group_names(evaluation, "electric_basses", "Music Man basses") == ["Stingray"]

    def test_unknown_or_missing_parents(self, evaluation):
        assert topic_names(evaluation, None) == []
        assert topic_names(evaluation, "acoustic") == []
        assert query_group_names(evaluation, "electric_basses", None) == []
        assert query_group_names(evaluation, "electric_basses", "Rickenbacker") == []

    def test_walk_is_pre_order(self, evaluation):
        names = [node.name for node in walk(evaluation)]
        assert names == [
            "bass-eval", "electric_basses",
            "Fender basses", "Fender brand", "fender", "fender precision",
            "Music Man basses", "Stingray", "stingray",
        ]


class TestFilter:
    def test_filter_by_topic_recomputes_aggregates(self, evaluation):
        filtered = filter_evaluation(evaluation, topic="Music Man basses")
        assert topic_names(filtered, "electric_basses") == ["Music Man basses"]
        assert value_at(filtered, "P@1", "v1.0") == Decimal("0.0000")
        assert value_at(filtered, "P@1", "v1.1") == Decimal("1.0000")
        # the source tree is left as it was
        assert value_at(evaluation, "P@1", "v1.0") == Decimal("0.3334")

    def test_filter_by_query_group(self, evaluation):
        filtered = filter_evaluation(evaluation, corpus="electric_basses", query_group="Fender brand")
        assert topic_names(filtered, "electric_basses") == ["Fender basses"]
        assert value_at(filtered, "P@3", "v1.0") == Decimal("0.3350")

    def test_filter_metrics_and_versions(self, evaluation):
        filtered = filter_evaluation(evaluation, metrics={"P@1"}, versions={"v1.1"})
        assert metric_names(filtered) == ["P@1"]
        assert versions(filtered) == ["v1.1"]
        query = filtered.child("electric_basses").child("Fender basses").child("Fender brand").child("fender")
        assert list(query.results) == ["v1.1"]

    def test_filter_keeps_averaging_baseline(self):
        source = RelevanceEvaluator(name="bass-eval", averaging_baseline=1).evaluate(
            load_runs(TEST_DATA / "runs.jsonl"), load_judgments(TEST_DATA / "judgments.jsonl")
        )
        filtered = filter_evaluation(
            source, metrics={"P@1"}, metric_factory=lambda name: AveragedMetric(name, baseline=1)
        )
        # (1 + 0 + 0) / (1 + 3)
        assert value_at(source, "P@1", "v1.0") == Decimal("0.2500")
        assert value_at(filtered, "P@1", "v1.0") == value_at(source, "P@1", "v1.0")
        assert value_at(filtered, "P@1", "v1.1") == value_at(source, "P@1", "v1.1")

    def test_no_match(self, evaluation):
        filtered = filter_evaluation(evaluation, corpus="acoustic")
        assert filtered.children == []
        assert to_dataframe(filtered).empty


class TestDataFrame:
    def test_levels(self, evaluation):
        df = to_dataframe(evaluation, levels=["evaluation"])
        assert list(df.columns) == REPORT_COLUMNS
        assert len(df) == len(DEFAULT_METRICS) * 2
        assert set(df["Path"]) == {"bass-eval"}

        row = df[(df["Metric"] == "P@1") & (df["Version"] == "v1.0")].iloc[0]
        assert row["Value"] == pytest.approx(0.3334)

    def test_metrics_filter_and_paths(self, evaluation):
        df = to_dataframe(evaluation, levels=["query-group"], metrics=["P@3"])
        assert list(df["Path"].unique()) == [
            "bass-eval/electric_basses/Fender basses/Fender brand",
            "bass-eval/electric_basses/Music Man basses/Stingray",
        ]
        assert set(df["Metric"]) == {"P@3"}

    def test_unknown_level(self, evaluation):
        with pytest.raises(ValueError, match="Unknown levels"):
            to_dataframe(evaluation, levels=["bucket"])

    def test_pivot_versions(self, evaluation):
        df = to_dataframe(evaluation, levels=["evaluation", "corpus"])
        pivoted = pivot_versions(df)
        assert list(pivoted.columns) == ["Level", "Path", "Metric", "v1.0", "v1.1"]
        assert len(pivoted) == len(DEFAULT_METRICS) * 2
        first = pivoted.iloc[0]
        assert (first["Level"], first["Metric"]) == ("evaluation", "P@1")
        assert first["v1.0"] == pytest.approx(0.3334)
        assert first["v1.1"] == pytest.approx(1.0)

    def test_pivot_empty(self):
        df = to_dataframe(Evaluation("empty"))
        assert pivot_versions(df).empty
