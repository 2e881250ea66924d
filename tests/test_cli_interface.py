import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

import pandas as pd
from click.testing import CliRunner

from . import TEST_DATA
from ranking_evaluate import main

RUNS = str((TEST_DATA / "runs.jsonl").absolute())
JUDGMENTS = str((TEST_DATA / "judgments.jsonl").absolute())
RECORDS = str((TEST_DATA / "records.jsonl").absolute())


def run_cmd_on_main(cmd):
    runner = CliRunner()
    ret = runner.invoke(main, cmd)
    return ret, ' '.join(ret.stdout.split())


def evaluate_command(*extra):
    return run_cmd_on_main(["evaluate", "--runs", RUNS, "--judgments", JUDGMENTS, *extra])


class TestEvaluateInterface(unittest.TestCase):
    def test_evaluate_prints_table(self):
        result, stdout = evaluate_command("--name", "bass-eval")

        self.assertIsNone(result.exception)
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Level Path Metric v1.0 v1.1", stdout)
        self.assertIn("bass-eval/electric_basses/Music Man basses/Stingray", stdout)
        self.assertIn("F1@100", stdout)

    def test_evaluate_csv_output(self):
        with TemporaryDirectory() as tmp_dir:
            target_file = Path(tmp_dir) / "results.csv"
            result, _ = evaluate_command("--name", "bass-eval", "--output", str(target_file))

            self.assertIsNone(result.exception)
            self.assertTrue(target_file.is_file())
            lines = target_file.read_text().splitlines()
            self.assertEqual(lines[0], "Level,Path,Metric,Version,Value")
            self.assertIn("evaluation,bass-eval,P@1,v1.0,0.3334", lines)
            self.assertIn("query-group,bass-eval/electric_basses/Fender basses/Fender brand,P@3,v1.0,0.335", lines)

    def test_evaluate_json_output(self):
        with TemporaryDirectory() as tmp_dir:
            target_file = Path(tmp_dir) / "evaluation.json"
            result, _ = evaluate_command("-m", "P@1", "--output", str(target_file))

            self.assertIsNone(result.exception)
            data = json.loads(target_file.read_text())
            self.assertEqual(data["name"], "evaluation")
            self.assertEqual(list(data["metrics"]), ["P@1"])
            self.assertEqual(data["metrics"]["P@1"]["versions"]["v1.1"]["value"], 1.0)

    def test_evaluate_jsonl_output_with_level(self):
        with TemporaryDirectory() as tmp_dir:
            target_file = Path(tmp_dir) / "results.jsonl"
            result, _ = evaluate_command("-m", "P@1", "-m", "R@10", "--level", "topic",
                                         "--output", str(target_file))

            self.assertIsNone(result.exception)
            df = pd.read_json(target_file, lines=True)
            self.assertEqual(set(df["Level"]), {"topic"})
            self.assertEqual(set(df["Metric"]), {"P@1", "R@10"})
            self.assertEqual(len(df), 2 * 2 * 2)

    def test_evaluate_with_config(self):
        with TemporaryDirectory() as tmp_dir:
            config = Path(tmp_dir) / "config.yml"
            config.write_text("evaluation:\n  name: from-config\n  metrics: [P@2]\n  workers: 3\n")
            target_file = Path(tmp_dir) / "results.csv"
            result, _ = evaluate_command("--config", str(config), "--name", "from-cli",
                                         "--output", str(target_file))

            self.assertIsNone(result.exception)
            df = pd.read_csv(target_file)
            self.assertEqual(set(df["Metric"]), {"P@2"})
            self.assertIn("from-cli", set(df["Path"]))

    def test_invalid_metric_name(self):
        result, _ = evaluate_command("-m", "NDCG@10")
        self.assertEqual(result.exit_code, 2)

    def test_unknown_config_key_fails(self):
        with TemporaryDirectory() as tmp_dir:
            config = Path(tmp_dir) / "config.yml"
            config.write_text("judges: [a]\n")
            result, _ = evaluate_command("--config", str(config))
            self.assertEqual(result.exit_code, 1)

    def test_unknown_output_format_fails(self):
        with TemporaryDirectory() as tmp_dir:
            target_file = Path(tmp_dir) / "results.txt"
            result, _ = evaluate_command("--output", str(target_file))
            self.assertEqual(result.exit_code, 1)
            self.assertFalse(target_file.is_file())


class TestReportInterface(unittest.TestCase):
    def write_evaluation(self, tmp_dir):
        target_file = Path(tmp_dir) / "evaluation.json"
        result, _ = evaluate_command("--name", "bass-eval", "--output", str(target_file))
        self.assertIsNone(result.exception)
        return str(target_file)

    def test_report_list(self):
        with TemporaryDirectory() as tmp_dir:
            result, stdout = run_cmd_on_main(["report", self.write_evaluation(tmp_dir), "--list"])

            self.assertIsNone(result.exception)
            self.assertEqual(result.exit_code, 0)
            self.assertIn("Versions: v1.0, v1.1", stdout)
            self.assertIn("Corpus: electric_basses", stdout)
            self.assertIn("Topic: Music Man basses", stdout)
            self.assertIn("Query group: Fender brand", stdout)

    def test_report_filter_to_csv(self):
        with TemporaryDirectory() as tmp_dir:
            source = self.write_evaluation(tmp_dir)
            target_file = Path(tmp_dir) / "stingray.csv"
            result, _ = run_cmd_on_main(["report", source, "--topic", "Music Man basses", "-m", "P@1",
                                         "--level", "evaluation", "--output", str(target_file)])

            self.assertIsNone(result.exception)
            lines = target_file.read_text().splitlines()
            self.assertEqual(lines[1:], [
                "evaluation,bass-eval,P@1,v1.0,0.0",
                "evaluation,bass-eval,P@1,v1.1,1.0",
            ])

    def test_report_records(self):
        with TemporaryDirectory() as tmp_dir:
            target_file = Path(tmp_dir) / "records.csv"
            result, _ = run_cmd_on_main(["report", RECORDS, "--format", "records", "--level", "query-group",
                                         "--output", str(target_file)])

            self.assertIsNone(result.exception)
            lines = target_file.read_text().splitlines()
            self.assertIn("query-group,records/electric_basses/Fender basses/Fender brand,P@3,v1.1,0.6667", lines)

    def test_report_no_match(self):
        with TemporaryDirectory() as tmp_dir:
            result, stdout = run_cmd_on_main(["report", self.write_evaluation(tmp_dir), "--corpus", "acoustic"])
            self.assertEqual(result.exit_code, 0)
            self.assertIn("No metrics matched.", stdout)

    def test_report_invalid_file(self):
        with TemporaryDirectory() as tmp_dir:
            broken = Path(tmp_dir) / "broken.jsonl"
            broken.write_text("{not json\n")
            result, _ = run_cmd_on_main(["report", str(broken), "--format", "records"])
            self.assertEqual(result.exit_code, 1)

    def test_report_records_with_averaging_baseline(self):
        with TemporaryDirectory() as tmp_dir:
            target_file = Path(tmp_dir) / "records.csv"
            result, _ = run_cmd_on_main(["report", RECORDS, "--format", "records", "--averaging-baseline", "1",
                                         "--level", "query-group", "--output", str(target_file)])

            self.assertIsNone(result.exception)
            lines = target_file.read_text().splitlines()
            # (1.0 + 1.0) / (1 + 2)
            self.assertIn("query-group,records/electric_basses/Fender basses/Fender brand,P@1,v1.1,0.6667", lines)


class TestMalformedInput(unittest.TestCase):
    def test_non_object_hit_fails_with_location(self):
        with TemporaryDirectory() as tmp_dir:
            runs = Path(tmp_dir) / "runs.jsonl"
            runs.write_text(json.dumps({"corpus": "electric_basses", "topic": "Fender basses",
                                        "query_group": "Fender brand", "query": "fender",
                                        "version": "v1.0", "hits": ["d1", "d2"]}) + "\n")
            result, stdout = run_cmd_on_main(["evaluate", "--runs", str(runs), "--judgments", JUDGMENTS])

            self.assertEqual(result.exit_code, 1)
            self.assertIsInstance(result.exception, SystemExit)
            self.assertIn("runs.jsonl:1: hit 1 must be an object", result.output)

    def test_config_that_is_not_a_mapping_fails(self):
        with TemporaryDirectory() as tmp_dir:
            config = Path(tmp_dir) / "config.yml"
            config.write_text("evaluation:\n")
            result, _ = evaluate_command("--config", str(config))

            self.assertEqual(result.exit_code, 1)
            self.assertIsInstance(result.exception, SystemExit)
            self.assertIn("must be a mapping of settings", result.output)

    def test_duplicate_record_fails(self):
        with TemporaryDirectory() as tmp_dir:
            records = Path(tmp_dir) / "records.jsonl"
            line = Path(RECORDS).read_text().splitlines()[0]
            records.write_text(line + "\n" + line + "\n")
            result, _ = run_cmd_on_main(["report", str(records), "--format", "records"])

            self.assertEqual(result.exit_code, 1)
            self.assertIn("records.jsonl:2: duplicate record", result.output)
