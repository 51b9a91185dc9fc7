"""Tests for the accuracy benchmarking system."""

import json
from pathlib import Path

import pytest

from dzocr.benchmark.evaluator import (
    BenchmarkResult,
    CorrectionBenchmark,
    CorrectionSample,
    Evaluator,
    FieldMetrics,
    LanguageBenchmark,
    character_error_rate,
    load_ground_truth,
    normalize_value,
)
from dzocr.correction.pipeline import TextCorrector
from dzocr.utils.config import CorrectionConfig


class TestFieldMetrics:
    """Tests for the FieldMetrics data class."""

    def test_precision_partial(self) -> None:
        m = FieldMetrics("date", true_positives=3, false_positives=2)
        assert m.precision == 0.6

    def test_precision_zero_denom(self) -> None:
        assert FieldMetrics("date").precision == 0.0

    def test_recall_partial(self) -> None:
        m = FieldMetrics("date", true_positives=3, false_negatives=2)
        assert m.recall == 0.6

    def test_f1_perfect(self) -> None:
        m = FieldMetrics("date", true_positives=5)
        assert m.f1 == 1.0

    def test_f1_zero(self) -> None:
        assert FieldMetrics("date").f1 == 0.0

    def test_accuracy_partial(self) -> None:
        m = FieldMetrics("date", exact_matches=3, total=5)
        assert m.accuracy == 0.6

    def test_accuracy_zero_total(self) -> None:
        assert FieldMetrics("date").accuracy == 0.0


class TestNormalization:
    """Tests for value normalisation and character error rate."""

    def test_arabic_indic_digits(self) -> None:
        assert normalize_value("٢٠-١٢٣") == "20-123"

    def test_date_separators(self) -> None:
        assert normalize_value("12 / 01 / 2024") == "12-01-2024"

    def test_case_and_spaces(self) -> None:
        assert normalize_value("  Ministère   de la JUSTICE ") == "ministère de la justice"

    def test_cer_identical(self) -> None:
        assert character_error_rate("مرسوم", "مرسوم") == 0.0

    def test_cer_one_edit(self) -> None:
        assert character_error_rate("abd", "abc") == pytest.approx(1 / 3)

    def test_cer_empty_reference(self) -> None:
        assert character_error_rate("", "") == 0.0
        assert character_error_rate("x", "") == 1.0


class TestEvaluator:
    """Tests for mapping accuracy evaluation."""

    def setup_method(self) -> None:
        self.evaluator = Evaluator()

    def test_perfect_predictions(self) -> None:
        gt = {"jo_15.pdf": {"number": "20-123", "date": "15 mars 2020"}}
        pred = {"jo_15.pdf": {"number": "20-123", "date": "15 mars 2020"}}
        result = self.evaluator.evaluate(pred, gt)
        assert result.overall_accuracy == 1.0
        assert result.overall_f1 == 1.0
        assert result.successful_documents == 1

    def test_missing_prediction(self) -> None:
        gt = {"jo_15.pdf": {"number": "20-123"}}
        result = self.evaluator.evaluate({}, gt)
        assert result.successful_documents == 0
        assert result.errors == ["Missing prediction for jo_15.pdf"]
        assert result.field_metrics["number"].false_negatives == 1

    def test_missing_field(self) -> None:
        gt = {"jo_15.pdf": {"number": "20-123", "institution": "Ministère de la justice"}}
        pred = {"jo_15.pdf": {"number": "20-123", "institution": ""}}
        result = self.evaluator.evaluate(pred, gt)
        assert result.field_metrics["institution"].false_negatives == 1

    def test_wrong_value(self) -> None:
        gt = {"jo_15.pdf": {"number": "20-123"}}
        pred = {"jo_15.pdf": {"number": "21-07"}}
        result = self.evaluator.evaluate(pred, gt)
        assert result.field_metrics["number"].false_positives == 1

    def test_arabic_digits_exact(self) -> None:
        gt = {"doc.png": {"number": "20-45"}}
        pred = {"doc.png": {"number": "٢٠-٤٥"}}
        result = self.evaluator.evaluate(pred, gt)
        assert result.field_metrics["number"].exact_matches == 1

    def test_equivalent_dates(self) -> None:
        gt = {"doc.png": {"date": "15/03/2020"}}
        pred = {"doc.png": {"date": "15 mars 2020"}}
        metrics = self.evaluator.evaluate(pred, gt).field_metrics["date"]
        assert metrics.true_positives == 1
        assert metrics.exact_matches == 0

    def test_amount_tolerance(self) -> None:
        assert self.evaluator._fuzzy_match("1.500,00 da", "1 500,00")
        assert self.evaluator._fuzzy_match("100,005", "100,00")
        assert not self.evaluator._fuzzy_match("100,05", "100,00")

    def test_near_identical_text(self) -> None:
        assert self.evaluator._fuzzy_match("ministere de la justice", "ministère de la justice")
        assert not self.evaluator._fuzzy_match("acm", "acme")

    def test_empty_ground_truth(self) -> None:
        result = self.evaluator.evaluate({}, {})
        assert result.total_documents == 0
        assert result.overall_accuracy == 0.0


class TestCorrectionAndLanguageBenchmarks:
    """Tests for the correction and language detection benchmarks."""

    def setup_method(self) -> None:
        self.evaluator = Evaluator()

    def test_correction_improves_cer(self) -> None:
        corrector = TextCorrector(CorrectionConfig(rules_path="/nonexistent.yaml"))
        samples = [CorrectionSample(raw="مرسوم رئاسيرقم 20-45", reference="مرسوم رئاسي رقم 20-45")]
        result = self.evaluator.evaluate_corrections(samples, corrector)
        assert result.samples == 1
        assert result.cer_before == pytest.approx(1 / 21)
        assert result.cer_after == 0.0
        assert result.improvement == 1.0
        assert result.per_sample[0][0] == "sample-1"

    def test_no_samples(self) -> None:
        result = self.evaluator.evaluate_corrections([], TextCorrector())
        assert result.samples == 0
        assert result.improvement == 0.0

    def test_language_accuracy(self) -> None:
        samples = [
            ("Décret exécutif portant organisation", "fr"),
            ("مرسوم رئاسي المتضمن تنظيم المصالح", "ar"),
            ("Décret exécutif", "ar"),
        ]
        result = self.evaluator.evaluate_languages(samples)
        assert result.total == 3
        assert result.correct == 2
        assert result.confusion == {"fr": {"fr": 1}, "ar": {"ar": 1, "fr": 1}}
        assert result.accuracy == pytest.approx(2 / 3)


class TestGenerateReport:
    """Tests for report generation."""

    def setup_method(self) -> None:
        self.evaluator = Evaluator()

    def _result(self, accuracy: float, errors: list[str] | None = None) -> BenchmarkResult:
        return BenchmarkResult(
            total_documents=1,
            successful_documents=1,
            overall_accuracy=accuracy,
            overall_f1=accuracy,
            field_metrics={"number": FieldMetrics("number", true_positives=1, exact_matches=1, total=1)},
            errors=errors or [],
        )

    def test_report_target(self) -> None:
        assert "PASSED" in self.evaluator.generate_report(self._result(0.95))
        assert "FAILED" in self.evaluator.generate_report(self._result(0.5))

    def test_report_sections(self) -> None:
        report = self.evaluator.generate_report(
            self._result(0.95, ["Missing prediction for jo_16.pdf"]),
            corrections=CorrectionBenchmark(samples=2, cer_before=0.2, cer_after=0.1),
            languages=LanguageBenchmark(total=4, correct=3),
        )
        assert "BENCHMARK REPORT" in report
        assert "95.00%" in report
        assert "Improvement:        50.0%" in report
        assert "Accuracy:           75.00%" in report
        assert "Missing prediction for jo_16.pdf" in report

    def test_report_written(self, tmp_path: Path) -> None:
        output = tmp_path / "reports" / "benchmark.txt"
        self.evaluator.generate_report(self._result(1.0), output)
        assert "BENCHMARK REPORT" in output.read_text(encoding="utf-8")


class TestLoadGroundTruth:
    """Tests for ground truth file loading."""

    def test_load_json(self, tmp_path: Path) -> None:
        gt_data = {"jo_15.pdf": {"number": "20-123", "date": "15 mars 2020"}}
        gt_file = tmp_path / "gt.json"
        gt_file.write_text(json.dumps(gt_data, ensure_ascii=False), encoding="utf-8")
        assert load_ground_truth(gt_file) == gt_data

    def test_load_csv(self, tmp_path: Path) -> None:
        gt_file = tmp_path / "gt.csv"
        gt_file.write_text(
            "filename,number,institution\njo_15.pdf,20-123,\njo_16.pdf,20-45,وزارة العدل\n",
            encoding="utf-8",
        )
        loaded = load_ground_truth(gt_file)
        assert loaded["jo_15.pdf"] == {"number": "20-123"}
        assert loaded["jo_16.pdf"]["institution"] == "وزارة العدل"

    def test_load_unsupported_format(self, tmp_path: Path) -> None:
        gt_file = tmp_path / "gt.yaml"
        gt_file.touch()
        with pytest.raises(ValueError, match="Unsupported"):
            load_ground_truth(gt_file)
