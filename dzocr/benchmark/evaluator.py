"""Benchmarks for mapping accuracy, text correction and language detection.

Mapped form fields are compared with labelled ground truth (precision,
recall, F1, accuracy per field). Corrections are scored by character
error rate before and after correction, and language detection by
accuracy over labelled samples.
"""

import csv
import json
import re
from dataclasses import dataclass, field
from pathlib import Path

import Levenshtein

from dzocr.correction.pipeline import TextCorrector
from dzocr.extraction.legal_entities import normalize_date
from dzocr.language.detector import LanguageDetector
from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

ACCURACY_TARGET = 0.9

_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹", "01234567890123456789")
_DATE_SEPARATOR_RE = re.compile(r"\s*[-/]\s*")
_CURRENCY_RE = re.compile(r"\b(?:da|dzd|dinars?)\b|دج|دينارا?", re.IGNORECASE)
_AMOUNT_RE = re.compile(r"^\d{1,3}(?:[. ]\d{3})*(?:,\d+)?$")


@dataclass
class FieldMetrics:
    """Precision, recall, F1 and accuracy for one mapped field."""

    field_name: str
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    exact_matches: int = 0
    total: int = 0

    @property
    def precision(self) -> float:
        denom = self.true_positives + self.false_positives
        return self.true_positives / denom if denom else 0.0

    @property
    def recall(self) -> float:
        denom = self.true_positives + self.false_negatives
        return self.true_positives / denom if denom else 0.0

    @property
    def f1(self) -> float:
        if self.precision + self.recall == 0:
            return 0.0
        return 2 * (self.precision * self.recall) / (self.precision + self.recall)

    @property
    def accuracy(self) -> float:
        """Share of exact matches after normalisation."""
        return self.exact_matches / self.total if self.total else 0.0


@dataclass
class BenchmarkResult:
    """Mapping accuracy across all documents and fields."""

    total_documents: int
    successful_documents: int
    overall_accuracy: float
    overall_f1: float
    field_metrics: dict[str, FieldMetrics]
    avg_processing_time_ms: float = 0.0
    errors: list[str] = field(default_factory=list)


@dataclass
class CorrectionSample:
    """Raw OCR text with its hand-corrected reference."""

    raw: str
    reference: str
    name: str = ""


@dataclass
class CorrectionBenchmark:
    """Character error rates before and after correction."""

    samples: int
    cer_before: float
    cer_after: float
    per_sample: list[tuple[str, float, float]] = field(default_factory=list)

    @property
    def improvement(self) -> float:
        """Relative CER reduction; negative if correction made things worse."""
        if self.cer_before == 0:
            return 0.0
        return (self.cer_before - self.cer_after) / self.cer_before


@dataclass
class LanguageBenchmark:
    """Language detection accuracy over labelled samples."""

    total: int
    correct: int
    confusion: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


def character_error_rate(hypothesis: str, reference: str) -> float:
    """Edit distance divided by the reference length."""
    if not reference:
        return 0.0 if not hypothesis else 1.0
    return Levenshtein.distance(hypothesis, reference) / len(reference)


def normalize_value(value: str) -> str:
    """Normalise a field value for comparison.

    Lowercases, converts Arabic-Indic digits, collapses whitespace and
    unifies date separators between digits.
    """
    text = " ".join(str(value).translate(_DIGITS).lower().split())
    return re.sub(r"(?<=\d)" + _DATE_SEPARATOR_RE.pattern + r"(?=\d)", "-", text)


def _amount(value: str) -> float | None:
    """Parse ``1.500,00 DA`` style amounts."""
    cleaned = _CURRENCY_RE.sub("", value).strip()
    if not _AMOUNT_RE.match(cleaned):
        return None
    return float(cleaned.replace(".", "").replace(" ", "").replace(",", "."))


class Evaluator:
    """Evaluates mapped fields, corrections and language detection.

    Args:
        fuzzy_threshold: Tolerance for numerical matches.
        similarity_threshold: Minimum Levenshtein ratio for two texts
            to count as the same value.
    """

    def __init__(
        self, fuzzy_threshold: float = 0.01, similarity_threshold: float = 0.9
    ) -> None:
        self.fuzzy_threshold = fuzzy_threshold
        self.similarity_threshold = similarity_threshold

    def evaluate(
        self,
        predictions: dict[str, dict[str, str]],
        ground_truth: dict[str, dict[str, str]],
    ) -> BenchmarkResult:
        """Compare mapped fields against ground truth.

        Args:
            predictions: Filename to mapped field values.
            ground_truth: Filename to expected field values.

        Returns:
            Aggregated results with per-field metrics.
        """
        field_metrics: dict[str, FieldMetrics] = {}
        errors: list[str] = []
        missing_count = 0

        for filename, expected in ground_truth.items():
            predicted = predictions.get(filename)
            if predicted is None:
                errors.append(f"Missing prediction for {filename}")
                missing_count += 1

            for field_name, expected_value in expected.items():
                metrics = field_metrics.setdefault(field_name, FieldMetrics(field_name))
                metrics.total += 1

                if not predicted or predicted.get(field_name) in (None, ""):
                    metrics.false_negatives += 1
                    continue

                pred_value = normalize_value(predicted[field_name])
                exp_value = normalize_value(expected_value)
                if pred_value == exp_value:
                    metrics.true_positives += 1
                    metrics.exact_matches += 1
                elif self._fuzzy_match(pred_value, exp_value):
                    metrics.true_positives += 1
                else:
                    metrics.false_positives += 1

        scored = [m for m in field_metrics.values() if m.total > 0]
        result = BenchmarkResult(
            total_documents=len(ground_truth),
            successful_documents=len(ground_truth) - missing_count,
            overall_accuracy=sum(m.accuracy for m in scored) / len(scored) if scored else 0.0,
            overall_f1=sum(m.f1 for m in scored) / len(scored) if scored else 0.0,
            field_metrics=field_metrics,
            errors=errors,
        )
        logger.info(
            "Mapping benchmark: %d documents, accuracy %.2f, F1 %.3f",
            result.total_documents,
            result.overall_accuracy,
            result.overall_f1,
        )
        return result

    def _fuzzy_match(self, pred: str, expected: str) -> bool:
        """Equivalent dates, amounts, or near-identical texts."""
        pred_date, exp_date = normalize_date(pred), normalize_date(expected)
        if pred_date is not None and pred_date == exp_date:
            return True

        pred_amount, exp_amount = _amount(pred), _amount(expected)
        if pred_amount is not None and exp_amount is not None:
            return abs(pred_amount - exp_amount) < self.fuzzy_threshold

        return Levenshtein.ratio(pred, expected) >= self.similarity_threshold

    def evaluate_corrections(
        self, samples: list[CorrectionSample], corrector: TextCorrector | None = None
    ) -> CorrectionBenchmark:
        """Score the corrector by character error rate.

        Args:
            samples: Raw OCR texts with their references.
            corrector: Corrector to evaluate. Defaults to a fresh one.

        Returns:
            Mean CER of the raw and corrected texts.
        """
        corrector = corrector or TextCorrector()
        per_sample: list[tuple[str, float, float]] = []
        for index, sample in enumerate(samples):
            corrected = corrector.correct(sample.raw).corrected_text
            per_sample.append(
                (
                    sample.name or f"sample-{index + 1}",
                    character_error_rate(sample.raw, sample.reference),
                    character_error_rate(corrected, sample.reference),
                )
            )

        count = len(per_sample)
        result = CorrectionBenchmark(
            samples=count,
            cer_before=sum(s[1] for s in per_sample) / count if count else 0.0,
            cer_after=sum(s[2] for s in per_sample) / count if count else 0.0,
            per_sample=per_sample,
        )
        logger.info(
            "Correction benchmark: CER %.3f -> %.3f over %d samples",
            result.cer_before,
            result.cer_after,
            count,
        )
        return result

    def evaluate_languages(
        self,
        samples: list[tuple[str, str]],
        detector: LanguageDetector | None = None,
    ) -> LanguageBenchmark:
        """Measure language detection accuracy.

        Args:
            samples: ``(text, expected_language)`` pairs, languages as
                ``ar``, ``fr`` or ``mixed``.
            detector: Detector to evaluate. Defaults to a fresh one.

        Returns:
            Accuracy and a confusion table keyed expected -> detected.
        """
        detector = detector or LanguageDetector()
        result = LanguageBenchmark(total=len(samples), correct=0)
        for text, expected in samples:
            detected = detector.detect(text).language.value
            row = result.confusion.setdefault(expected, {})
            row[detected] = row.get(detected, 0) + 1
            if detected == expected:
                result.correct += 1
        logger.info("Language benchmark: %d/%d correct", result.correct, result.total)
        return result

    def generate_report(
        self,
        result: BenchmarkResult,
        output_path: Path | None = None,
        corrections: CorrectionBenchmark | None = None,
        languages: LanguageBenchmark | None = None,
    ) -> str:
        """Format the benchmark results as a text report.

        Args:
            result: Mapping benchmark results.
            output_path: Optional path to write the report to.
            corrections: Optional correction benchmark to include.
            languages: Optional language benchmark to include.

        Returns:
            The report text.
        """
        lines = [
            "=" * 60,
            "BENCHMARK REPORT",
            "=" * 60,
            f"Total Documents:      {result.total_documents}",
            f"Successful:           {result.successful_documents}",
            f"Overall Accuracy:     {result.overall_accuracy:.2%}",
            f"Overall F1 Score:     {result.overall_f1:.3f}",
            f"Avg Processing Time:  {result.avg_processing_time_ms:.0f}ms",
            "",
            "Field-Level Metrics:",
            "-" * 60,
            f"{'Field':<20} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Accuracy':>10}",
            "-" * 60,
        ]
        for name, metrics in sorted(result.field_metrics.items()):
            lines.append(
                f"{name:<20} {metrics.precision:>10.2%} {metrics.recall:>10.2%} "
                f"{metrics.f1:>10.3f} {metrics.accuracy:>10.2%}"
            )

        target_met = result.overall_accuracy >= ACCURACY_TARGET
        lines += [
            "-" * 60,
            f"Target: >{ACCURACY_TARGET:.0%} accuracy - {'PASSED' if target_met else 'FAILED'}",
        ]

        if corrections is not None:
            lines += [
                "",
                "Text Correction:",
                f"  Samples:            {corrections.samples}",
                f"  CER before:         {corrections.cer_before:.3f}",
                f"  CER after:          {corrections.cer_after:.3f}",
                f"  Improvement:        {corrections.improvement:.1%}",
            ]
        if languages is not None:
            lines += [
                "",
                "Language Detection:",
                f"  Samples:            {languages.total}",
                f"  Accuracy:           {languages.accuracy:.2%}",
            ]
        lines.append("=" * 60)

        if result.errors:
            lines.append("")
            lines.append("Errors:")
            lines += [f"  - {error}" for error in result.errors]

        report = "\n".join(lines)
        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report, encoding="utf-8")
            logger.info("Report written to %s", output_path)
        return report


def load_ground_truth(path: Path) -> dict[str, dict[str, str]]:
    """Load labelled field values from a JSON or CSV file.

    JSON format: ``{"filename": {"field": "value", ...}, ...}``.
    CSV format: a ``filename`` column plus one column per field.

    Raises:
        ValueError: If the file format is not supported.
    """
    if path.suffix == ".json":
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    if path.suffix == ".csv":
        gt: dict[str, dict[str, str]] = {}
        with open(path, encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                filename = row.pop("filename")
                gt[filename] = {k: v for k, v in row.items() if v}
        return gt

    raise ValueError(f"Unsupported ground truth format: {path.suffix}")
