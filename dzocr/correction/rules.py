"""Regex substitution rules shared by the text correction stages.

Rule sets can be overridden from a YAML file with one list per stage;
each entry has a ``pattern``, a ``replacement`` (``\\1`` group syntax)
and an optional ``description``.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

# Arabic letters from hamza to yeh, and Western or Arabic-Indic digits.
AR = "ء-ي"
DIGIT = "[0-9٠-٩]"


@dataclass
class StageResult:
    """Text after a correction stage and what the stage changed."""

    text: str
    count: int = 0
    applied: list[str] = field(default_factory=list)


@dataclass
class CorrectionRule:
    """A compiled regex substitution."""

    pattern: re.Pattern[str]
    replacement: str
    description: str = ""

    @classmethod
    def compile(
        cls, pattern: str, replacement: str, description: str = ""
    ) -> "CorrectionRule":
        return cls(re.compile(pattern), replacement, description or pattern)

    def apply(self, text: str) -> tuple[str, int]:
        """Apply the rule and count the matches it actually changed.

        A match that already equals its replacement is left alone and is
        not counted, so canonical text reports zero corrections.
        """
        changed = 0

        def _substitute(match: re.Match[str]) -> str:
            nonlocal changed
            new = match.expand(self.replacement)
            if new != match.group(0):
                changed += 1
            return new

        return self.pattern.sub(_substitute, text), changed


def apply_rules(text: str, rules: list[CorrectionRule]) -> StageResult:
    """Run rules in order, each on the output of the previous one."""
    result = StageResult(text)
    for rule in rules:
        result.text, n = rule.apply(result.text)
        if n:
            result.count += n
            result.applied.append(f"{rule.description} (x{n})")
            logger.debug("Rule '%s' applied %d time(s)", rule.description, n)
    return result


def parse_rules(entries: list[dict]) -> list[CorrectionRule]:
    """Compile rule dictionaries loaded from YAML.

    Raises:
        ValueError: If an entry lacks a pattern or does not compile.
    """
    rules: list[CorrectionRule] = []
    for i, entry in enumerate(entries):
        if "pattern" not in entry:
            raise ValueError(f"Correction rule #{i} has no pattern")
        try:
            rules.append(
                CorrectionRule.compile(
                    entry["pattern"],
                    entry.get("replacement", ""),
                    entry.get("description", ""),
                )
            )
        except re.error as exc:
            raise ValueError(f"Invalid pattern in rule #{i}: {exc}") from exc
    return rules


def load_rule_file(path: Path) -> dict[str, list[CorrectionRule]]:
    """Load rule sets keyed by stage name from a YAML file.

    Args:
        path: Path to the rules file.

    Returns:
        Mapping of stage name to compiled rules; empty when the file is
        missing or empty.
    """
    if not path.exists():
        logger.debug("No correction rules at %s, using built-in rules", path)
        return {}

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    rule_sets = {stage: parse_rules(entries or []) for stage, entries in data.items()}
    logger.info(
        "Loaded correction rules from %s (%s)",
        path,
        ", ".join(f"{k}={len(v)}" for k, v in rule_sets.items()),
    )
    return rule_sets
