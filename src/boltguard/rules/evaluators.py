"""
Built-in evaluators.

One evaluator per rule kind:
    - user:   image must not run as root unless allow_root is set
    - size:   image size against max_mb (hard) and warn_mb (soft)
    - label:  every key in required must be present
    - env:    no environment entry may match any of deny_patterns
    - base:   base image must start with one of allowed_prefixes
    - layers: layer count against max_layers (hard) and warn_layers (soft)

Thresholds of 0 (or absent) are disabled. A soft threshold never fails a
rule; it only changes the message of a passing result.
"""

import re

from boltguard.errors import InvalidPatternError
from boltguard.facts import UNKNOWN_BASE_IMAGE, Facts
from boltguard.rules.base import Evaluator
from boltguard.schema import Result, Rule


class UserEvaluator(Evaluator):
    """Checks the run-as user."""

    @property
    def kind(self) -> str:
        return "user"

    @property
    def description(self) -> str:
        return "Fails when the image runs as root (config: allow_root)"

    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        allow_root = rule.config_bool("allow_root")

        if facts.runs_as_root and not allow_root:
            return Result.fail(f"image runs as root (user={facts.user})")

        return Result.pass_(f"runs as user: {facts.user}")


class SizeEvaluator(Evaluator):
    """Checks total image size, in whole megabytes."""

    @property
    def kind(self) -> str:
        return "size"

    @property
    def description(self) -> str:
        return "Fails above max_mb, warns above warn_mb"

    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        max_mb = rule.config_int("max_mb")
        warn_mb = rule.config_int("warn_mb")

        size_mb = int(facts.size_mb)

        if max_mb > 0 and size_mb > max_mb:
            return Result.fail(f"image size {size_mb}MB exceeds maximum {max_mb}MB")

        if warn_mb > 0 and size_mb > warn_mb:
            return Result.pass_(f"image size {size_mb}MB exceeds warning threshold {warn_mb}MB")

        return Result.pass_(f"image size: {size_mb}MB")


class LabelEvaluator(Evaluator):
    """Checks that required labels are present."""

    @property
    def kind(self) -> str:
        return "label"

    @property
    def description(self) -> str:
        return "Fails when any label listed in required is missing"

    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        required = rule.config_list("required")

        missing = [key for key in required if not facts.has_label(key)]
        if missing:
            return Result.fail(f"missing required labels: {', '.join(missing)}")

        return Result.pass_(f"all required labels present ({len(facts.labels)} total labels)")


class EnvEvaluator(Evaluator):
    """
    Scans environment entries for suspicious names or values.

    Patterns are matched against the whole KEY=VALUE entry, but only the key
    is ever echoed back so secret values stay out of reports.
    """

    @property
    def kind(self) -> str:
        return "env"

    @property
    def description(self) -> str:
        return "Fails when an environment entry matches any of deny_patterns"

    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        violations: list[str] = []

        for pattern in rule.config_list("deny_patterns"):
            try:
                regex = re.compile(pattern)
            except re.error as e:
                raise InvalidPatternError(kind=self.kind, pattern=pattern, reason=str(e)) from e

            for entry in facts.env:
                if regex.search(entry):
                    key = entry.split("=", 1)[0]
                    violations.append(f"env var {key} matches pattern {pattern}")

        if violations:
            return Result.fail(f"found suspicious env vars: {'; '.join(violations)}")

        return Result.pass_(f"no suspicious env vars detected ({len(facts.env)} total)")


class BaseImageEvaluator(Evaluator):
    """Checks the inferred base image against an allowlist of prefixes."""

    @property
    def kind(self) -> str:
        return "base"

    @property
    def description(self) -> str:
        return "Fails when the base image matches none of allowed_prefixes"

    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        allowed_prefixes = rule.config_list("allowed_prefixes")
        allow_unknown = rule.config_bool("allow_unknown")
        base = facts.base_image

        if not base or base == UNKNOWN_BASE_IMAGE:
            if allow_unknown:
                return Result.pass_("base image unknown (allowed by policy)")
            return Result.fail("could not determine base image")

        lowered = base.lower()
        if any(lowered.startswith(prefix.lower()) for prefix in allowed_prefixes):
            return Result.pass_(f"base image: {base}")

        if allow_unknown:
            return Result.pass_(f"base image {base} not in recommended list")

        return Result.fail(f"base image {base} not allowed")


class LayersEvaluator(Evaluator):
    """Checks the number of layers."""

    @property
    def kind(self) -> str:
        return "layers"

    @property
    def description(self) -> str:
        return "Fails above max_layers, warns above warn_layers"

    def evaluate(self, facts: Facts, rule: Rule) -> Result:
        max_layers = rule.config_int("max_layers")
        warn_layers = rule.config_int("warn_layers")
        count = facts.layer_count

        if max_layers > 0 and count > max_layers:
            return Result.fail(f"layer count {count} exceeds maximum {max_layers}")

        if warn_layers > 0 and count > warn_layers:
            return Result.pass_(f"layer count {count} exceeds warning threshold {warn_layers}")

        return Result.pass_(f"layer count: {count}")


def builtin_evaluators() -> list[Evaluator]:
    """Return fresh instances of every built-in evaluator."""
    return [
        UserEvaluator(),
        SizeEvaluator(),
        LabelEvaluator(),
        EnvEvaluator(),
        BaseImageEvaluator(),
        LayersEvaluator(),
    ]
