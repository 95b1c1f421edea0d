"""
Policy loading for boltguard.

Reads YAML policy documents, turns them into Policy models and validates
them. Anything that goes wrong here surfaces as PolicyLoadError or
PolicyValidationError before a single rule is evaluated.

Default policy resolution:
    1. An explicit path, when given
    2. The first existing candidate in DEFAULT_POLICY_CANDIDATES
    3. The policy shipped inside the package
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from boltguard.errors import PolicyLoadError
from boltguard.policy.validator import validate_policy
from boltguard.schema import Policy

logger = logging.getLogger(__name__)

PACKAGED_POLICY = "default.yaml"


def default_policy_candidates() -> list[Path]:
    """Locations searched for a default policy, in order."""
    return [
        Path("policies") / "default.yaml",
        Path("/etc/boltguard/default.yaml"),
        Path.home() / ".config" / "boltguard" / "default.yaml",
    ]


def load_policy(path: Path | str) -> Policy:
    """
    Load and validate a policy from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated Policy object

    Raises:
        PolicyLoadError: If the file can't be read or doesn't match the schema
        PolicyValidationError: If the policy is structurally invalid
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyLoadError(path=str(path), reason=f"failed to read policy file: {e}") from e

    policy = _parse(content, source=str(path))
    logger.debug("Loaded policy %r from %s (%d rules)", policy.name, path, len(policy.rules))
    return policy


def load_policy_from_string(content: str) -> Policy:
    """Load and validate a policy from a YAML string."""
    return _parse(content, source="<string>")


def load_default_policy() -> Policy:
    """Load the policy shipped with the package."""
    content = (
        resources.files("boltguard.policies")
        .joinpath(PACKAGED_POLICY)
        .read_text(encoding="utf-8")
    )
    return _parse(content, source=f"<packaged {PACKAGED_POLICY}>")


def resolve_policy_path(path: Path | str | None = None) -> Path | None:
    """
    Work out which policy file to use.

    Returns the explicit path when one is given, otherwise the first
    existing default candidate, or None to mean "use the packaged policy".
    """
    if path:
        return Path(path)

    for candidate in default_policy_candidates():
        if candidate.is_file():
            logger.debug("Using default policy candidate %s", candidate)
            return candidate

    return None


def resolve_policy(path: Path | str | None = None) -> Policy:
    """Load the explicit policy, a discovered default, or the packaged one."""
    resolved = resolve_policy_path(path)
    if resolved is None:
        logger.debug("No policy file found, using packaged default")
        return load_default_policy()
    return load_policy(resolved)


def _parse(content: str, source: str) -> Policy:
    """Parse YAML text into a validated Policy."""
    try:
        data: Any = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyLoadError(path=source, reason=f"failed to parse policy YAML: {e}") from e

    if not isinstance(data, dict):
        raise PolicyLoadError(path=source, reason="expected a YAML mapping at top level")

    try:
        policy = Policy.model_validate(data)
    except ValidationError as e:
        raise PolicyLoadError(path=source, reason=_format_validation_error(e)) from e

    validate_policy(policy)
    return policy


def _format_validation_error(error: ValidationError) -> str:
    """Summarize a pydantic error as 'loc: msg' pairs."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"])
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)
