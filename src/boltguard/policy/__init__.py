"""
Policy loading and validation for boltguard.

A policy is a named, versioned YAML document listing rules. It is parsed
once, validated immediately, and treated as immutable afterwards. A policy
that fails validation is never evaluated.
"""

from boltguard.policy.loader import (
    load_default_policy,
    load_policy,
    load_policy_from_string,
    resolve_policy,
    resolve_policy_path,
)
from boltguard.policy.validator import is_valid_policy, validate_policy

__all__ = [
    "load_default_policy",
    "load_policy",
    "load_policy_from_string",
    "resolve_policy",
    "resolve_policy_path",
    "validate_policy",
    "is_valid_policy",
]
