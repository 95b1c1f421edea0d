"""
Structural validation for policies.

Validation runs once, right after a policy is parsed and before anything is
evaluated. Checks are ordered and stop at the first problem so the error
always names a single rule and field.
"""

from boltguard.errors import PolicyValidationError
from boltguard.schema import SEVERITIES, Policy


def validate_policy(policy: Policy) -> None:
    """
    Check that a policy is well-formed.

    Order of checks: policy name, at least one rule, then for each rule in
    declaration order its id, name, kind and severity.

    Args:
        policy: The parsed policy

    Raises:
        PolicyValidationError: On the first problem found
    """
    if not policy.name:
        raise PolicyValidationError(
            message="Invalid policy: policy must have a name",
            field_name="name",
        )

    if not policy.rules:
        raise PolicyValidationError(
            message="Invalid policy: policy must have at least one rule",
            field_name="rules",
        )

    for index, rule in enumerate(policy.rules):
        if not rule.id:
            raise PolicyValidationError(
                message=f"Invalid policy: rule #{index} missing id",
                field_name="id",
                rule_index=index,
            )
        if not rule.name:
            raise PolicyValidationError(
                message=f"Invalid policy: rule {rule.id} missing name",
                field_name="name",
                rule_index=index,
                rule_id=rule.id,
            )
        if not rule.kind:
            raise PolicyValidationError(
                message=f"Invalid policy: rule {rule.id} missing kind",
                field_name="kind",
                rule_index=index,
                rule_id=rule.id,
            )
        if rule.severity not in SEVERITIES:
            raise PolicyValidationError(
                message=(
                    f"Invalid policy: rule {rule.id} has invalid severity: "
                    f"{rule.severity!r} (valid: {', '.join(SEVERITIES)})"
                ),
                field_name="severity",
                rule_index=index,
                rule_id=rule.id,
            )


def is_valid_policy(policy: Policy) -> bool:
    """Return True when validate_policy() would not raise."""
    try:
        validate_policy(policy)
    except PolicyValidationError:
        return False
    return True
