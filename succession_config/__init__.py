"""
succession_config -- single public entrypoint for succession policy.

Responsibility:
    Provides ``get_default_policy()`` (the bundled policy, cached) and
    ``load_policy(path)`` for an explicit policy file. No other component
    reads policy files or environment variables.

Architecture position:
    Configuration -- sits above ``succession_kernel`` and below
    ``succession_modules``. The kernel and engines never import it.

Audit relevance:
    Every ``get_default_policy()`` load emits a ``SUCCESSION_POLICY_TRACE``
    log entry with the policy name and checksum.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from succession_config.loader import compute_checksum, load_policy, policy_from_dict
from succession_config.schema import OverpaymentPolicy, RiskWeights, SuccessionPolicy
from succession_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_POLICY_PATH = Path(__file__).parent / "policies" / "kenya_default.yaml"


@lru_cache(maxsize=1)
def get_default_policy() -> SuccessionPolicy:
    """Load the bundled default policy once."""
    policy = load_policy(_DEFAULT_POLICY_PATH)
    _logger.info(
        "SUCCESSION_POLICY_TRACE",
        extra={
            "policy_name": policy.name,
            "checksum": compute_checksum(policy),
            "overpayment_policy": policy.overpayment_policy.value,
        },
    )
    return policy


__all__ = [
    "OverpaymentPolicy",
    "RiskWeights",
    "SuccessionPolicy",
    "compute_checksum",
    "get_default_policy",
    "load_policy",
    "policy_from_dict",
]
