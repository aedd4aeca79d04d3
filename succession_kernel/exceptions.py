"""
Typed Exception Hierarchy for the Succession Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Estate administration errors carry legal weight. A caller that pays a debt
out of statutory order, or releases assets while tax is outstanding, must be
stopped by an error it can catch precisely, never by parsing a message.

Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (attributes set before the message is formatted)

Example:
    try:
        debt.write_off(reason, actor_id="exec-1")
    except TierOneWriteOffError as e:
        api_response(code=e.code, debt=e.debt_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from SuccessionKernelError:

    SuccessionKernelError (base)
    |
    +-- ValidationError                  (malformed input, category a)
    |   +-- NegativeAmountError
    |   +-- PercentageRangeError
    |   +-- ReasonTooShortError
    |   +-- AssetDetailsError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- PreconditionError                (operation forbidden in state, category b)
    |   +-- InvalidTransitionError
    |
    +-- LegalRuleViolationError          (hard statutory rule, category c)
    |   +-- TierOneWriteOffError
    |   +-- TierOneReclassificationError
    |   +-- TaxWriteOffApprovalRequiredError
    |   +-- TaxBalanceOutstandingError
    |   +-- PriorityOrderViolationError
    |
    +-- OverpaymentError                 (payment above balance, reject policy)
    |
    +-- EstateError
    |   +-- EstateFrozenError
    |   +-- EstateOwnershipError
    |   +-- DuplicateMembershipError
    |   +-- DistributionBlockedError
    |
    +-- PolicyConfigError

Policy-level adjustments (the overpayment clamp) are not errors: they are
applied, logged at WARNING and written to the entity's audit trail.
Bequest conflicts are not errors either; they are returned as a report.
"""

from __future__ import annotations


class SuccessionKernelError(Exception):
    """Base exception for all succession kernel errors."""

    code: str = "SUCCESSION_KERNEL_ERROR"


# =============================================================================
# Validation errors
# =============================================================================


class ValidationError(SuccessionKernelError):
    """Malformed input rejected at a construction or entry boundary."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class NegativeAmountError(ValidationError):
    """Money amount is negative."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, amount: str):
        self.amount = amount
        super().__init__("amount", f"must not be negative, got {amount}")


class PercentageRangeError(ValidationError):
    """Percentage value or arithmetic result is outside [0, 100]."""

    code: str = "PERCENTAGE_OUT_OF_RANGE"

    def __init__(self, value: str, operation: str = "create"):
        self.value = value
        self.operation = operation
        super().__init__(
            "percentage",
            f"{operation} produced {value}, which is outside [0, 100]",
        )


class ReasonTooShortError(ValidationError):
    """A mandatory justification text is shorter than the minimum length."""

    code: str = "REASON_TOO_SHORT"

    def __init__(self, field: str, minimum: int):
        self.minimum = minimum
        super().__init__(field, f"must be at least {minimum} characters")


class AssetDetailsError(ValidationError):
    """Asset detail variant failed its own validation."""

    code: str = "INVALID_ASSET_DETAILS"

    def __init__(self, variant: str, reason: str):
        self.variant = variant
        super().__init__(f"{variant} details", reason)


# =============================================================================
# Currency errors
# =============================================================================


class CurrencyError(SuccessionKernelError):
    """Base class for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not a valid ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: {currency}")


class CurrencyMismatchError(CurrencyError):
    """Arithmetic or comparison mixed two currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str, operation: str):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(
            f"Cannot {operation} Money with different currencies: {left} and {right}"
        )


# =============================================================================
# Precondition errors
# =============================================================================


class PreconditionError(SuccessionKernelError):
    """Operation invoked in a state that forbids it. Entity left unchanged."""

    code: str = "PRECONDITION_FAILED"

    def __init__(
        self,
        entity: str,
        entity_id: str,
        operation: str,
        state: str,
        detail: str = "",
    ):
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        self.state = state
        self.detail = detail
        message = f"Cannot {operation} {entity} {entity_id} in state {state}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidTransitionError(PreconditionError):
    """No edge in the workflow table matches (state, action)."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, entity_id: str, from_state: str, action: str):
        self.workflow = workflow
        super().__init__(
            workflow,
            entity_id,
            action,
            from_state,
            f"no '{action}' transition from {from_state} in workflow {workflow}",
        )


# =============================================================================
# Legal-rule violations
# =============================================================================


class LegalRuleViolationError(SuccessionKernelError):
    """Operation would breach a hard statutory rule. Never coerced."""

    code: str = "LEGAL_RULE_VIOLATION"

    def __init__(self, rule: str, detail: str):
        self.rule = rule
        self.detail = detail
        super().__init__(f"{rule}: {detail}")


class TierOneWriteOffError(LegalRuleViolationError):
    """Funeral and testamentary expenses cannot be written off."""

    code: str = "TIER_ONE_WRITE_OFF"

    def __init__(self, debt_id: str):
        self.debt_id = debt_id
        super().__init__(
            "tier_one_write_off",
            f"debt {debt_id} is a funeral/testamentary expense and cannot be written off",
        )


class TierOneReclassificationError(LegalRuleViolationError):
    """Funeral and testamentary expenses keep the first priority tier."""

    code: str = "TIER_ONE_RECLASSIFICATION"

    def __init__(self, debt_id: str, requested_tier: int):
        self.debt_id = debt_id
        self.requested_tier = requested_tier
        super().__init__(
            "tier_one_reclassification",
            f"debt {debt_id} is tier 1 and cannot move to tier {requested_tier}",
        )


class TaxWriteOffApprovalRequiredError(LegalRuleViolationError):
    """Tax debts require an external-authority approval reference to write off."""

    code: str = "TAX_WRITE_OFF_APPROVAL_REQUIRED"

    def __init__(self, debt_id: str):
        self.debt_id = debt_id
        super().__init__(
            "tax_write_off_approval",
            f"tax debt {debt_id} cannot be written off without an authority approval reference",
        )


class TaxBalanceOutstandingError(LegalRuleViolationError):
    """Tax compliance cannot be cleared while a balance remains."""

    code: str = "TAX_BALANCE_OUTSTANDING"

    def __init__(self, estate_id: str, remaining: str):
        self.estate_id = estate_id
        self.remaining = remaining
        super().__init__(
            "tax_clearance_balance",
            f"estate {estate_id} still owes {remaining} in tax",
        )


class PriorityOrderViolationError(LegalRuleViolationError):
    """A lower-priority debt was paid while a higher-priority one is outstanding."""

    code: str = "PRIORITY_ORDER_VIOLATION"

    def __init__(self, debt_id: str, tier: int, blocking_debt_id: str, blocking_tier: int):
        self.debt_id = debt_id
        self.tier = tier
        self.blocking_debt_id = blocking_debt_id
        self.blocking_tier = blocking_tier
        super().__init__(
            "statutory_payment_order",
            f"debt {debt_id} (tier {tier}) cannot be paid while debt "
            f"{blocking_debt_id} (tier {blocking_tier}) is outstanding",
        )


# =============================================================================
# Payment errors
# =============================================================================


class OverpaymentError(SuccessionKernelError):
    """Payment exceeds the outstanding balance and the policy rejects it."""

    code: str = "OVERPAYMENT"

    def __init__(self, entity_id: str, amount: str, outstanding: str):
        self.entity_id = entity_id
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Payment of {amount} on {entity_id} exceeds outstanding balance {outstanding}"
        )


# =============================================================================
# Estate errors
# =============================================================================


class EstateError(SuccessionKernelError):
    """Base class for estate orchestration errors."""

    code: str = "ESTATE_ERROR"


class EstateFrozenError(EstateError):
    """Membership of a frozen estate cannot change."""

    code: str = "ESTATE_FROZEN"

    def __init__(self, estate_id: str, operation: str):
        self.estate_id = estate_id
        self.operation = operation
        super().__init__(f"Estate {estate_id} is frozen; cannot {operation}")


class EstateOwnershipError(EstateError):
    """Entity belongs to a different estate."""

    code: str = "ESTATE_OWNERSHIP"

    def __init__(self, entity_id: str, owner_estate_id: str, estate_id: str):
        self.entity_id = entity_id
        self.owner_estate_id = owner_estate_id
        self.estate_id = estate_id
        super().__init__(
            f"Entity {entity_id} belongs to estate {owner_estate_id}, not {estate_id}"
        )


class DuplicateMembershipError(EstateError):
    """Entity is already a member of this estate."""

    code: str = "DUPLICATE_MEMBERSHIP"

    def __init__(self, estate_id: str, entity_id: str, kind: str):
        self.estate_id = estate_id
        self.entity_id = entity_id
        self.kind = kind
        super().__init__(f"{kind} {entity_id} is already part of estate {estate_id}")


class DistributionBlockedError(EstateError):
    """Distribution gate is closed."""

    code: str = "DISTRIBUTION_BLOCKED"

    def __init__(self, estate_id: str, reasons: list[str]):
        self.estate_id = estate_id
        self.reasons = reasons
        super().__init__(
            f"Distribution of estate {estate_id} is blocked: {'; '.join(reasons)}"
        )


# =============================================================================
# Configuration errors
# =============================================================================


class PolicyConfigError(SuccessionKernelError):
    """Succession policy file or mapping is malformed."""

    code: str = "POLICY_CONFIG_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid succession policy ({source}): {reason}")
