"""Tax clearance gate for estate distribution."""

from succession_modules.tax.models import TaxComplianceGate, TaxHead, TaxPayment, TaxStatus
from succession_modules.tax.workflows import TAX_WORKFLOW

__all__ = ["TAX_WORKFLOW", "TaxComplianceGate", "TaxHead", "TaxPayment", "TaxStatus"]
