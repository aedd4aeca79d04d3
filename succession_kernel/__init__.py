"""
Succession Kernel

Pure-logic foundation for the estate succession compliance engine:
- Decimal-only Money and bounded Percentage value objects
- Typed exceptions with machine-readable codes
- Structured JSON logging with estate-scoped context
- Declarative workflow primitives and an append-only audit trail
"""

__version__ = "0.1.0"
