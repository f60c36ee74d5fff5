"""
Orderman Protocols.

Defines interfaces for external system integration.
"""

from orderman.protocols.composition import CompositionExpander, ExplodedItem
from orderman.protocols.financial import (
    FinancialBackend,
    FinancialRecords,
    PayableInstallment,
    PaymentSplit,
)
from orderman.protocols.process import ProcessBackend

__all__ = [
    "CompositionExpander",
    "ExplodedItem",
    "FinancialBackend",
    "FinancialRecords",
    "PayableInstallment",
    "PaymentSplit",
    "ProcessBackend",
]
