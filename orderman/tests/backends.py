"""
Collaborator backends used by the test suite.

Recording backends keep every call for assertions; failing backends
raise to exercise best-effort steps.
"""

from orderman.protocols.financial import FinancialRecords


class RecordingFinancialBackend:
    """Financial backend that remembers what it was asked to do."""

    def __init__(self):
        self.sales = []
        self.cancelled = []
        self.payables = []

    def record_sale(self, order, lines, payments):
        self.sales.append((order.pk, [line.pk for line in lines], list(payments)))
        return FinancialRecords(
            invoice_id=f"inv-{order.pk}",
            receivable_id=f"rec-{order.pk}",
            payment_ids=tuple(f"pay-{order.pk}-{i}" for i, _ in enumerate(payments)),
        )

    def cancel_sale(self, order):
        self.cancelled.append(order.pk)

    def create_payables(self, purchase, installments):
        self.payables.append((purchase.pk, list(installments)))
        return [f"ap-{purchase.pk}-{i.number}" for i in installments]


class FailingFinancialBackend:
    """Financial backend whose service is down."""

    def record_sale(self, order, lines, payments):
        raise RuntimeError("financial service unavailable")

    def cancel_sale(self, order):
        raise RuntimeError("financial service unavailable")

    def create_payables(self, purchase, installments):
        raise RuntimeError("financial service unavailable")


class RecordingProcessBackend:
    """Process backend that starts one fake instance per line."""

    def __init__(self):
        self.created = []

    def create_process_instance(self, service_type_id, order, line):
        self.created.append((service_type_id, order.pk, line.pk))
        return f"proc-{line.pk}"


class FailingProcessBackend:
    """Process backend whose engine is down."""

    def create_process_instance(self, service_type_id, order, line):
        raise RuntimeError("workflow engine unavailable")
