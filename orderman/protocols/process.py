"""
Process Backend Protocol — workflow instances for service lines.

Scheduled service lines whose catalog item has a service_type_id get a
process instance in the workflow engine. Linking is best-effort.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from orderman.models import Order, OrderLine


@runtime_checkable
class ProcessBackend(Protocol):
    """Interface for the workflow/process service."""

    def create_process_instance(
        self,
        service_type_id: str,
        order: Order,
        line: OrderLine,
    ) -> str | None:
        """
        Start a process instance for a service line.

        Args:
            service_type_id: Configured service type of the item
            order: The order
            line: The service line

        Returns:
            Process instance id, or None when no process was started
        """
        ...
