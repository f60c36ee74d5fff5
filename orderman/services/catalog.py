"""
Catalog resolution — batch reads of item definitions and kit expansion.

Read-only. No locking.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError

from orderman.adapters import get_composition_expander
from orderman.exceptions import OrderError
from orderman.models.catalog import CatalogItem
from orderman.protocols.composition import ExplodedItem


class CatalogResolver:
    """Read-only catalog helpers."""

    @classmethod
    def item_key(cls, item_id):
        """
        Normalize an item id to the primary key type ("7" → 7).

        Raises:
            OrderError('ITEM_NOT_FOUND'): Not a valid item id
        """
        try:
            return CatalogItem._meta.pk.to_python(item_id)
        except ValidationError:
            raise OrderError('ITEM_NOT_FOUND', item_id=item_id) from None

    @classmethod
    def resolve(cls, tenant_id: str, item_ids) -> dict[int, CatalogItem]:
        """
        Fetch all referenced items of a tenant in one query.

        Ids that do not exist (or belong to another tenant) are simply
        absent from the returned mapping.
        """
        ids = {item_id for item_id in item_ids if item_id is not None}
        if not ids:
            return {}
        return CatalogItem.objects.for_tenant(tenant_id).in_bulk(ids)

    @classmethod
    def explode(cls, tenant_id: str, item: CatalogItem, quantity: Decimal) -> list[ExplodedItem]:
        """Expand a composition item through the configured expander."""
        return get_composition_expander().explode(tenant_id, item.pk, quantity)
