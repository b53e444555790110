"""REST resource bindings built on the client's request primitives.

Each resource wraps request bodies in, and unwraps responses from, its JSON
envelope (``{"payout": {...}}`` for one entity, ``{"payouts": [...]}`` for a
list). Entities are plain dicts.
"""
from __future__ import annotations

import datetime
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from .options import Options
from .paginate import Pagination, cursor_pages

if TYPE_CHECKING:
    from .client import ShopifyClient


class Resource:
    """A collection of entities under ``base_path``."""

    base_path = ""
    singular = ""
    plural = ""

    def __init__(self, client: "ShopifyClient") -> None:
        self.client = client

    def _path(self, *parts: Any) -> str:
        return "/".join([self.base_path, *(str(p) for p in parts)]) + ".json"

    @staticmethod
    def _unwrap(resource: Any, key: str, default: Any = None) -> Any:
        if not isinstance(resource, Mapping):
            return default
        return resource.get(key, default)


class ListMixin:
    def list(self, options: Optional[Options] = None,
             cancel: Optional[threading.Event] = None) -> list[dict[str, Any]]:
        entities, _ = self.list_with_pagination(options, cancel=cancel)
        return entities

    def list_with_pagination(
        self, options: Optional[Options] = None, cancel: Optional[threading.Event] = None
    ) -> tuple[list[dict[str, Any]], Pagination]:
        resource, pagination = self.client.list_with_pagination(self._path(), options, cancel=cancel)
        return self._unwrap(resource, self.plural, []), pagination

    def iterate(self, options: Optional[Options] = None,
                cancel: Optional[threading.Event] = None) -> Iterable[dict[str, Any]]:
        """Yield every entity, following pagination cursors."""
        return cursor_pages(self.client, self._path(), self.plural, options, cancel=cancel)


class CountMixin:
    def count(self, options: Optional[Options] = None,
              cancel: Optional[threading.Event] = None) -> int:
        return self.client.count(self._path("count"), options, cancel=cancel)


class GetMixin:
    def get(self, entity_id: int, options: Optional[Options] = None,
            cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        resource = self.client.get(self._path(entity_id), options, cancel=cancel)
        return self._unwrap(resource, self.singular)


class CreateMixin:
    def create(self, entity: Mapping[str, Any],
               cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        resource = self.client.post(self._path(), {self.singular: dict(entity)}, cancel=cancel)
        return self._unwrap(resource, self.singular)


class UpdateMixin:
    def update(self, entity: Mapping[str, Any],
               cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        if "id" not in entity:
            raise ValueError(f"{self.singular} update requires an 'id'")
        resource = self.client.put(
            self._path(entity["id"]), {self.singular: dict(entity)}, cancel=cancel
        )
        return self._unwrap(resource, self.singular)


class DeleteMixin:
    def delete(self, entity_id: int, cancel: Optional[threading.Event] = None) -> None:
        self.client.delete(self._path(entity_id), cancel=cancel)


class PayoutStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_TRANSIT = "in_transit"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "canceled"


@dataclass
class PayoutListOptions:
    page_info: Optional[str] = None
    limit: Optional[int] = None
    fields: Optional[str] = None
    last_id: Optional[int] = None
    since_id: Optional[int] = None
    status: Optional[PayoutStatus] = None
    date_min: Optional[datetime.date] = None
    date_max: Optional[datetime.date] = None
    date: Optional[datetime.date] = None


class PayoutService(ListMixin, GetMixin, Resource):
    """Shopify Payments payouts (read only).

    See https://shopify.dev/docs/api/admin-rest/latest/resources/payout
    """

    base_path = "shopify_payments/payouts"
    singular = "payout"
    plural = "payouts"


class SmartCollectionService(
    ListMixin, CountMixin, GetMixin, CreateMixin, UpdateMixin, DeleteMixin, Resource
):
    """See https://shopify.dev/docs/api/admin-rest/latest/resources/smartcollection"""

    base_path = "smart_collections"
    singular = "smart_collection"
    plural = "smart_collections"


class ShopService(Resource):
    """The shop itself; it has no id and a single endpoint."""

    singular = "shop"

    def get(self, options: Optional[Options] = None,
            cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        resource = self.client.get("shop.json", options, cancel=cancel)
        return self._unwrap(resource, self.singular)


@dataclass
class InventoryLevelOptions:
    """Body of the adjust, connect and set inventory level calls."""

    inventory_item_id: int
    location_id: int
    available_adjustment: Optional[int] = None
    available: Optional[int] = None
    disconnect_if_necessary: Optional[bool] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_body(self) -> dict[str, Any]:
        body = {
            "inventory_item_id": self.inventory_item_id,
            "location_id": self.location_id,
            "available_adjustment": self.available_adjustment,
            "available": self.available,
            "disconnect_if_necessary": self.disconnect_if_necessary,
        }
        body = {key: value for key, value in body.items() if value is not None}
        body.update(self.extra)
        return body


class InventoryLevelService(Resource):
    """See https://shopify.dev/docs/api/admin-rest/latest/resources/inventorylevel"""

    base_path = "inventory_levels"
    singular = "inventory_level"
    plural = "inventory_levels"

    def list(self, options: Optional[Options] = None,
             cancel: Optional[threading.Event] = None) -> list[dict[str, Any]]:
        """List levels by ``inventory_item_ids`` and/or ``location_ids``."""
        resource = self.client.get(self._path(), options, cancel=cancel)
        return self._unwrap(resource, self.plural, [])

    def _post_action(self, action: str, options: InventoryLevelOptions,
                     cancel: Optional[threading.Event]) -> Optional[dict[str, Any]]:
        resource = self.client.post(self._path(action), options.to_body(), cancel=cancel)
        return self._unwrap(resource, self.singular)

    def adjust(self, options: InventoryLevelOptions,
               cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        """Adjust the available quantity by ``available_adjustment``."""
        return self._post_action("adjust", options, cancel)

    def connect(self, options: InventoryLevelOptions,
                cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        return self._post_action("connect", options, cancel)

    def set(self, options: InventoryLevelOptions,
            cancel: Optional[threading.Event] = None) -> Optional[dict[str, Any]]:
        return self._post_action("set", options, cancel)

    def delete(self, inventory_item_id: int, location_id: int,
               cancel: Optional[threading.Event] = None) -> None:
        self.client.delete(
            self._path(),
            {"inventory_item_id": inventory_item_id, "location_id": location_id},
            cancel=cancel,
        )
