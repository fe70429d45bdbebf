# walcard/repos/order_repo.py
from decimal import Decimal
from typing import Any, Dict, List

from walcard.domain.schemas import Order, OrderItem, OrderStatus, parse_record, parse_records
from walcard.services.remote_client import RemoteDataClient

ORDER_COLUMNS = "id, store_owner_id, status, total_price, order_notes, created_at, updated_at"
ORDER_ITEM_COLUMNS = "id, order_id, product_id, quantity, price_at_order, products(name, image_url)"


def _flatten_item(row: Dict[str, Any]) -> Dict[str, Any]:
    product = row.pop("products", None)
    if isinstance(product, list):
        product = product[0] if product else None
    if product:
        row["product_name"] = product.get("name")
        row["image_url"] = product.get("image_url")
    return row


class OrderRepo:
    def __init__(self, client: RemoteDataClient):
        self.client = client

    def create_order(self, store_owner_id: str, total_price: Decimal, notes: str | None = None) -> Order:
        payload: Dict[str, Any] = {
            "store_owner_id": store_owner_id,
            "status": OrderStatus.PENDING.value,
            "total_price": total_price,
        }
        if notes:
            payload["order_notes"] = notes
        row = self.client.table("orders").insert(payload).single().execute()
        return parse_record(Order, row)

    def create_order_items(self, items: List[OrderItem]) -> None:
        rows = [item.model_dump(include={"order_id", "product_id", "quantity", "price_at_order"}) for item in items]
        self.client.table("order_items").insert(rows).execute()

    def delete_order(self, order_id: str) -> None:
        self.client.table("orders").delete().eq("id", order_id).execute()

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order | None:
        row = self.client.table("orders").update({"status": status.value}).eq("id", order_id).maybe_single().execute()
        return parse_record(Order, row) if row is not None else None

    def get_order(self, order_id: str) -> Order | None:
        row = self.client.table("orders").select(ORDER_COLUMNS).eq("id", order_id).maybe_single().execute()
        return parse_record(Order, row) if row is not None else None

    def list_orders(self, store_owner_id: str, status: OrderStatus | None = None) -> List[Order]:
        query = self.client.table("orders").select(ORDER_COLUMNS).eq("store_owner_id", store_owner_id)
        if status is not None:
            query = query.eq("status", status.value)
        rows = query.order("created_at", desc=True).execute()
        return parse_records(Order, rows)

    def get_order_items(self, order_id: str) -> List[OrderItem]:
        rows = self.client.table("order_items").select(ORDER_ITEM_COLUMNS).eq("order_id", order_id).execute()
        return parse_records(OrderItem, [_flatten_item(dict(row)) for row in rows])
