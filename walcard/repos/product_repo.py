# walcard/repos/product_repo.py
from typing import Iterable, List

from walcard.domain.schemas import Product, StockRecord, parse_record, parse_records
from walcard.services.remote_client import RemoteDataClient

PRODUCT_COLUMNS = "id, name, price, discount_price, image_url, is_active, merchant_id, available_quantity"


class ProductRepo:
    def __init__(self, client: RemoteDataClient):
        self.client = client

    def get_products(self, product_ids: Iterable[str]) -> List[Product]:
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return []
        rows = self.client.table("products").select(PRODUCT_COLUMNS).in_("id", ids).execute()
        return parse_records(Product, rows)

    def get_product(self, product_id: str) -> Product | None:
        row = self.client.table("products").select(PRODUCT_COLUMNS).eq("id", product_id).maybe_single().execute()
        return parse_record(Product, row) if row is not None else None

    def get_stock(self, product_id: str) -> int | None:
        row = (
            self.client.table("products")
            .select("id, available_quantity")
            .eq("id", product_id)
            .maybe_single()
            .execute()
        )
        if row is None:
            return None
        return parse_record(StockRecord, row).available_quantity or 0

    def set_stock(self, product_id: str, quantity: int) -> None:
        self.client.table("products").update({"available_quantity": quantity}).eq("id", product_id).execute()
