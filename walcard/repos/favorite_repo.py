# walcard/repos/favorite_repo.py
from typing import Any, Dict, List

from walcard.domain.schemas import FavoriteProduct, parse_records
from walcard.services.remote_client import RemoteDataClient

FAVORITE_COLUMNS = (
    "id, product_id, created_at, "
    "products(name, price, discount_price, image_url, available_quantity, merchant_id)"
)


def _flatten_favorite(row: Dict[str, Any]) -> Dict[str, Any]:
    product = row.get("products")
    if isinstance(product, list):
        product = product[0] if product else None
    product = product or {}
    return {
        "favorite_id": row.get("id"),
        "product_id": row.get("product_id"),
        "product_name": product.get("name"),
        "price": product.get("price"),
        "discount_price": product.get("discount_price"),
        "image_url": product.get("image_url"),
        "available_quantity": product.get("available_quantity") or 0,
        "merchant_id": product.get("merchant_id"),
        "added_at": row.get("created_at"),
    }


class FavoriteRepo:
    def __init__(self, client: RemoteDataClient):
        self.client = client

    def exists(self, user_id: str, product_id: str) -> bool:
        rows = (
            self.client.table("user_favorites")
            .select("id")
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .limit(1)
            .execute()
        )
        return bool(rows)

    def add(self, user_id: str, product_id: str) -> None:
        self.client.table("user_favorites").upsert(
            {"user_id": user_id, "product_id": product_id},
            on_conflict="user_id,product_id",
        ).execute()

    def remove(self, user_id: str, product_id: str) -> None:
        self.client.table("user_favorites").delete().eq("user_id", user_id).eq("product_id", product_id).execute()

    def list_for_user(self, user_id: str) -> List[FavoriteProduct]:
        rows = self.client.table("user_favorites").select(FAVORITE_COLUMNS).eq("user_id", user_id).execute()
        # ulubione usuniete produkty nie maja danych produktu
        return parse_records(FavoriteProduct, [_flatten_favorite(r) for r in rows if r.get("products")])

    def count(self, user_id: str) -> int:
        rows = self.client.table("user_favorites").select("id").eq("user_id", user_id).execute()
        return len(rows or [])

    def clear(self, user_id: str) -> None:
        self.client.table("user_favorites").delete().eq("user_id", user_id).execute()
