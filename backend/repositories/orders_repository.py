from typing import Any, Dict, Optional

from supabase_client import supabase

TABLE_NAME = "orders"


def insert_order(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store order")
    return response.data[0]


def fetch_order(order_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def update_order(order_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    payload = {key: value for key, value in fields.items() if value is not None}
    if not payload:
        return None
    response = supabase.table(TABLE_NAME).update(payload).eq("id", order_id).execute()
    if not response.data:
        raise RuntimeError(f"Failed to update order {order_id}")
    return response.data[0]
