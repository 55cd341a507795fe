from typing import Optional

from supabase_client import supabase

TABLE_NAME = "staff_members"


def fetch_role(user_id: str) -> Optional[str]:
    response = (
        supabase.table(TABLE_NAME)
        .select("role")
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0].get("role") if items else None
