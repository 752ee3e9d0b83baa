"""Cache key layout shared by readers and the writers that invalidate them."""

ORDER_STATS_KEY = "order_stats"


def texture_key(texture_id: str) -> str:
    return f"texture:{texture_id}"
