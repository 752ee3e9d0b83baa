from adtime.modules.orders.repository import OrderRepository, live_orders
from adtime.modules.orders.service import OrderService

__all__ = ["OrderRepository", "OrderService", "live_orders"]
