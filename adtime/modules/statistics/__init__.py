from adtime.modules.statistics.repository import StatisticsRepository
from adtime.modules.statistics.service import OrderStatisticsService

__all__ = ["OrderStatisticsService", "StatisticsRepository"]
