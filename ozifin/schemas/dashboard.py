"""
Dashboard schemas: monthly stats and daily series for the volume and profit charts.
"""
from pydantic import BaseModel
from typing import List

from ozifin.schemas.transactions import TransactionResponse


class DashboardStats(BaseModel):
    total_volume: float
    total_profit: float
    transaction_count: int
    avg_profit: float


class ChartData(BaseModel):
    labels: List[str]
    volume: List[float]
    profit: List[float]


class DashboardResponse(BaseModel):
    month: int
    year: int
    stats: DashboardStats
    recent_transactions: List[TransactionResponse]
    chart: ChartData
