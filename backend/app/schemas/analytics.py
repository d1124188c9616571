"""Analytics schemas."""

from app.schemas.common import CamelModel


class AnalyticsResponse(CamelModel):
    total_tips: int
    total_amount: float
    unique_tippers: int
    average_per_tip: float
    earliest_tip: str | None
    latest_tip: str | None
    days_active: int
    average_per_day: float
    currency: str
    source: str
    period: str
