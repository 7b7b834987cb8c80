# Domain Stats Package
from .models import DailyReviewSummary, StudyStats
from .ports import CardRepository

__all__ = ["StudyStats", "DailyReviewSummary", "CardRepository"]
