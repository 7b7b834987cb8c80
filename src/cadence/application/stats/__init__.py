# Application Stats Package
from .metrics_calculator import StudyStatsAggregator, compute_stats
from .service import ReviewSubmission, StudySessionService

__all__ = ["StudyStatsAggregator", "compute_stats", "StudySessionService", "ReviewSubmission"]
