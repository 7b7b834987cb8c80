# Domain Scheduling Package
from .models import (
    DEFAULT_SCHEDULING_CONFIG,
    Card,
    CardSchedulingState,
    EaseFactorChange,
    ReviewEvent,
    ReviewQuality,
    SchedulingConfig,
    initialize_card_state,
    parse_quality,
)

__all__ = [
    "DEFAULT_SCHEDULING_CONFIG",
    "Card",
    "CardSchedulingState",
    "EaseFactorChange",
    "ReviewEvent",
    "ReviewQuality",
    "SchedulingConfig",
    "initialize_card_state",
    "parse_quality",
]
