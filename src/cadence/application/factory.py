"""
Repository Factory
Centralizes the logic for selecting the card storage adapter.
"""

import logging

from cadence.application.config import AppConfig
from cadence.application.stats.service import StudySessionService
from cadence.domain.stats.ports import CardRepository
from cadence.infrastructure.adapters.memory_repository import InMemoryCardRepository
from cadence.infrastructure.adapters.yaml_deck import YamlDeckRepository

logger = logging.getLogger(__name__)


def get_card_repository(config: AppConfig) -> CardRepository:
    """
    Returns the CardRepository implementation selected by config.
    """
    if config.backend == "memory":
        logger.debug("Backend: in-memory")
        return InMemoryCardRepository()

    logger.debug(f"Backend: YAML deck at {config.deck_path}")
    return YamlDeckRepository(config.deck_path)


def build_study_service(config: AppConfig) -> StudySessionService:
    """
    Wire a StudySessionService from configuration.

    Raises:
        ConfigurationError: If the scheduling settings are invalid.
    """
    return StudySessionService(get_card_repository(config), config.scheduling_config())
