from .memory_repository import InMemoryCardRepository
from .yaml_deck import YamlDeckRepository

__all__ = ["InMemoryCardRepository", "YamlDeckRepository"]
