"""Storage layer: skill stores."""

from skillsearch.storage.base import SkillStore, StorageConfig, StorageError


def create_skill_store(config: StorageConfig) -> SkillStore:
    """Factory function to create skill stores based on configuration.

    Args:
        config: Storage configuration with store_type

    Returns:
        Skill store; call ``initialize()`` before use

    Raises:
        ValueError: If store_type is unknown

    Example:
        config = StorageConfig(
            store_type="sqlite",
            connection_string="sqlite:///~/.skillsearch/skills.db",
        )
        store = create_skill_store(config)
        await store.initialize()
    """
    store_type = config.store_type.lower()

    if store_type == "memory":
        from skillsearch.storage.memory import InMemorySkillStore

        return InMemorySkillStore(config)

    elif store_type == "sqlite":
        from skillsearch.storage.sqlite import SQLiteSkillStore

        return SQLiteSkillStore(config)

    else:
        raise ValueError(
            f"Unknown skill store type: '{store_type}'. "
            f"Supported types: memory, sqlite"
        )


__all__ = [
    "SkillStore",
    "StorageConfig",
    "StorageError",
    "create_skill_store",
]
