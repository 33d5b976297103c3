"""Generator registry — maps algorithm names to generator classes."""

import logging
from typing import Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recengine.recommendations.generators.base import SignalGenerator

logger = logging.getLogger(__name__)

# Algorithm name -> generator class mapping
_REGISTRY: dict[str, Type[SignalGenerator]] = {}


def register_generator(name: str):
    """Decorator to register a generator class under its algorithm name."""
    def decorator(cls: Type[SignalGenerator]):
        cls.name = name
        _REGISTRY[name] = cls
        logger.debug(f"Registered generator: {name}")
        return cls
    return decorator


def build_generators(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, SignalGenerator]:
    """Instantiate every registered generator against one session factory."""
    return {name: cls(session_factory) for name, cls in _REGISTRY.items()}
