"""Repository implementations for the triage engine."""

from triage_engine.repositories.factory import RepositoryFactory

__all__ = ["RepositoryFactory"]
