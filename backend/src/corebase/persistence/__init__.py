"""Persistence layer - database adapters and operations."""

from corebase.persistence.adapter import PersistenceAdapter
from corebase.persistence.config import DatabaseConfig, create_adapter

__all__ = ["PersistenceAdapter", "DatabaseConfig", "create_adapter"]
