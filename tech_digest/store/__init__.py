"""Relational store collaborator."""

from .repository import Store, create_store_engine
from .seed import SeedStats, seed_store

__all__ = ["SeedStats", "Store", "create_store_engine", "seed_store"]
