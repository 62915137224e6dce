"""
Synthetic Data Module
"""
from .generators import SyntheticDataGenerator, generate_snapshot

__all__ = ["SyntheticDataGenerator", "generate_snapshot"]
