"""
Scripts for DoseKeeper
Day-rollover log creation and development seeding
"""

from .seed_data import seed_all

__all__ = [
    "seed_all",
]
