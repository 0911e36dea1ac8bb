"""
jobs - Service wiring and runnable entrypoints.
"""

from jobs.service import VaultService

__all__ = ["VaultService"]
