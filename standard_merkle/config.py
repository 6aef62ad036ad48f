"""
Tuning settings for tree construction.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MerkleSettings:
    """
    Parallelism settings used while hashing leaves and tree levels.

    Attributes:
        parallel_threshold: Minimum level width hashed on a thread pool
        max_workers: Thread pool size
    """
    parallel_threshold: int = 100
    max_workers: int = 4

    def __post_init__(self):
        if self.parallel_threshold < 1:
            raise ValueError("parallel_threshold must be at least 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


DEFAULT_SETTINGS = MerkleSettings()
