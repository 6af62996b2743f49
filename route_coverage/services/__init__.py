"""Service layer package.

Exports high-level services consumed by orchestration / presentation layers.
"""

from .coverage_service import CoverageService, CoverageServiceConfig

__all__ = ["CoverageService", "CoverageServiceConfig"]
