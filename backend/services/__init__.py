"""
Service layer package.

Each module encapsulates domain logic independent of Flask or HTTP concerns.
"""

# Export convenience imports for service modules
__all__ = [
    "activities_service",
    "aggregation",
    "common",
    "stats_service",
    "void_service",
]
