"""
Database Models
"""

from .stock import Stock
from .dividend import Dividend
from .analysis import Analysis
from .schema_migration import SchemaMigration

__all__ = [
    "Stock",
    "Dividend",
    "Analysis",
    "SchemaMigration",
]
