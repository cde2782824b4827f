"""
Exercise catalog for hellweek-coach.

Workout templates are static data loaded from YAML and never mutated.
"""

from .registry import DEFAULT_CATALOG, Catalog, CatalogProvider, get_template, list_templates

__all__ = [
    "Catalog",
    "CatalogProvider",
    "DEFAULT_CATALOG",
    "get_template",
    "list_templates",
]
