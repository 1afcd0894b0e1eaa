"""
admin_tables: client-side table view engine for admin dashboards.

Filters, sorts, paginates and bulk-selects an already-fetched entity
collection, and renders it through a thin Dash front-end.
"""

__version__ = "0.1.0"
