"""
Shephard - Budget Entities Package

Ownership-scoped storage and sharing for a budgeting application:
expense templates, spending plans, categories and expenses.

DESIGN PRINCIPLES:
1. One generic service, configured per entity kind
2. Owners never need a share; everyone else needs one
3. Store errors surface unchanged, except known name conflicts
4. Every state change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Shephard Team"
