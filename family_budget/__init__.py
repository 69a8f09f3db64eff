"""
Family Budget - Source Package

A household budget tracker: incomes, expenses, savings goals and food
allowances recorded per month and shared inside a family group.

DESIGN PRINCIPLES:
1. One ledger per family, rebuilt from the remote record store
2. Remote write first, local state second
3. Derived figures are computed, never stored
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Family Budget Team"
