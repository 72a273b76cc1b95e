"""
Expense Tracker - Source Package

A personal expense-tracking service: users record categorized expenses,
set a monthly budget and read aggregate spending reports.

DESIGN PRINCIPLES:
1. Reports are pure computations over stored expenses
2. Validate on write, never on read
3. Every user owns exactly one budget and one settings record
4. Every state change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
