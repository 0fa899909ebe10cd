"""
carepath knowledge base.

Contains the recommendation content loaded by the rule engine:
- Age-banded therapy goal banks per rule
- Activity banks per rule
- Fallback goals, activities and focus areas
- Standard report notes
"""
