"""
carepath - intake questionnaire recommendations for early intervention.
"""

__version__ = "0.1.0"
