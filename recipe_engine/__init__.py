"""
Recipe Engine - turns natural-language test recipes into evidence-producing
browser test runs.
"""

__version__ = "0.1.0"
