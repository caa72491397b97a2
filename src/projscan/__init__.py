"""
projscan - project directory scanner with pattern-based code analysis.
"""

__version__ = "0.1.0"
