"""
User-facing analysis: statistical tests and plots.
"""
