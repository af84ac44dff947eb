"""
orion — ORION incident reporting (JOJ 2026).
Chat assistant, manual report form, history and confirmation on top of a
single local report store.
"""

__version__ = '1.0.0'
