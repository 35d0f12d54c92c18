"""
Gantry - construction task scheduling engine with dependency-aware
rescheduling and rule-driven QA checklists.
"""

__version__ = "0.1.0"
