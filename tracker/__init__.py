# Tracker - Application & Learning Tracker
"""
Tracker - Job applications, research applications, and skill-learning goals.

Track where you applied, how far along your learning goals are, and ask a
language model for a short summary of either.
"""

__version__ = "1.0.0"
__author__ = "Tracker"
__description__ = "Job, research and skill-learning tracker"
