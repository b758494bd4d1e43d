"""
taskprojector - project task completion dates from effort estimates.
"""

__version__ = "0.1.0"
