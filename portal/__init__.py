"""
Authority Portal core.

Session and authorization for authority staff, plus a data-access layer that
switches between a simulated backend and the live portal API.
"""

__version__ = "1.0.0"
