"""
Komuniteti maintenance workflow engine.

Tracks maintenance requests from creation through resolution, assigns
them to workers, keeps comment threads and computes analytics.
"""

__version__ = "1.0.0"
