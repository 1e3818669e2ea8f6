"""
shiftresolver - Resolve date-bound shift allocations into absolute intervals.
"""

__version__ = "0.1.0"
