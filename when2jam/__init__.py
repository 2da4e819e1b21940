"""
when2jam - paint when you are free, see when the group is free.
"""

__version__ = "0.1.0"
