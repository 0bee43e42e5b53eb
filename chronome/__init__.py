"""Chronome minute allocation.

Splits a fixed number of minutes across weighted tasks with optional
minimum/maximum bounds, exactly and deterministically, using the
largest-remainder method.
"""

__version__ = "0.1.0"
