"""UW Tracker: shared status board for underwriter file assignment."""

__version__ = "0.1.0"
