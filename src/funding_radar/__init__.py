"""Multi-exchange funding rate radar with time-gated push alerts."""

__version__ = "0.1.0"
