"""ManuVest BIS: budget planning, purchase requests and realization tracking."""

__version__ = '1.0.0'
