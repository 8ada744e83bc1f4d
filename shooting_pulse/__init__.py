"""Shooting Pulse - exploratory analysis of NYPD shooting incident data."""

__version__ = "0.1.0"
