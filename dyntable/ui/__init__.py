"""
UI adapters for dyntable.

Currently provides a Dash-based demo host via create_dash_app().
"""

from .dash_app import create_dash_app

__all__ = ["create_dash_app"]
