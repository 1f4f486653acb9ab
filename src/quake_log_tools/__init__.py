"""
Quake Log Tools - Python package for Quake III Arena server log analysis

This package parses games.log files into per-match statistics (players,
kills, kills by means of death) and exposes tools for ranking players and
exporting reports, with dependencies on the config module for
configuration management.
"""

__version__ = '1.0.0'
