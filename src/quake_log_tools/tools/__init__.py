"""
Quake Analysis Tools

This package provides the command-line tools built on the games.log parser:
the kill tracker and the match report exporter.
"""

from .kill_tracker import KillTracker
from .match_report import MatchReportExporter

__all__ = [
    'KillTracker',
    'MatchReportExporter',
]
