"""
CSP Bypass Checker
Matches Content-Security-Policy source lists against the CSPBypass dataset
"""

from .badge import badge_text
from .csp_parser import extract_directive, normalize_sources
from .dataset import BypassRecord, Dataset, parse_tsv
from .matcher import QueryResult, count_and_filter
from .resolver import resolve

__version__ = "0.1.0"

__all__ = [
    'BypassRecord',
    'Dataset',
    'QueryResult',
    'badge_text',
    'count_and_filter',
    'extract_directive',
    'normalize_sources',
    'parse_tsv',
    'resolve',
]
