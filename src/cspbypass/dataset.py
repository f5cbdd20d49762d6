"""
CSPBypass Dataset Model
Parses the community-maintained bypass corpus (data.tsv) into records
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Optional, Tuple

# Snapshots older than this are refreshed
DEFAULT_MAX_AGE = timedelta(hours=6)

# first run of non-whitespace = domain, everything after the first gap = payload
_LINE_PATTERN = re.compile(r'^(\S+)\s+(.*)$')


@dataclass(frozen=True)
class BypassRecord:
    """One known bypass: the host serving it and the payload that abuses it"""
    domain: str
    payload: str

    def to_dict(self):
        return {'domain': self.domain, 'payload': self.payload}


def parse_tsv(raw_text):
    """
    Parse raw dataset text into bypass records

    The first line is a header and is skipped. Lines that do not split
    into a domain and a payload are dropped without complaint.

    Args:
        raw_text (str): Tab separated dataset text

    Returns:
        list: BypassRecord objects in file order
    """
    if not raw_text:
        return []

    records: List[BypassRecord] = []

    for line in raw_text.strip().split('\n')[1:]:
        line = line.strip()
        match = _LINE_PATTERN.match(line)
        if not match:
            continue

        domain, payload = match.group(1), match.group(2)
        if domain and payload:
            records.append(BypassRecord(domain=domain, payload=payload))

    return records


@dataclass(frozen=True)
class Dataset:
    """Read-only snapshot of the bypass corpus"""
    records: Tuple[BypassRecord, ...] = ()
    fetched_at: Optional[datetime] = None
    source: Optional[str] = None
    stale: bool = False

    @classmethod
    def from_tsv(cls, raw_text, source=None, fetched_at=None, stale=False):
        """Build a snapshot from raw dataset text"""
        return cls(
            records=tuple(parse_tsv(raw_text)),
            fetched_at=fetched_at or datetime.now(timezone.utc),
            source=source,
            stale=stale,
        )

    @classmethod
    def empty(cls):
        return cls()

    def is_fresh(self, now=None, max_age=DEFAULT_MAX_AGE):
        """True while the snapshot is younger than max_age"""
        if self.fetched_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now - self.fetched_at < max_age

    def __len__(self):
        return len(self.records)

    def __iter__(self) -> Iterator[BypassRecord]:
        return iter(self.records)

    def __bool__(self):
        return bool(self.records)

    def to_dict(self):
        """Summary used by the web API (records themselves are not included)"""
        return {
            'records': len(self.records),
            'fetched_at': self.fetched_at.isoformat() if self.fetched_at else None,
            'source': self.source,
            'stale': self.stale,
        }
