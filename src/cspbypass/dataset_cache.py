"""
CSPBypass Dataset Cache
Downloads data.tsv and keeps it on disk between runs

CACHE POLICY:
- Cached text is reused for max_age_hours (6 by default)
- Expired cache is still used when a refresh fails
- With no cache and no network an empty dataset is returned, never an error
"""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import requests
from tqdm import tqdm

from .config import DATA_URL
from .dataset import Dataset


class DatasetCache:
    """Fetch-and-cache collaborator that hands dataset snapshots to the resolver"""

    def __init__(self, url=DATA_URL, cache_file='data/cspbypass_cache.json',
                 max_age_hours=6, timeout=10, user_agent=None,
                 session=None, show_progress=True):
        self.url = url
        self.cache_file = Path(cache_file)
        self.max_age = timedelta(hours=max_age_hours)
        self.timeout = timeout
        self.show_progress = show_progress

        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({'User-Agent': user_agent})

        self._snapshot = None

    @classmethod
    def from_config(cls, config, **kwargs):
        dataset_cfg = config.get('dataset', {})
        http_cfg = config.get('http', {})
        return cls(
            url=dataset_cfg.get('url', DATA_URL),
            cache_file=dataset_cfg.get('cache_file', 'data/cspbypass_cache.json'),
            max_age_hours=dataset_cfg.get('max_age_hours', 6),
            timeout=http_cfg.get('timeout', 10),
            user_agent=http_cfg.get('user_agent'),
            **kwargs
        )

    def _load_cache(self):
        """Read the cache file; returns (raw_text, fetched_at) or None"""
        if not self.cache_file.exists():
            return None

        try:
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                cached = json.load(f)
            raw = cached['raw']
            fetched_at = datetime.fromisoformat(cached['fetched_at'].replace('Z', '+00:00'))
            if not isinstance(raw, str):
                raise TypeError(f"'raw' must be text, got {type(raw).__name__}")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            print(f"[Cache] Ignoring unreadable cache {self.cache_file}: {e}")
            return None

        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)

        return raw, fetched_at

    def _save_cache(self, raw, fetched_at):
        """Write to a temp file then swap it in, so readers never see a partial cache"""
        tmp_path = None
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile('w', encoding='utf-8', dir=self.cache_file.parent,
                                             prefix=self.cache_file.name, suffix='.tmp',
                                             delete=False) as f:
                tmp_path = Path(f.name)
                json.dump({
                    'raw': raw,
                    'fetched_at': fetched_at.isoformat(),
                    'source': self.url,
                }, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.cache_file)
        except OSError as e:
            print(f"[Cache] Cache save failed: {e}")
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()

    def _download(self):
        """Download the dataset text; raises requests exceptions on failure"""
        response = self.session.get(self.url, stream=True, timeout=self.timeout)
        response.raise_for_status()

        total_size = int(response.headers.get('content-length', 0) or 0)
        chunks = []

        if total_size and self.show_progress:
            with tqdm(total=total_size, unit='B', unit_scale=True, desc='data.tsv') as pbar:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        chunks.append(chunk)
                        pbar.update(len(chunk))
        else:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    chunks.append(chunk)

        # data.tsv is UTF-8; text/plain without a charset would otherwise decode as latin-1
        return b''.join(chunks).decode('utf-8', errors='replace')

    def get_dataset(self, force_refresh=False, now=None):
        """
        Return the current dataset snapshot

        Args:
            force_refresh (bool): Skip the freshness check and download
            now (datetime): Clock override, mostly for tests

        Returns:
            Dataset: fresh, stale (refresh failed) or empty
        """
        now = now or datetime.now(timezone.utc)

        if not force_refresh:
            if self._snapshot is not None and self._snapshot.is_fresh(now, self.max_age):
                return self._snapshot

            cached = self._load_cache()
            if cached and now - cached[1] < self.max_age:
                age_hours = (now - cached[1]).total_seconds() / 3600
                print(f"[Cache] Using cached data ({age_hours:.1f}h old)")
                self._snapshot = Dataset.from_tsv(cached[0], source=self.url, fetched_at=cached[1])
                return self._snapshot

        print(f"[+] Fetching fresh data from {self.url}")
        try:
            raw = self._download()
        except requests.exceptions.RequestException as e:
            print(f"[!] Error fetching dataset: {e}")
            return self._fallback()

        self._save_cache(raw, now)
        self._snapshot = Dataset.from_tsv(raw, source=self.url, fetched_at=now)
        print(f"[OK] Loaded {len(self._snapshot)} bypass records")
        return self._snapshot

    def refresh(self):
        return self.get_dataset(force_refresh=True)

    def _fallback(self):
        """Expired data beats no data"""
        cached = self._load_cache()
        if cached:
            print("[Cache] Using expired cache as fallback")
            self._snapshot = Dataset.from_tsv(cached[0], source=self.url,
                                              fetched_at=cached[1], stale=True)
            return self._snapshot

        if self._snapshot is not None:
            print("[Cache] Keeping previous in-memory dataset")
            return self._snapshot

        print("[!] No cached dataset available, continuing with an empty dataset")
        return Dataset.empty()

    def clear(self):
        """Drop the cache file and the in-memory snapshot"""
        self._snapshot = None
        try:
            self.cache_file.unlink()
        except FileNotFoundError:
            pass
