"""
Page Inspector
Finds the Content-Security-Policy of a web page from its meta tags or headers
"""

from dataclasses import dataclass
from typing import Optional

import requests
from bs4 import BeautifulSoup

CSP_HEADER = 'content-security-policy'
CSP_REPORT_ONLY_HEADER = 'content-security-policy-report-only'

NO_CSP_MESSAGE = "No CSP found. The page may not have a Content Security Policy set."

SOURCE_META = 'meta'
SOURCE_META_REPORT_ONLY = 'meta-report-only'
SOURCE_HEADER = 'http-header'
SOURCE_HEADER_REPORT_ONLY = 'http-header-report-only'

SOURCE_LABELS = {
    SOURCE_META: 'meta tag',
    SOURCE_META_REPORT_ONLY: 'meta tag (report-only)',
    SOURCE_HEADER: 'HTTP header',
    SOURCE_HEADER_REPORT_ONLY: 'HTTP header (report-only)',
}


@dataclass(frozen=True)
class CSPLookup:
    """Result of looking for a page's policy"""
    csp: Optional[str] = None
    source: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def found(self):
        return bool(self.csp)

    @property
    def source_label(self):
        return SOURCE_LABELS.get(self.source, 'current page')

    def to_dict(self):
        return {
            'csp': self.csp,
            'source': self.source,
            'message': self.message,
            'error': self.error,
        }


def csp_from_headers(headers):
    """
    First CSP header in header order (enforced or report-only)

    Args:
        headers: Mapping or iterable of (name, value) pairs

    Returns:
        tuple: (value, source) or None
    """
    if not headers:
        return None

    items = headers.items() if hasattr(headers, 'items') else headers
    for name, value in items:
        name = (name or '').lower()
        if not value:
            continue
        if name == CSP_HEADER:
            return value, SOURCE_HEADER
        if name == CSP_REPORT_ONLY_HEADER:
            return value, SOURCE_HEADER_REPORT_ONLY

    return None


def _find_meta(soup, http_equiv):
    for meta in soup.find_all('meta'):
        equiv = meta.get('http-equiv')
        if equiv and equiv.strip().lower() == http_equiv:
            content = (meta.get('content') or '').strip()
            if content:
                return content
    return None


def csp_from_html(html):
    """
    Policy from <meta http-equiv> tags; enforced beats report-only

    Returns:
        tuple: (value, source) or None
    """
    if not html:
        return None

    soup = BeautifulSoup(html, 'html.parser')

    content = _find_meta(soup, CSP_HEADER)
    if content:
        return content, SOURCE_META

    content = _find_meta(soup, CSP_REPORT_ONLY_HEADER)
    if content:
        return content, SOURCE_META_REPORT_ONLY

    return None


def extract_csp(headers=None, html=None):
    """Meta tag policy takes precedence over the header policy"""
    found = csp_from_html(html) or csp_from_headers(headers)
    if not found:
        return CSPLookup(message=NO_CSP_MESSAGE)

    csp, source = found
    return CSPLookup(csp=csp, source=source)


class PageInspector:
    """Fetches a page and reports its CSP"""

    def __init__(self, timeout=10, user_agent=None, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({'User-Agent': user_agent})

    @classmethod
    def from_config(cls, config, **kwargs):
        http_cfg = config.get('http', {})
        return cls(timeout=http_cfg.get('timeout', 10),
                   user_agent=http_cfg.get('user_agent'), **kwargs)

    def inspect(self, url):
        """
        Fetch a page and extract its policy

        Args:
            url (str): Page URL

        Returns:
            CSPLookup: error is set when the page could not be fetched
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            print(f"[!] Could not fetch {url}: {e}")
            return CSPLookup(error=str(e))

        content_type = response.headers.get('content-type', '').lower()
        html = response.text if 'html' in content_type else None

        return extract_csp(response.headers, html)
