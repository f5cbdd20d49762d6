import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import requests
from requests.structures import CaseInsensitiveDict

from cspbypass.page_inspector import (
    NO_CSP_MESSAGE,
    PageInspector,
    csp_from_headers,
    csp_from_html,
    extract_csp,
)
from cspbypass.session import SessionState


META_PAGE = """
<html><head>
<meta http-equiv="Content-Security-Policy-Report-Only" content="script-src report.example.com">
<meta http-equiv="content-security-policy" content="script-src 'self' *.googleapis.com">
</head><body></body></html>
"""

REPORT_ONLY_PAGE = """
<html><head>
<meta http-equiv="Content-Security-Policy-Report-Only" content="default-src cdn.example.com">
</head></html>
"""


class FakeResponse:
    def __init__(self, headers, text=''):
        self.headers = CaseInsensitiveDict(headers)
        self.text = text


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error

    def get(self, url, **kwargs):
        if self.error:
            raise self.error
        return self.response


def test_header_name_is_case_insensitive():
    headers = [('Content-Type', 'text/html'), ('CONTENT-SECURITY-POLICY', "script-src a.com")]
    assert csp_from_headers(headers) == ("script-src a.com", 'http-header')


def test_first_csp_header_in_order_wins():
    headers = [
        ('Content-Security-Policy-Report-Only', 'script-src ro.com'),
        ('Content-Security-Policy', 'script-src enforced.com'),
    ]
    assert csp_from_headers(headers) == ('script-src ro.com', 'http-header-report-only')


def test_empty_header_values_are_skipped():
    assert csp_from_headers({'Content-Security-Policy': ''}) is None
    assert csp_from_headers({}) is None


def test_enforced_meta_beats_report_only_meta():
    assert csp_from_html(META_PAGE) == ("script-src 'self' *.googleapis.com", 'meta')
    assert csp_from_html(REPORT_ONLY_PAGE) == ('default-src cdn.example.com', 'meta-report-only')
    assert csp_from_html('<html></html>') is None


def test_meta_takes_precedence_over_header():
    lookup = extract_csp({'Content-Security-Policy': 'script-src header.com'}, META_PAGE)
    assert lookup.source == 'meta'
    assert lookup.csp == "script-src 'self' *.googleapis.com"


def test_missing_policy_reports_message():
    lookup = extract_csp({'Content-Type': 'text/html'}, '<html></html>')
    assert not lookup.found
    assert lookup.message == NO_CSP_MESSAGE


def test_inspect_uses_headers_and_body():
    response = FakeResponse(
        {'Content-Type': 'text/html; charset=utf-8', 'Content-Security-Policy': 'script-src header.com'},
        REPORT_ONLY_PAGE,
    )
    inspector = PageInspector(session=FakeSession(response))
    lookup = inspector.inspect('https://example.com')
    assert lookup.source == 'meta-report-only'
    assert lookup.source_label == 'meta tag (report-only)'


def test_inspect_ignores_meta_in_non_html():
    response = FakeResponse(
        {'Content-Type': 'application/json', 'Content-Security-Policy': 'script-src header.com'},
        META_PAGE,
    )
    lookup = PageInspector(session=FakeSession(response)).inspect('https://example.com/api')
    assert lookup.source == 'http-header'


def test_inspect_network_failure_returns_error():
    session = FakeSession(error=requests.exceptions.ConnectionError('refused'))
    lookup = PageInspector(session=session).inspect('https://down.example')
    assert lookup.csp is None
    assert 'refused' in lookup.error


def test_session_maps_are_keyed_and_cleared():
    session = SessionState()
    session.record_csp(1, 'script-src a.com', 'http-header')
    session.set_count(1, 1500)
    session.set_count(2, 3)

    assert session.csp_for(1) == ('script-src a.com', 'http-header')
    assert session.badge_for(1)['text'] == '999+'
    assert session.count_for(2) == 3
    assert session.contexts() == [1, 2]

    session.close(1)
    assert session.csp_for(1) is None
    assert session.count_for(1) == 0
    assert session.badge_for(1)['text'] == ''
    session.close(1)


def test_request_csp_prefers_live_page_then_stored():
    session = SessionState()
    session.record_csp('tab', 'script-src stored.com', 'http-header')

    live = PageInspector(session=FakeSession(FakeResponse({'Content-Type': 'text/html'}, META_PAGE)))
    lookup = session.request_csp('tab', live, 'https://example.com')
    assert lookup.source == 'meta'

    broken = PageInspector(session=FakeSession(error=requests.exceptions.Timeout('slow')))
    lookup = session.request_csp('tab', broken, 'https://example.com')
    assert lookup.csp == "script-src 'self' *.googleapis.com"


def test_request_csp_resolves_to_none():
    session = SessionState()
    broken = PageInspector(session=FakeSession(error=requests.exceptions.Timeout('slow')))
    assert session.request_csp('tab', broken, 'https://example.com') is None
    assert session.request_csp('other') is None
