import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from datetime import datetime, timedelta, timezone

from cspbypass.dataset import BypassRecord, Dataset, parse_tsv


SAMPLE_TSV = (
    "Domain\tCode\n"
    "www.google.com\t<script src=\"https://www.google.com/complete/search?client=chrome&jsonp=alert(1);\"></script>\n"
    "ajax.googleapis.com\t<script src=\"https://ajax.googleapis.com/ajax/libs/angularjs/1.8.3/angular.min.js\"></script> <div ng-app>{{$eval.constructor('alert(1)')()}}</div>\n"
    "\n"
    "   \n"
    "lonelydomain.com\n"
    "cdn.jsdelivr.net    <script src=\"https://cdn.jsdelivr.net/npm/csp-bypass@1.0.2/dist/sval-classic.js\"></script>\n"
)


def test_parse_skips_header_and_malformed_lines():
    records = parse_tsv(SAMPLE_TSV)
    assert [r.domain for r in records] == [
        'www.google.com',
        'ajax.googleapis.com',
        'cdn.jsdelivr.net',
    ]


def test_payload_keeps_internal_whitespace():
    records = parse_tsv(SAMPLE_TSV)
    angular = records[1]
    assert angular.payload.endswith("<div ng-app>{{$eval.constructor('alert(1)')()}}</div>")
    assert ' <div ng-app>' in angular.payload


def test_runs_of_spaces_separate_domain_and_payload():
    records = parse_tsv(SAMPLE_TSV)
    assert records[2].payload.startswith('<script src="https://cdn.jsdelivr.net')


def test_parse_never_returns_more_than_body_lines():
    body_lines = len(SAMPLE_TSV.strip().split('\n')) - 1
    assert len(parse_tsv(SAMPLE_TSV)) <= body_lines


def test_header_only_and_empty_input():
    assert parse_tsv("Domain\tCode\n") == []
    assert parse_tsv("") == []
    assert parse_tsv(None) == []


def test_duplicates_and_order_preserved():
    text = "h\nb.com\tone\na.com\ttwo\nb.com\tone\n"
    assert parse_tsv(text) == [
        BypassRecord('b.com', 'one'),
        BypassRecord('a.com', 'two'),
        BypassRecord('b.com', 'one'),
    ]


def test_windows_line_endings():
    records = parse_tsv("Domain\tCode\r\nexample.com\t<script></script>\r\n")
    assert records == [BypassRecord('example.com', '<script></script>')]


def test_dataset_freshness_window():
    fetched = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    dataset = Dataset.from_tsv(SAMPLE_TSV, source='test', fetched_at=fetched)

    assert len(dataset) == 3
    assert dataset.is_fresh(now=fetched + timedelta(hours=5, minutes=59))
    assert not dataset.is_fresh(now=fetched + timedelta(hours=6))


def test_empty_dataset():
    dataset = Dataset.empty()
    assert len(dataset) == 0
    assert not dataset
    assert not dataset.is_fresh()
    assert dataset.to_dict()['records'] == 0


if __name__ == '__main__':
    test_parse_skips_header_and_malformed_lines()
    test_payload_keeps_internal_whitespace()
    test_runs_of_spaces_separate_domain_and_payload()
    test_parse_never_returns_more_than_body_lines()
    test_header_only_and_empty_input()
    test_duplicates_and_order_preserved()
    test_windows_line_endings()
    test_dataset_freshness_window()
    test_empty_dataset()
    print('dataset tests passed')
