"""
Query Resolver
Single entry point shared by the CLI, the web interface and page checks
"""

from .csp_parser import extract_directive, normalize_sources
from .matcher import EMPTY_RESULT, match_text, match_tokens


def resolve(raw_input, dataset):
    """
    Count the known bypasses that apply to a policy or a search string

    Policies with a script-src/default-src directive are matched by source
    tokens. Anything else, including directives made only of keywords like
    'self', is treated as a case-insensitive text search.

    Args:
        raw_input (str): CSP header/meta value or free text
        dataset (Dataset): Snapshot to match against

    Returns:
        QueryResult
    """
    if not raw_input or not dataset:
        return EMPTY_RESULT

    query = raw_input.strip().lower()
    if not query:
        return EMPTY_RESULT

    directive = extract_directive(query)
    if directive:
        name, value = directive
        tokens = normalize_sources(value)
        if tokens:
            return match_tokens(tokens, dataset, directive=name)

    return match_text(query, dataset)
