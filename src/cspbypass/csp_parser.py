"""
CSP Directive Parser
Pulls the script-src / default-src directive out of a policy and turns its
source expressions into substring tokens for matching against the dataset.

This is deliberately not a CSP validator. Tokens are plain strings meant for
containment checks, and wildcard hosts are collapsed to a trailing suffix so
that matching errs towards reporting too much rather than too little.
"""

import re

# Checked in this order; script-src wins even if default-src appears first
SCRIPT_DIRECTIVES = ('script-src', 'default-src')

_SCHEME_PREFIX = re.compile(r'^https?://')


def extract_directive(csp):
    """
    Locate the directive that governs script loading

    Args:
        csp (str): Policy text, already lower-cased and trimmed

    Returns:
        tuple: (directive_name, directive_value) or None when no script
        directive is present or its value is empty
    """
    if not csp:
        return None

    for name in SCRIPT_DIRECTIVES:
        if name not in csp:
            continue

        # Everything after the first occurrence, up to the next directive
        remainder = csp.split(name, 1)[1]
        value = remainder.split(';', 1)[0].strip()
        return (name, value) if value else None

    return None


def normalize_source(expression):
    """
    Convert a single source expression into a match token

    Returns None for keyword sources ('self', 'none', 'unsafe-inline', ...)
    and anything else that neither contains a wildcard nor looks like a host.
    """
    if '*' in expression:
        host = _SCHEME_PREFIX.sub('', expression)
        # Only the last two wildcard pieces survive, e.g. a*b*c*d.com -> .cd.com
        suffix = ''.join(host.split('*')[-2:])
        return suffix if suffix.startswith('.') else '.' + suffix

    if '.' in expression:
        return expression

    return None


def normalize_sources(directive_value):
    """
    Turn a directive value into a de-duplicated list of match tokens

    Args:
        directive_value (str): Space separated source expressions

    Returns:
        list: Tokens in first-seen order
    """
    tokens = []
    seen = set()

    for expression in directive_value.split(' '):
        if not expression:
            continue
        token = normalize_source(expression)
        if token is None or token in seen:
            continue
        seen.add(token)
        tokens.append(token)

    return tokens
