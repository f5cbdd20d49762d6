"""
Session State
Per-context policies and bypass counts (one context = a tab, window or API client)
"""

from .badge import badge_for
from .page_inspector import CSPLookup, SOURCE_HEADER


class SessionState:
    """Owns the context-keyed maps; entries live from detection until close()"""

    def __init__(self):
        self._csp_by_context = {}
        self._count_by_context = {}
        self.last_query = None

    def record_csp(self, context_id, csp, source=SOURCE_HEADER):
        if csp:
            self._csp_by_context[context_id] = (csp, source)

    def csp_for(self, context_id):
        """Stored (csp, source) for the context, or None"""
        return self._csp_by_context.get(context_id)

    def set_count(self, context_id, count):
        self._count_by_context[context_id] = max(int(count or 0), 0)

    def count_for(self, context_id):
        return self._count_by_context.get(context_id, 0)

    def badge_for(self, context_id):
        return badge_for(self.count_for(context_id))

    def close(self, context_id):
        """Context went away; forget everything about it"""
        self._csp_by_context.pop(context_id, None)
        self._count_by_context.pop(context_id, None)

    def contexts(self):
        return sorted(set(self._csp_by_context) | set(self._count_by_context), key=str)

    def request_csp(self, context_id, inspector=None, url=None):
        """
        Current policy for a context

        Looks at the live page first when a URL and inspector are given, then
        falls back to whatever was recorded earlier. Never raises: any failure
        resolves to None since the answer only feeds a UI.
        """
        stored = self.csp_for(context_id)

        if inspector is not None and url:
            try:
                lookup = inspector.inspect(url)
            except Exception as e:
                print(f"[!] Error getting CSP: {e}")
                lookup = None
            if lookup is not None and lookup.found:
                self.record_csp(context_id, lookup.csp, lookup.source)
                return lookup

        if stored:
            return CSPLookup(csp=stored[0], source=stored[1])

        return None
