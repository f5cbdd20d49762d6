"""
CSP Bypass Checker CLI
Looks up a page's Content-Security-Policy against the CSPBypass dataset
"""

import argparse
import sys

from colorama import Fore, Style, just_fix_windows_console

from .badge import badge_text
from .config import load_config
from .dataset_cache import DatasetCache
from .matcher import EMPTY_RESULT
from .page_inspector import CSPLookup, PageInspector
from .resolver import resolve
from .session import SessionState

# Exit codes
EXIT_CLEAN = 0
EXIT_NO_CSP = 1
EXIT_BYPASSES = 2
EXIT_FETCH_FAILED = 4

DEFAULT_CONTEXT = 'cli'


class CSPBypassChecker:
    """Wires the dataset cache, page inspector and session state around the resolver"""

    def __init__(self, config=None, cache=None, inspector=None, session=None,
                 show_progress=True):
        config = config if config is not None else load_config()
        self.config = config
        self.cache = cache or DatasetCache.from_config(config, show_progress=show_progress)
        self.inspector = inspector or PageInspector.from_config(config)
        self.session = session or SessionState()

    def dataset(self):
        return self.cache.get_dataset()

    def refresh_dataset(self):
        return self.cache.refresh()

    def check_policy(self, csp, context_id=None):
        """Bypass result for a raw policy string"""
        result = resolve(csp, self.dataset())
        if context_id is not None:
            self.session.set_count(context_id, result.count)
        return result

    def search(self, query, context_id=None):
        """Free text or policy search; remembered as the session's last query"""
        if query and query.strip():
            self.session.last_query = query
        return self.check_policy(query, context_id)

    def check_page(self, url, context_id=DEFAULT_CONTEXT):
        """
        Inspect a page and count bypasses for its policy

        Returns:
            tuple: (CSPLookup, QueryResult)
        """
        lookup = self.inspector.inspect(url)

        if not lookup.found:
            # page gave nothing: use the policy detected earlier for this context
            stored = self.session.csp_for(context_id)
            if not stored:
                self.session.set_count(context_id, 0)
                return lookup, EMPTY_RESULT
            lookup = CSPLookup(csp=stored[0], source=stored[1])

        self.session.record_csp(context_id, lookup.csp, lookup.source)
        return lookup, self.check_policy(lookup.csp, context_id)


def _print_result(result, limit):
    if result.mode == 'directive':
        print(f"{Fore.CYAN}[i]{Style.RESET_ALL} Directive: {result.directive}")
        print(f"{Fore.CYAN}[i]{Style.RESET_ALL} Tokens: {', '.join(result.tokens)}")
    elif result.mode == 'search':
        print(f"{Fore.CYAN}[i]{Style.RESET_ALL} No script directive found, searched as free text")

    if not result.count:
        print(f"\n{Fore.GREEN}[OK]{Style.RESET_ALL} No known bypasses")
        return

    print(f"\n{Fore.RED}[!]{Style.RESET_ALL} {result.count} known bypass(es) "
          f"(badge: {badge_text(result.count)})")
    print("-" * 80)
    for record in result.matches[:limit]:
        print(f"{Style.BRIGHT}{record.domain}{Style.RESET_ALL}")
        print(f"    {record.payload}")
    if result.count > limit:
        print(f"    ... and {result.count - limit} more")


def parse_cli_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Check a Content-Security-Policy against known CSP bypasses',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Inspect a live page
  cspbypass https://example.com

  # Check a policy directly
  cspbypass "script-src 'self' *.googleapis.com"

  # Free text search of the dataset
  cspbypass jsonp
        """
    )
    parser.add_argument('target', help='URL, CSP string or search text')
    parser.add_argument('--refresh', action='store_true',
                        help='Download the dataset even if the cache is fresh')
    parser.add_argument('--limit', type=int, default=20,
                        help='Maximum number of matches to print (default: 20)')
    parser.add_argument('--config', default='config.json',
                        help='Path to config.json (default: ./config.json)')
    parser.add_argument('--no-progress', action='store_true',
                        help='Hide the download progress bar')
    return parser.parse_args(argv)


def main(argv=None):
    """CLI entry point"""
    just_fix_windows_console()
    args = parse_cli_args(argv)

    checker = CSPBypassChecker(load_config(args.config), show_progress=not args.no_progress)
    if args.refresh:
        checker.refresh_dataset()

    target = args.target.strip()

    if target.lower().startswith(('http://', 'https://')):
        print(f"{Fore.CYAN}[+]{Style.RESET_ALL} Inspecting {target}")
        lookup, result = checker.check_page(target)

        if lookup.error:
            print(f"{Fore.RED}[X]{Style.RESET_ALL} Could not fetch page: {lookup.error}")
            sys.exit(EXIT_FETCH_FAILED)
        if not lookup.found:
            print(f"{Fore.YELLOW}[!]{Style.RESET_ALL} {lookup.message}")
            sys.exit(EXIT_NO_CSP)

        print(f"{Fore.CYAN}[+]{Style.RESET_ALL} CSP detected from {lookup.source_label}:")
        print(f"    {lookup.csp}")
    else:
        result = checker.search(target, DEFAULT_CONTEXT)

    _print_result(result, max(args.limit, 0))
    sys.exit(EXIT_BYPASSES if result.count else EXIT_CLEAN)


if __name__ == "__main__":
    main()
