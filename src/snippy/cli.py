"""Snippy CLI -- add, edit, show, list and search snippets."""

import argparse
import json
import logging
import sys
import time

from snippy.errors import ConstraintError, NotFoundError, StorageError
from snippy.models import Snippet
from snippy.store import Store, open_store


def _open(args) -> Store:
    return open_store(args.db)


def _read_content(parts) -> str:
    if not parts or parts == ["-"]:
        return sys.stdin.read()
    return " ".join(parts)


def _print_results(results, use_json: bool, elapsed: float, empty_message: str) -> None:
    if use_json:
        out = [{"id": r.id, "name": r.name, "hint": r.hint} for r in results]
        print(json.dumps({"results": out, "count": len(out), "elapsed_s": round(elapsed, 3)}, indent=2))
        return
    if not results:
        print(empty_message)
        return
    width = max(len(str(r.id)) for r in results)
    for r in results:
        print(f"{r.id:>{width}}  {r.name}  {r.hint}")
    print(f"\n{len(results)} result(s) ({elapsed:.2f}s)")


def cmd_add(args):
    """Save a new snippet."""
    content = _read_content(args.content)
    with _open(args) as store:
        sid = store.save(Snippet(name=args.name, content=content))
    print(f"Saved snippet {sid}: {args.name}")


def cmd_edit(args):
    """Change the name and/or content of an existing snippet."""
    if args.name is None and args.content is None:
        print("Usage: snippy edit ID [--name NAME] [--content TEXT|-]", file=sys.stderr)
        return 1
    with _open(args) as store:
        snippet = store.fetch(args.id)
        if args.name is not None:
            snippet.name = args.name
        if args.content is not None:
            snippet.content = _read_content([args.content])
        store.save(snippet)
    print(f"Updated snippet {args.id}")


def cmd_show(args):
    """Print one snippet's content."""
    with _open(args) as store:
        snippet = store.fetch(args.id)
    if args.json:
        print(json.dumps({
            "id": snippet.id,
            "name": snippet.name,
            "content": snippet.content,
            "created_at": snippet.created_at.isoformat() if snippet.created_at else "",
        }, indent=2))
    else:
        print(f"# {snippet.name}")
        print(snippet.content)


def cmd_recent(args):
    """List the newest snippets."""
    start = time.monotonic()
    with _open(args) as store:
        results = store.recent(args.limit)
    _print_results(results, args.json, time.monotonic() - start, "No snippets yet.")


def cmd_search(args):
    """Search snippets, correcting misspelled terms."""
    query_text = " ".join(args.query_text)
    start = time.monotonic()
    with _open(args) as store:
        if not query_text.strip():
            results = store.recent(args.limit)
        else:
            results = store.search(query_text, args.limit)
            corrected = store.correct(query_text)
            if corrected != query_text and not args.json:
                print(f'Showing results for "{corrected}"')
    _print_results(results, args.json, time.monotonic() - start, f'No results for "{query_text}"')


def cmd_validate(args):
    """Check database and full-text index integrity."""
    with _open(args) as store:
        report = store.validate()
        if not report["ok"] and args.repair:
            print("  Attempting rebuild...")
            store.rebuild_index()
            report = store.validate()
    for key in ("integrity", "fts", "snippets", "terms", "migrations"):
        print(f"  {key:<11} {report[key]}")
    return 0 if report["ok"] else 1


def cmd_migrations(args):
    """List applied schema migrations."""
    with _open(args) as store:
        rows = store.applied_migrations()
    for row in rows:
        print(f"  {row['hash'][:12]}  {row['applied_at']}  {row['name']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snippy",
        description="Snippy -- save text snippets and find them again, typos and all",
    )
    parser.add_argument("--db", help="Database file (default: $SNIPPY_DB or ~/.snippy/snippy.db)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_parser = subparsers.add_parser("add", help="Save a new snippet")
    add_parser.add_argument("name", help="Snippet name")
    add_parser.add_argument("content", nargs="*", help="Snippet text (default: read stdin)")

    edit_parser = subparsers.add_parser("edit", help="Update an existing snippet")
    edit_parser.add_argument("id", type=int, help="Snippet ID")
    edit_parser.add_argument("--name", help="New name")
    edit_parser.add_argument("--content", help="New text, or - to read stdin")

    show_parser = subparsers.add_parser("show", help="Print a snippet")
    show_parser.add_argument("id", type=int, help="Snippet ID")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    recent_parser = subparsers.add_parser("recent", help="List the most recently created snippets")
    recent_parser.add_argument("--limit", type=int, default=10, help="Max results (default: 10)")
    recent_parser.add_argument("--json", action="store_true", help="Output as JSON")

    search_parser = subparsers.add_parser("search", help="Search snippets by name and content")
    search_parser.add_argument("query_text", nargs="*", help="Search text")
    search_parser.add_argument("--limit", type=int, default=10, help="Max results (default: 10)")
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")

    validate_parser = subparsers.add_parser("validate", help="Validate database integrity (SQLite + FTS5)")
    validate_parser.add_argument("--repair", action="store_true", help="Rebuild the FTS5 index if it is corrupted")

    subparsers.add_parser("migrations", help="List applied schema migrations")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "add": cmd_add,
        "edit": cmd_edit,
        "show": cmd_show,
        "recent": cmd_recent,
        "search": cmd_search,
        "validate": cmd_validate,
        "migrations": cmd_migrations,
    }

    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args) or 0
    except (NotFoundError, ConstraintError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
