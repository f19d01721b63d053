"""Command-line host for BlazeScript.

Usage:
  blazescript FILE.bzs          run one file
  blazescript DIR               run every *.bzs file under DIR, recursively
  blazescript -e CODE...        evaluate the joined arguments
  blazescript [--repl]          interactive prompt with persistent bindings

Results are printed to stdout, diagnostics to stderr. The exit code is 1
when any run produced an error.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from .blazescript.interpreter import Session, run

logger = logging.getLogger(__name__)

PROMPT = "blazescript > "
SOURCE_SUFFIX = ".bzs"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="blazescript", description="Run BlazeScript programs")
    p.add_argument("path", nargs="?", help="A .bzs file, or a directory to search for .bzs files")
    p.add_argument("-e", "--eval", nargs=argparse.REMAINDER, metavar="CODE", help="Evaluate CODE and exit")
    p.add_argument("--repl", action="store_true", help="Start the interactive prompt (default with no arguments)")
    p.add_argument("--log-level", default="WARNING", help="Logging level, e.g. DEBUG or INFO")
    return p.parse_args(argv)


def report(name: str, text: str, session: Optional[Session] = None) -> bool:
    """Run one source text, print its outcome and return True on success."""
    outcome = run(name, text, session=session)
    if outcome["errors"]:
        print("\n".join(err.as_string() for err in outcome["errors"]), file=sys.stderr)
        return False
    if outcome["error"] is not None:
        print(outcome["error"].as_string(), file=sys.stderr)
        return False
    if outcome["value"] is not None:
        print(outcome["value"].represent())
    return True


def source_files(root: Path) -> Iterable[Path]:
    return sorted(p for p in root.rglob(f"*{SOURCE_SUFFIX}") if p.is_file())


def run_path(path: Path) -> bool:
    if path.is_dir():
        ok = True
        for file in source_files(path):
            ok = run_file(file) and ok
        return ok
    return run_file(path)


def run_file(path: Path) -> bool:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {path}: {e.strerror}", file=sys.stderr)
        return False
    logger.info("running %s", path)
    return report(str(path), text)


def repl() -> bool:
    session = Session()
    ok = True
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return ok
        except KeyboardInterrupt:
            print()
            return ok

        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("."):
            command = stripped[1:]
            if command == "exit":
                return ok
            print(f"Unknown command {command}")
            continue
        ok = report("<stdin>", line, session) and ok


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.eval is not None:
        ok = report("Eval", " ".join(args.eval))
    elif args.path and not args.repl:
        ok = run_path(Path(args.path))
    else:
        ok = repl()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
