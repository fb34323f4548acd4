#!/usr/bin/env python3
# CLI entry points: scan/convert/show
from __future__ import annotations
import argparse, os, sys
from . import __version__ as _fallback_version
from .config import QUOTES, RewriteConfig
from .constants import DEFAULT_EXTENSIONS, DEFAULT_IGNORE, PROG
from .defaults import DefaultExportIndex
from .paths import build_ignore_patterns
from .process import REMINDER, transform, update_files
from .report import WarningSink
from .scan import load_files_content, read_file, scan_dir

def _config_from_args(args) -> RewriteConfig:
  return RewriteConfig(
    quote=args.quote,
    last_comma=not args.no_last_comma,
    strip_js_extension=not args.keep_js_ext,
    experimental=args.experimental,
  )

def _scan(args):
  extensions = [e.strip() for e in args.ext.split(",") if e.strip()]
  return scan_dir(args.root, build_ignore_patterns(args.ignore), extensions)

def _confirm(prompt: str) -> bool:
  try:
    answer = input(prompt)
  except EOFError:
    return False
  return answer.strip().lower() in ("y", "yes")

def cmd_scan(args):
  """List the files a conversion would rewrite."""
  files = _scan(args)
  for path in files:
    print(path)
  if not files:
    print(f"No JS files in {args.root}")

def cmd_convert(args):
  """Rewrite require()/module.exports into import/export, in place."""
  files = _scan(args)
  if not files:
    print(f"No JS files in {args.root}")
    return 0
  for path in files:
    print(path)
  print("----------------------")

  if not args.yes and not args.dry_run:
    print("The files listed above will be rewritten:\n"
          "  - require() => import\n"
          "  - module.exports => export\n"
          "Make sure the project is versioned to review the diff and revert.")
    if not _confirm("Continue? [y/N] "):
      print("Aborted.")
      return 0

  stats = update_files(files, _config_from_args(args), dry_run=args.dry_run, jobs=args.jobs)
  verb = "Would update" if args.dry_run else "Updated"
  print(f"{verb} {len(stats['changed'])}/{stats['total']} files  failed={len(stats['failed'])}")
  if args.dry_run:
    for path in stats["changed"]:
      print(f"  {path}")
  else:
    print(REMINDER)

def cmd_show(args):
  """Print the converted text of one file, nothing is written."""
  config = _config_from_args(args)
  root = args.root or os.path.dirname(os.path.abspath(args.file))
  siblings = scan_dir(root, build_ignore_patterns(args.ignore), DEFAULT_EXTENSIONS)
  index = DefaultExportIndex.from_contents(load_files_content(siblings), config.experimental, silent=True)
  content = read_file(args.file)
  sys.stdout.write(transform(content, args.file, config, index, WarningSink()))

def _add_rewrite_options(p: argparse.ArgumentParser) -> None:
  p.add_argument("--quote", choices=QUOTES, default=None,
                 help="Quote for generated import targets (default: keep each statement's quote)")
  p.add_argument("--no-last-comma", action="store_true",
                 help="No trailing comma in multi-line import lists")
  p.add_argument("--keep-js-ext", action="store_true",
                 help="Keep the .js extension on relative import targets")
  p.add_argument("--experimental", action="store_true",
                 help="Rebuild exports from object literals holding functions and calls")
  p.add_argument("--ignore", default=DEFAULT_IGNORE,
                 help=f'Space-separated folder names to skip (default: "{DEFAULT_IGNORE}")')

def main(argv=None) -> int:
  """Main CLI entry point."""
  try:
    from importlib.metadata import version, PackageNotFoundError
    try:
      __version__ = version(PROG)
    except PackageNotFoundError:
      __version__ = _fallback_version
  except ImportError:
    __version__ = _fallback_version

  ap = argparse.ArgumentParser(
    prog=PROG,
    description="Convert CommonJS require()/module.exports into ES module import/export.",
    epilog="Examples:\n"
           f"  {PROG} scan src                       # List the files to convert\n"
           f"  {PROG} convert src --dry-run          # Report what would change\n"
           f"  {PROG} convert . --yes --quote \"'\"    # Convert without asking\n"
           f"  {PROG} show lib/index.js --experimental\n",
    formatter_class=argparse.RawDescriptionHelpFormatter
  )
  ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  sub = ap.add_subparsers(dest="cmd", required=True)

  # scan command
  pc = sub.add_parser("scan", help="List the JS files that would be converted.",
                      description="Walk a directory and print the candidate files, ignored folders pruned.")
  pc.add_argument("root", nargs="?", default=".", help="Directory to scan (default: current directory)")
  pc.add_argument("--ignore", default=DEFAULT_IGNORE,
                  help=f'Space-separated folder names to skip (default: "{DEFAULT_IGNORE}")')
  pc.add_argument("--ext", default=",".join(DEFAULT_EXTENSIONS),
                  help="Comma-separated file extensions (default: .js)")
  pc.set_defaults(func=cmd_scan)

  # convert command
  pv = sub.add_parser("convert", help="Rewrite every file in place.",
                      description="Convert require() calls and module.exports assignments of every scanned file.")
  pv.add_argument("root", nargs="?", default=".", help="Directory to convert (default: current directory)")
  pv.add_argument("--ext", default=",".join(DEFAULT_EXTENSIONS),
                  help="Comma-separated file extensions (default: .js)")
  pv.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
  pv.add_argument("--dry-run", action="store_true", help="Report the files that would change, write nothing")
  pv.add_argument("--jobs", type=int, default=None, help="Threads used to read files (default: up to 8)")
  _add_rewrite_options(pv)
  pv.set_defaults(func=cmd_convert)

  # show command
  ps = sub.add_parser("show", help="Print the converted text of one file.",
                      description="Convert a single file and print the result, the file is left untouched.")
  ps.add_argument("file", help="JS file to convert")
  ps.add_argument("--root", default=None,
                  help="Directory whose files feed the default-export index (default: the file's folder)")
  _add_rewrite_options(ps)
  ps.set_defaults(func=cmd_show)

  args = ap.parse_args(argv)

  try:
    return args.func(args) or 0
  except KeyboardInterrupt:
    return 130
  except Exception as e:
    print(f"Error: {e}", file=sys.stderr)
    return 1

if __name__ == "__main__":
  sys.exit(main())
