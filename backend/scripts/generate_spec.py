#!/usr/bin/env python
"""Generate the OpenAPI document as JSON.

Usage:
  python backend/scripts/generate_spec.py                      # print spec JSON to stdout
  python backend/scripts/generate_spec.py --out openapi.json   # write to a file
  python backend/scripts/generate_spec.py --list-paths         # print "METHOD path  permission" lines

Exit Codes:
  0 success
  3 spec could not be built
"""
from __future__ import annotations
import argparse, json, os, pathlib, sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from matcha_trade.openapi import build_openapi_spec  # noqa: E402


def list_paths(spec) -> list[str]:
    lines = []
    for path, ops in sorted(spec['paths'].items()):
        for method, op in sorted(ops.items()):
            perms = ','.join(op.get('x-required-permissions', [])) or '-'
            lines.append(f"{method.upper():6} {path}  {perms}")
    return lines


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(description="Generate deterministic OpenAPI spec")
    p.add_argument('--out', dest='out', help='Path to write JSON spec')
    p.add_argument('--list-paths', action='store_true', help='Print one line per operation')
    args = p.parse_args(argv)

    try:
        spec = build_openapi_spec()
    except Exception as exc:  # pragma: no cover
        print(f"Failed to build spec: {exc}", file=sys.stderr)
        return 3

    if args.list_paths:
        print('\n'.join(list_paths(spec)))
    elif args.out:
        out_path = pathlib.Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(spec, indent=2, sort_keys=True) + '\n')
        print(f"Wrote spec JSON to {out_path} ({len(spec['paths'])} paths)")
    else:
        print(json.dumps(spec, indent=2, sort_keys=True))
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
