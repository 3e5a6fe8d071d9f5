"""nbtq command-line interface.

Usage:
    python3 -m nbtq envelope hotbar.nbt
    python3 -m nbtq dump level.dat [--indent 2]
    python3 -m nbtq slots hotbar.nbt
    python3 -m nbtq presets hotbar.nbt
    python3 -m nbtq convert level.dat --to raw --output level.raw
    python3 -m nbtq version
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from . import (
    DEFAULT_MAX_DEPTH,
    Envelope,
    NbtError,
    Preset,
    Tag,
    __version__,
    decode,
    dump,
    extract_presets,
    simplify,
    slot_summary,
    unwrap,
)

logger = logging.getLogger("nbtq")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nbtq",
        description="nbtq — inspect and convert NBT documents",
    )
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help="refuse nesting deeper than this (default %(default)s)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="log envelope and codec details to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── envelope ──
    env_p = sub.add_parser("envelope", help="Print the compression envelope")
    env_p.add_argument("file")

    # ── dump ──
    dump_p = sub.add_parser("dump", help="Print the document as JSON")
    dump_p.add_argument("file")
    dump_p.add_argument("--indent", type=int, default=2)

    # ── slots ──
    slots_p = sub.add_parser("slots", help="Summarize hotbar slots 0-8")
    slots_p.add_argument("file")

    # ── presets ──
    presets_p = sub.add_parser("presets", help="Extract kit presets as JSON")
    presets_p.add_argument("file")

    # ── convert ──
    conv_p = sub.add_parser("convert", help="Re-encode with another envelope")
    conv_p.add_argument("file")
    conv_p.add_argument("--to", required=True, choices=[e.value for e in Envelope])
    conv_p.add_argument("--output", "-o", required=True, metavar="FILE")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _load(filepath: str, max_depth: int) -> Tag:
    with open(filepath, "rb") as f:
        data = f.read()
    envelope, raw = unwrap(data)
    logger.info("%s: %s envelope, %d bytes", filepath, envelope.value, len(raw))
    return decode(raw, max_depth=max_depth)


def _preset_json(preset: Preset) -> Dict[str, Any]:
    return {
        "name": preset.name,
        "slot": preset.slot,
        "containers": [{
            "id": c.id,
            "name": c.name,
            "items": [{
                "id": i.id,
                "count": i.count,
                "slot": i.slot,
                "tag": None if i.tag is None else simplify(i.tag),
            } for i in c.items],
        } for c in preset.containers],
    }


def _cmd_envelope(args: argparse.Namespace) -> None:
    with open(args.file, "rb") as f:
        envelope, _raw = unwrap(f.read())
    print(envelope.value)


def _cmd_dump(args: argparse.Namespace) -> None:
    root = _load(args.file, args.max_depth)
    print(json.dumps(simplify(root), indent=args.indent, ensure_ascii=False))


def _cmd_slots(args: argparse.Namespace) -> None:
    root = _load(args.file, args.max_depth)
    for s in slot_summary(root):
        print("Slot {}: {} (BlockEntity: {}, Name: {})".format(
            s.slot, s.item_id, str(s.has_block_entity).lower(), s.display_name or "none"))


def _cmd_presets(args: argparse.Namespace) -> None:
    root = _load(args.file, args.max_depth)
    presets = [_preset_json(p) for p in extract_presets(root)]
    print(json.dumps(presets, indent=2, ensure_ascii=False))


def _cmd_convert(args: argparse.Namespace) -> None:
    root = _load(args.file, args.max_depth)
    out = dump(root, Envelope(args.to), max_depth=args.max_depth)
    with open(args.output, "wb") as f:
        f.write(out)
    logger.info("wrote %s (%s, %d bytes)", args.output, args.to, len(out))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    if args.command == "version":
        print(f"nbtq {__version__}")
        return

    try:
        if args.command == "envelope":
            _cmd_envelope(args)
        elif args.command == "dump":
            _cmd_dump(args)
        elif args.command == "slots":
            _cmd_slots(args)
        elif args.command == "presets":
            _cmd_presets(args)
        elif args.command == "convert":
            _cmd_convert(args)
    except NbtError as e:
        print(f"nbtq: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"nbtq: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
