#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Codec invariants (property tests) over randomly generated tag trees.
#
# This runner:
# - generates random documents (every tag kind, nested lists/compounds,
#   duplicate keys, empty lists, modified-UTF-8 edge characters)
# - checks round-trip, re-encode stability, truncation and envelope
#   invariants against the nbtq package
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from typing import List, Optional

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import nbtq
from nbtq import Envelope, Tag, TagKind

SEED = int(os.environ.get("NBTQ_SEED", "1337"))
TRIALS = int(os.environ.get("NBTQ_TRIALS", "500"))
MAX_GEN_DEPTH = int(os.environ.get("NBTQ_GEN_MAX_DEPTH", "5"))
MAX_KEYS = int(os.environ.get("NBTQ_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("NBTQ_GEN_MAX_LIST", "5"))
MAX_STR = int(os.environ.get("NBTQ_GEN_MAX_STR", "16"))

SCALAR_KINDS = [
    TagKind.BYTE, TagKind.SHORT, TagKind.INT, TagKind.LONG,
    TagKind.FLOAT, TagKind.DOUBLE, TagKind.STRING,
    TagKind.BYTE_ARRAY, TagKind.INT_ARRAY, TagKind.LONG_ARRAY,
]

BITS = {TagKind.BYTE: 8, TagKind.SHORT: 16, TagKind.INT: 32, TagKind.LONG: 64}

# Longer than any generated key, so never present.
ABSENT_KEY = "no-such-key-" * 3


def rand_text(rng: random.Random) -> str:
    # Mostly ASCII, with NUL, 2/3-byte and supplementary characters mixed in.
    out = []
    for _ in range(rng.randint(0, MAX_STR)):
        r = rng.random()
        if r < 0.70:
            out.append(chr(rng.randint(0x20, 0x7E)))
        elif r < 0.75:
            out.append("\x00")
        elif r < 0.85:
            out.append(chr(rng.randint(0x80, 0x7FF)))
        elif r < 0.95:
            out.append(chr(rng.randint(0x800, 0xD7FF)))
        else:
            out.append(chr(rng.randint(0x10000, 0x10FFFF)))
    return "".join(out)


def rand_int(rng: random.Random, bits: int) -> int:
    lo, hi = -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
    return rng.choice([lo, hi, 0, -1, rng.randint(lo, hi)])


def rand_payload(rng: random.Random, kind: TagKind, depth: int) -> Tag:
    if kind in BITS:
        return Tag(kind, rand_int(rng, BITS[kind]))
    if kind is TagKind.FLOAT or kind is TagKind.DOUBLE:
        return Tag(kind, rng.uniform(-1e6, 1e6))
    if kind is TagKind.STRING:
        return Tag.string(rand_text(rng))
    if kind is TagKind.BYTE_ARRAY:
        return Tag.byte_array(rand_int(rng, 8) for _ in range(rng.randint(0, 8)))
    if kind is TagKind.INT_ARRAY:
        return Tag.int_array(rand_int(rng, 32) for _ in range(rng.randint(0, 8)))
    if kind is TagKind.LONG_ARRAY:
        return Tag.long_array(rand_int(rng, 64) for _ in range(rng.randint(0, 8)))
    if kind is TagKind.LIST:
        n = rng.randint(0, MAX_LIST)
        if n == 0 and rng.random() < 0.3:
            return Tag.list(TagKind.END, [])
        elem = rand_kind(rng, depth + 1)
        return Tag.list(elem, [rand_payload(rng, elem, depth + 1) for _ in range(n)])
    return rand_compound(rng, depth + 1)


def rand_kind(rng: random.Random, depth: int) -> TagKind:
    if depth >= MAX_GEN_DEPTH or rng.random() < 0.6:
        return rng.choice(SCALAR_KINDS)
    return rng.choice([TagKind.LIST, TagKind.COMPOUND])


def rand_compound(rng: random.Random, depth: int, name: Optional[str] = "") -> Tag:
    children = []
    for _ in range(rng.randint(0, MAX_KEYS)):
        # Small key alphabet so duplicate keys show up regularly.
        key = rng.choice(["a", "b", "id", "tag", "", rand_text(rng)])
        children.append((key, rand_payload(rng, rand_kind(rng, depth), depth)))
    return Tag.compound(children, name=name)


def rand_document(rng: random.Random) -> Tag:
    return rand_compound(rng, 1, name=rng.choice(["", "root", rand_text(rng)]))


def _all_lists(tag: Tag) -> List[Tag]:
    out = []
    if tag.kind is TagKind.LIST:
        out.append(tag)
    if tag.kind in (TagKind.LIST, TagKind.COMPOUND):
        for child in tag.value:
            out.extend(_all_lists(child))
    return out


# --- invariants ---

def check_document(doc: Tag) -> List[str]:
    problems = []
    enc = nbtq.encode(doc)

    dec = nbtq.decode(enc)
    if dec != doc:
        problems.append("round-trip changed the tree")
    if nbtq.encode(dec) != enc:
        problems.append("re-encode is not byte-identical")

    res = nbtq.try_decode(enc[:-1])
    if res.code != nbtq.ERR_TRUNCATED:
        problems.append("truncated document gave {!r}".format(res.code))

    for env in (Envelope.GZIP, Envelope.ZLIB):
        wrapped = nbtq.dump(doc, env)
        if nbtq.detect(wrapped) is not env:
            problems.append("{} envelope not detected".format(env.value))
        if nbtq.load(wrapped) != doc:
            problems.append("{} envelope round-trip changed the tree".format(env.value))

    for lst in _all_lists(dec):
        items = nbtq.as_list(lst)
        if any(i.kind is not lst.element_kind or i.name is not None for i in items):
            problems.append("LIST child breaks element kind")

    if nbtq.get(dec, ABSENT_KEY) is not None:
        problems.append("get() found an absent key")
    return problems


def run(trials: int = TRIALS, seed: int = SEED, verbose: bool = False) -> int:
    """Run ``trials`` random documents; return the number of failures."""
    rng = random.Random(seed)
    failures = 0
    for i in range(trials):
        doc = rand_document(rng)
        problems = check_document(doc)
        if problems:
            failures += 1
            if verbose:
                print("FAIL trial {}: {}".format(i, "; ".join(problems)))
    return failures


def main():
    failures = run(verbose=True)
    print("INVARIANTS (seed {}): {}/{} PASS".format(SEED, TRIALS - failures, TRIALS))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
