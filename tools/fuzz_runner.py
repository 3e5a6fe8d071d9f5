#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing of the decoder.
#
# Generates three fuzz categories:
#   A) random VALID documents with bytes flipped, dropped or inserted -> decode
#   B) valid documents with a count field forced to a huge or negative value
#   C) gzip/zlib-wrapped documents with the wrapper corrupted -> load
#
# Every input must either decode or fail with an NbtError.  Anything else
# (struct.error, IndexError, RecursionError, ...) prints a repro payload and
# exits non-zero.  Accepted inputs must also re-encode stably.

import os, sys, base64, random, struct
from typing import Any, Callable, Dict, Optional

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "tools"))

import nbtq
from nbtq import Envelope, NbtError
from invariants_runner import rand_document

SEED = int(os.environ.get("NBTQ_SEED", "4242"))
ROUNDS = int(os.environ.get("NBTQ_FUZZ_ROUNDS", "2000"))

COUNT_VALUES = [-1, -(2 ** 31), 2 ** 31 - 1, 0x10000, 1]


def b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


class Mismatch(Exception):
    def __init__(self, label: str, data: bytes, detail: str):
        super().__init__("{}: {}".format(label, detail))
        self.label = label
        self.data = data
        self.detail = detail


def outcome(fn: Callable[[bytes], Any], label: str, data: bytes) -> Dict[str, Optional[str]]:
    """Run ``fn``; return {"ok": ...} or {"err": code}, raising Mismatch on foreign errors."""
    try:
        root = fn(data)
    except NbtError as e:
        return {"err": e.code}
    except Exception as e:  # anything else is a decoder bug
        raise Mismatch(label, data, "{}: {}".format(type(e).__name__, e))
    try:
        first = nbtq.encode(root)
        second = nbtq.encode(nbtq.decode(first))
    except Exception as e:
        raise Mismatch(label, data, "re-encode failed: {}: {}".format(type(e).__name__, e))
    if first != second:
        raise Mismatch(label, data, "re-encode is not stable")
    return {"ok": root.name}


# --- mutators ---

def mutate_bytes(rng: random.Random, raw: bytes) -> bytes:
    buf = bytearray(raw)
    for _ in range(rng.randint(1, 4)):
        op = rng.random()
        if op < 0.5 and buf:
            buf[rng.randrange(len(buf))] = rng.getrandbits(8)
        elif op < 0.75 and buf:
            del buf[rng.randrange(len(buf))]
        else:
            buf.insert(rng.randint(0, len(buf)), rng.getrandbits(8))
    return bytes(buf)


def force_count(rng: random.Random, raw: bytes) -> bytes:
    # Overwrite four bytes somewhere after the root header with a chosen count.
    if len(raw) < 8:
        return raw
    at = rng.randint(3, len(raw) - 4)
    return raw[:at] + struct.pack(">i", rng.choice(COUNT_VALUES)) + raw[at + 4:]


def corrupt_wrapper(rng: random.Random, raw: bytes) -> bytes:
    wrapped = bytearray(nbtq.compress(raw, rng.choice([Envelope.GZIP, Envelope.ZLIB])))
    if rng.random() < 0.5:
        i = rng.randrange(2, len(wrapped))
        wrapped[i] ^= 1 << rng.randrange(8)
        return bytes(wrapped)
    return bytes(wrapped[:rng.randint(2, len(wrapped) - 1)])


def run(rounds: int = ROUNDS, seed: int = SEED) -> int:
    rng = random.Random(seed)
    for i in range(rounds):
        raw = nbtq.encode(rand_document(rng))
        r = rng.random()

        # A) byte-level mutations
        if r < 0.50:
            outcome(nbtq.decode, "A mutate round {}".format(i), mutate_bytes(rng, raw))
            continue

        # B) forged counts
        if r < 0.75:
            outcome(nbtq.decode, "B count round {}".format(i), force_count(rng, raw))
            continue

        # C) corrupted envelopes
        outcome(nbtq.load, "C envelope round {}".format(i), corrupt_wrapper(rng, raw))
    return rounds


def main() -> int:
    try:
        run()
    except Mismatch as e:
        print("MISMATCH:", e.label)
        print("DETAIL:", e.detail)
        print("INPUT_B64:", b64(e.data)[:4000])
        return 1
    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (decoder never failed outside NbtError)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
