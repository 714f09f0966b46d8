#!/usr/bin/env python3
import argparse
import logging
import sys
from typing import List

from util import break_single_xor_cipher, repeating_key_xor

"""
Detect single-character XOR

One of the 60-character strings in this file has been encrypted by single-character XOR.

Find it.

(Your code from #3 should help.)
"""


def find_single_char_xor_ciphertext_from_candidates(haystack: List[bytes]) -> bytes:
    """
    Return the most English-like plaintext out of every single-byte XOR decryption of every candidate

    >>> needle = repeating_key_xor(b"Now that the party is jumping\\n", b"5")
    >>> find_single_char_xor_ciphertext_from_candidates([bytes(range(200, 230)), needle, bytes(range(0, 60, 2))])
    b'Now that the party is jumping\\n'
    """
    results = break_single_xor_cipher(haystack)
    if not results:
        raise ValueError("None of the candidates decrypts to readable text")

    for result in results[:10]:
        logging.debug("%r", result)

    return results[0].plaintext


def main(argv=None):
    """
    >>> main(["data/no-such-file.txt"])
    1
    """
    parser = argparse.ArgumentParser(description="Find the single-byte XOR encrypted line in a file of hex lines")
    parser.add_argument("path", nargs="?", default="data/s1c04.txt", help="file with one hex ciphertext per line")
    parser.add_argument("-v", "--verbose", action="store_true", help="log the runners-up")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s: %(message)s")

    try:
        with open(args.path, "r") as f:
            candidates = [bytes.fromhex(line.strip()) for line in f if line.strip()]
        plaintext = find_single_char_xor_ciphertext_from_candidates(candidates)
    except (OSError, ValueError) as e:
        logging.error("Can't search %s: %s", args.path, e)
        return 1

    print(plaintext)
    return 0


if __name__ == "__main__":
    sys.exit(main())
