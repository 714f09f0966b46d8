#!/usr/bin/env python3
import argparse
import base64
import binascii
import logging
import sys

from util import DEFAULT_BLOCK_COUNT, DEFAULT_MAX_KEY_LENGTH, InsufficientDataError, break_repeating_key_xor

"""
Break repeating-key XOR

There's a file here. It's been base64'd after being encrypted with repeating-key XOR.

Decrypt it.

Here's how:

    Let KEYSIZE be the guessed length of the key; try values from 2 to (say) 40.
    For each KEYSIZE, take blocks of KEYSIZE worth of bytes and find the bitwise hamming distance between
    neighbouring blocks. Average these and normalize the result by dividing by KEYSIZE.
    The KEYSIZE with the smallest normalized edit distance is probably the key.
    Break the ciphertext into blocks of KEYSIZE length and transpose them: make a block that is the first byte of
    every block, a block that is the second byte of every block, and so on.
    Solve each block as if it was single-character XOR. The single-byte XOR key that produces the best looking
    histogram is the repeating-key XOR key byte for that block. Put them together and you have the key.
"""


def main(argv=None):
    """
    Returns the exit status. Bad input is logged rather than raised

    >>> import os, tempfile
    >>> with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False) as f:
    ...     _ = f.write(base64.b64encode(b"It was the best of times, it was the worst of times").decode())
    >>> main(["--key-length", "0", f.name])
    1
    >>> main(["--max-key-length", "0", f.name])
    1
    >>> main(["--block-count", "1", f.name])
    1
    >>> main(["data/no-such-file.txt"])
    1
    >>> os.remove(f.name)
    """
    parser = argparse.ArgumentParser(description="Recover the key and plaintext of a base64'd repeating-key XOR file")
    parser.add_argument("path", nargs="?", default="data/s1c06.txt", help="base64 encoded ciphertext")
    parser.add_argument("--max-key-length", type=int, default=DEFAULT_MAX_KEY_LENGTH,
                        help="longest key length to try (default: %(default)s). Multiples of the real key length "
                             "score about as well as the length itself, so a short key can come back repeated "
                             "(ICEICEICE...). If it does, lower this below twice the real length")
    parser.add_argument("--key-length", type=int, help="skip guessing and use this key length")
    parser.add_argument("--block-count", type=int, default=DEFAULT_BLOCK_COUNT,
                        help="blocks to compare per candidate key length (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv for every score")
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        with open(args.path, "r") as f:
            ciphertext = base64.b64decode(f.read())
    except (OSError, binascii.Error) as e:
        logging.error("Can't read ciphertext from %s: %s", args.path, e)
        return 1

    try:
        key, plaintext = break_repeating_key_xor(ciphertext,
                                                 max_key_length=args.max_key_length,
                                                 key_length=args.key_length,
                                                 block_count=args.block_count)
    except InsufficientDataError as e:
        logging.error("%s; try a smaller --max-key-length or --block-count", e)
        return 1
    except ValueError as e:
        logging.error("Can't break ciphertext: %s", e)
        return 1

    print(f"Keysize: {len(key)}")
    print(f"Key: {key}")
    print(plaintext.decode(errors="replace"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
