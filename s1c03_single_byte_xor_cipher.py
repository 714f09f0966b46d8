#!/usr/bin/env python3
from util import break_single_xor_cipher

"""
Single-byte XOR cipher

The hex encoded string:

1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736

... has been XOR'd against a single character. Find the key, decrypt the message.

Devise some method for "scoring" a piece of English plaintext. Character frequency is a good metric. Evaluate
each output and choose the one with the best score.
"""


def main():
    ciphertext = bytes.fromhex("1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736")
    results = break_single_xor_cipher([ciphertext])
    n = 5
    print(f"Top {n} results")
    for result in results[:n]:
        print(result)


if __name__ == "__main__":
    main()
