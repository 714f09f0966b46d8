#!/usr/bin/env python3
from util import repeating_key_xor

"""
Implement repeating-key XOR

Here is the opening stanza of an important work of the English language:

Burning 'em, if you ain't quick and nimble
I go crazy when I hear a cymbal

Encrypt it, under the key "ICE", using repeating-key XOR. The first byte of plaintext is XOR'd against I, the
next C, the next E, then I again for the 4th byte, and so on. It should come out to:

0b3637272a2b2e63622c2e69692a23693a2a3c6324202d623d63343c2a26226324272765272a282b2f20430a652e2c652a3124333a653e2b2027630c692b20283165286326302e27282f
"""


def main():
    plaintext = b"Burning 'em, if you ain't quick and nimble\nI go crazy when I hear a cymbal"
    print(repeating_key_xor(plaintext, b"ICE").hex())


if __name__ == "__main__":
    main()
