import base64
import logging
import string
from dataclasses import dataclass
from itertools import cycle
from math import inf
from typing import Callable, Dict, Generator, List, Optional, Tuple

log = logging.getLogger(__name__)

DEFAULT_MAX_KEY_LENGTH = 40
DEFAULT_BLOCK_COUNT = 11

# Candidate key bytes for single-byte XOR, space to tilde in ascending order
PRINTABLE_KEYSPACE = bytes(range(0x20, 0x7f))

# Letters, digits, punctuation, space, tab, newline and carriage return. No vertical tab or form feed
READABLE_BYTES = frozenset((string.ascii_letters + string.digits + string.punctuation + " \t\n\r").encode())

# Added to a decryption's score for every byte outside READABLE_BYTES
UNREADABLE_BYTE_PENALTY = 50


class LengthMismatchError(ValueError):
    pass


class EmptyKeyError(ValueError):
    pass


class InsufficientDataError(ValueError):
    pass


def hex2b64(hex: str) -> str:
    """
    Decodes hex to bytes and returns a base64 representation of those bytes

    >>> hex2b64('49276d206b696c6c696e6720796f757220627261696e206c696b65206120706f69736f6e6f7573206d757368726f6f6d')
    'SSdtIGtpbGxpbmcgeW91ciBicmFpbiBsaWtlIGEgcG9pc29ub3VzIG11c2hyb29t'
    """
    return base64.b64encode(bytes.fromhex(hex)).decode()


def fixed_xor(b1: bytes, b2: bytes) -> bytes:
    """
    Take two bytes arguments of equal length, return their XOR

    >>> arg1 = bytes.fromhex('1c0111001f010100061a024b53535009181c')
    >>> arg2 = bytes.fromhex('686974207468652062756c6c277320657965')
    >>> fixed_xor(arg1, arg2).hex()
    '746865206b696420646f6e277420706c6179'

    >>> fixed_xor(b"AAAA", b"AAA")
    Traceback (most recent call last):
    util.LengthMismatchError: Arguments are of different length
    """
    if len(b1) != len(b2):
        raise LengthMismatchError("Arguments are of different length")
    return bytes(a ^ b for a, b in zip(b1, b2))


def repeating_key_xor(plaintext: bytes, key: bytes) -> bytes:
    """
    Cycle the key and XOR the input with it. Encryption and decryption are the same operation, and a one byte
    key gives single-byte XOR

    >>> plaintext = b"Burning 'em, if you ain't quick and nimble\\nI go crazy when I hear a cymbal"
    >>> repeating_key_xor(plaintext, b"ICE").hex()
    '0b3637272a2b2e63622c2e69692a23693a2a3c6324202d623d63343c2a26226324272765272a282b2f20430a652e2c652a3124333a653e2b2027630c692b20283165286326302e27282f'

    >>> repeating_key_xor(repeating_key_xor(b"attack at dawn", b"KEY"), b"KEY")
    b'attack at dawn'
    >>> repeating_key_xor(b"\\x00\\x01", b"A")
    b'A@'
    >>> repeating_key_xor(b"", b"A")
    b''

    >>> repeating_key_xor(b"AAAA", b"")
    Traceback (most recent call last):
    util.EmptyKeyError: Key must be at least one byte long
    """
    if not key:
        raise EmptyKeyError("Key must be at least one byte long")
    return bytes(a ^ b for a, b in zip(plaintext, cycle(key)))


def bitwise_hamming_distance(b1: bytes, b2: bytes) -> int:
    """
    Return the number of bits that must be changed in b1 to get b2

    >>> bitwise_hamming_distance(b"HELLO", b"JELLO")
    1
    >>> bitwise_hamming_distance(b"AAAAA", b"JJJJA")
    12
    >>> bitwise_hamming_distance(b"this is a test", b"wokka wokka!!!")
    37
    >>> bitwise_hamming_distance(b"wokka wokka!!!", b"this is a test")
    37
    >>> bitwise_hamming_distance(b"wokka wokka!!!", b"wokka wokka!!!")
    0
    >>> bitwise_hamming_distance(b"AAAA", b"AAA")
    Traceback (most recent call last):
    util.LengthMismatchError: Inputs are of different length
    """
    if len(b1) != len(b2):
        raise LengthMismatchError("Inputs are of different length")
    return sum(bin(a ^ b).count("1") for a, b in zip(b1, b2))


def chunkify(b: bytes, chunk_size: int) -> Generator[bytes, None, None]:
    """
    Yield chunk_size sized chunks from b

    >>> list(chunkify(b"ABCD", 2))
    [b'AB', b'CD']

    >>> list(chunkify(b"ABCDE", 2))
    [b'AB', b'CD', b'E']
    """
    for i in range(0, len(b), chunk_size):
        yield b[i:i + chunk_size]


# http://en.algoritmy.net/article/40379/Letter-frequency-English
en_char_frequencies = {'a': 0.08167, 'b': 0.01492, 'c': 0.02782, 'd': 0.04253, 'e': 0.12702, 'f': 0.02228,
                       'g': 0.02015, 'h': 0.06094, 'i': 0.06966, 'j': 0.00153, 'k': 0.00772, 'l': 0.04025,
                       'm': 0.02406, 'n': 0.06749, 'o': 0.07507, 'p': 0.01929, 'q': 0.00095, 'r': 0.05987,
                       's': 0.06327, 't': 0.09056, 'u': 0.02758, 'v': 0.00978, 'w': 0.02360, 'x': 0.00150,
                       'y': 0.01974, 'z': 0.00074}


def chi_squared(observed_count: float, expected_count: float) -> float:
    """
    Return the chi squared test result for a given observed and expected count. Zero when they agree, bigger
    number == worse match. Nothing can be expected of an empty sample, so that is the worst match there is

    https://en.wikipedia.org/wiki/Chi-squared_test

    >>> abs(chi_squared(90, 80.54) - 1.11) < .01
    True
    >>> chi_squared(0, 0)
    inf
    """
    if expected_count == 0:
        return inf
    return (observed_count - expected_count) ** 2 / expected_count


def score_english_text_chi_squared(text: bytes, frequencies: Dict[str, float] = en_char_frequencies) -> float:
    """
    Score how English-like text is by comparing its letter counts against frequencies. Letters are counted
    without regard to case. Anything else (spaces, punctuation, non-printable bytes) is not counted and not
    penalised either. Lower score means more English-like input, and text without a single letter gets inf

    Since case is ignored, two decryptions whose keys differ only in bit 0x20 always get the same score. The
    scorer alone can't tell them apart, see score_english_text_penalising_unreadable

    >>> score_english_text_chi_squared(b"123 !?\\n")
    inf
    >>> score_english_text_chi_squared(b"")
    inf

    >>> plaintext = b"the rain in spain stays mainly in the plain"
    >>> score_english_text_chi_squared(plaintext) < score_english_text_chi_squared(repeating_key_xor(plaintext, b"\\x01"))
    True
    >>> score_english_text_chi_squared(b"Hello") == score_english_text_chi_squared(b"hello")
    True
    >>> score_english_text_chi_squared(plaintext) == score_english_text_chi_squared(repeating_key_xor(plaintext, b" "))
    True
    """
    lowered = text.lower()
    observed = {c: lowered.count(ord(c)) for c in string.ascii_lowercase}
    effective_length = sum(observed.values())
    if effective_length == 0:
        return inf

    score = 0.0
    for c in string.ascii_lowercase:
        score += chi_squared(observed[c], frequencies[c] * effective_length)
    return score


def count_unreadable(text: bytes) -> int:
    """
    >>> count_unreadable(b"Hello, world!\\n")
    0
    >>> count_unreadable("It\\u2019s".encode())
    3
    """
    return sum(1 for b in text if b not in READABLE_BYTES)


def is_readable(text: bytes) -> bool:
    """
    >>> is_readable(b"Hello, world!\\n")
    True
    >>> is_readable(b"\\x00oops")
    False
    >>> is_readable(b"page\\x0cbreak")
    False
    """
    return count_unreadable(text) == 0


def score_english_text_penalising_unreadable(text: bytes,
                                             frequencies: Dict[str, float] = en_char_frequencies,
                                             penalty: float = UNREADABLE_BYTE_PENALTY) -> float:
    """
    score_english_text_chi_squared plus a penalty for every byte that doesn't show up in text

    Flipping bit 0x20 of a key turns every space into a NUL, so unlike the plain chi squared score this tells
    the right key from its case-flipped twin. A curly quote or a form feed in the real plaintext costs the
    right key a little but doesn't rule it out

    >>> plaintext = b"the rain in spain stays mainly in the plain"
    >>> score_english_text_penalising_unreadable(plaintext) == score_english_text_chi_squared(plaintext)
    True
    >>> flipped = repeating_key_xor(plaintext, b" ")
    >>> score_english_text_penalising_unreadable(plaintext) < score_english_text_penalising_unreadable(flipped)
    True
    """
    return score_english_text_chi_squared(text, frequencies) + penalty * count_unreadable(text)


@dataclass
class ScoredDecryptionResult:
    plaintext: bytes
    ciphertext: bytes
    key: int
    score: float

    def __repr__(self):
        return f"ScoredDecryptionResult(plaintext={self.plaintext}, ciphertext={self.ciphertext}, key={self.key:#02x}, score={self.score:.2f})"


def break_single_xor_cipher(ciphertexts: List[bytes],
                            keyspace: bytes = PRINTABLE_KEYSPACE,
                            scoring_function: Callable = score_english_text_chi_squared,
                            readable_only: bool = True) -> List[ScoredDecryptionResult]:
    """
    Use character frequency analysis to brute-force single-byte XOR ciphertexts

    Every ciphertext is decrypted with every key in keyspace. Unless readable_only is False, decryptions
    containing bytes that never show up in text are thrown away before scoring. Return ScoredDecryptionResult's
    sorted best (lowest scoring) first. Equal scores keep the keyspace order

    >>> ciphertext = bytes.fromhex("1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736")
    >>> break_single_xor_cipher([ciphertext])[0].plaintext
    b"Cooking MC's like a pound of bacon"

    >>> break_single_xor_cipher([bytes(range(0x80, 0x90))])
    []
    >>> len(break_single_xor_cipher([bytes(range(0x80, 0x90))], readable_only=False)) == len(PRINTABLE_KEYSPACE)
    True
    """
    decryptions: List[ScoredDecryptionResult] = []

    for ciphertext in ciphertexts:
        for k in keyspace:
            plaintext = repeating_key_xor(ciphertext, bytes([k]))
            if readable_only and not is_readable(plaintext):
                continue
            decryptions.append(ScoredDecryptionResult(plaintext=plaintext,
                                                      ciphertext=ciphertext,
                                                      key=k,
                                                      score=scoring_function(plaintext)))

    return sorted(decryptions, key=lambda x: x.score)


def break_single_byte_xor_key(ciphertext: bytes,
                              keyspace: bytes = PRINTABLE_KEYSPACE,
                              scoring_function: Callable = score_english_text_penalising_unreadable) -> int:
    """
    Return the key byte which turns ciphertext into the most English-like text. Every key in keyspace is scored,
    so a plaintext with the odd non-ASCII or control byte in it still gives up its key

    >>> ciphertext = bytes.fromhex("1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736")
    >>> chr(break_single_byte_xor_key(ciphertext))
    'X'

    >>> sentence = b"Cooking MC's like a pound of bacon"
    >>> all(break_single_byte_xor_key(repeating_key_xor(sentence, bytes([k]))) == k for k in PRINTABLE_KEYSPACE)
    True
    >>> curly = "Cooking MC\\u2019s like a pound of bacon".encode()
    >>> chr(break_single_byte_xor_key(repeating_key_xor(curly, b"x")))
    'x'

    >>> break_single_byte_xor_key(b"\\x00", keyspace=b"")
    Traceback (most recent call last):
    ValueError: keyspace must not be empty
    """
    if not keyspace:
        raise ValueError("keyspace must not be empty")

    results = break_single_xor_cipher([ciphertext], keyspace=keyspace, scoring_function=scoring_function,
                                      readable_only=False)

    best = results[0]
    log.debug("Best key %#04x with score %.2f out of %d candidates", best.key, best.score, len(results))
    return best.key


def normalized_block_distance(ciphertext: bytes, key_length: int, block_count: int = DEFAULT_BLOCK_COUNT) -> float:
    """
    Chop the start of ciphertext into block_count blocks of key_length bytes and return the average bitwise
    hamming distance between neighbouring blocks, per byte

    >>> normalized_block_distance(b"ABC" * 11, 3)
    0.0
    >>> normalized_block_distance(b"ABC" * 11, 1)
    1.4

    >>> normalized_block_distance(b"ABC" * 11, 4)
    Traceback (most recent call last):
    util.InsufficientDataError: Need 44 bytes to compare 11 blocks of length 4, got 33
    """
    if key_length < 1:
        raise ValueError("key_length must be at least 1")
    if block_count < 2:
        raise ValueError("block_count must be at least 2")

    needed = block_count * key_length
    if len(ciphertext) < needed:
        raise InsufficientDataError(f"Need {needed} bytes to compare {block_count} blocks of length {key_length}, "
                                    f"got {len(ciphertext)}")

    blocks = list(chunkify(ciphertext[:needed], key_length))
    distance = 0
    for a, b in zip(blocks, blocks[1:]):
        distance += bitwise_hamming_distance(a, b)
    return distance / (block_count - 1) / key_length


def guess_repeating_xor_key_length(ciphertext: bytes,
                                   max_key_length: int = DEFAULT_MAX_KEY_LENGTH,
                                   block_count: int = DEFAULT_BLOCK_COUNT) -> int:
    """
    Given a ciphertext which is the result of applying repeating XOR with an unknown key of unknown length, guess
    the length of the key. Blocks which were XOR'd with the key in the same position keep the bit differences of
    the underlying text, which are smaller than those between differently keyed blocks. Every length up to
    max_key_length for which the ciphertext holds block_count blocks is tried, and the first length with the
    smallest normalized_block_distance wins

    Multiples of the key length look just as good, so keep max_key_length below twice the expected length

    >>> guess_repeating_xor_key_length(b"ABC" * 11)
    3
    >>> guess_repeating_xor_key_length(b"A" * 22)
    1

    This is statistics, not a guarantee, so ask for most rather than all of these to be right

    >>> plaintext = open("data/alice.txt", "rb").read()
    >>> keys = [b"Off With Their Heads!", b"Who Stole the Tarts, Knave?", b"We're all mad here, Alice.",
    ...         b"Terminator X: Bring the noise", b"Down the Rabbit-Hole, Chapter I"]
    >>> guesses = [guess_repeating_xor_key_length(repeating_key_xor(plaintext, key)) for key in keys]
    >>> sum(guess == len(key) for guess, key in zip(guesses, keys)) >= 4
    True

    >>> guess_repeating_xor_key_length(b"too short")
    Traceback (most recent call last):
    util.InsufficientDataError: Ciphertext of 9 bytes is too short to compare 11 blocks
    """
    if max_key_length < 1:
        raise ValueError("max_key_length must be at least 1")

    best_key_length: Optional[int] = None
    best_distance = inf

    for key_length in range(1, max_key_length + 1):
        try:
            distance = normalized_block_distance(ciphertext, key_length, block_count)
        except InsufficientDataError as e:
            # Longer keys need even more data
            log.debug("Stopping at key length %d: %s", key_length, e)
            break
        log.debug("Key length %d has normalized distance %.4f", key_length, distance)
        if distance < best_distance:
            best_key_length = key_length
            best_distance = distance

    if best_key_length is None:
        raise InsufficientDataError(f"Ciphertext of {len(ciphertext)} bytes is too short to compare "
                                    f"{block_count} blocks")

    return best_key_length


def transpose_blocks(ciphertext: bytes, key_length: int) -> List[bytes]:
    """
    Chop ciphertext into key_length sized blocks and return key_length buffers, the n'th of which holds the n'th
    byte of every block. A short final block just leaves the later buffers one byte shorter

    >>> transpose_blocks(b"ABCDEFG", 3)
    [b'ADG', b'BE', b'CF']
    >>> transpose_blocks(b"AB", 3)
    [b'A', b'B', b'']
    """
    if key_length < 1:
        raise ValueError("key_length must be at least 1")
    return [ciphertext[i::key_length] for i in range(key_length)]


def break_repeating_key_xor(ciphertext: bytes,
                            max_key_length: int = DEFAULT_MAX_KEY_LENGTH,
                            key_length: Optional[int] = None,
                            block_count: int = DEFAULT_BLOCK_COUNT,
                            keyspace: bytes = PRINTABLE_KEYSPACE) -> Tuple[bytes, bytes]:
    """
    Return the best-guess key and the plaintext for a ciphertext which has been encrypted using repeating key XOR

    @param ciphertext: The encrypted ciphertext
    @param max_key_length: The longest key length to consider when guessing it
    @param key_length: (Optional) the key length, if known. If unknown, inter-block hamming distance will be used to derive it
    @param block_count: How many blocks to compare per candidate key length
    @param keyspace: The bytes the key may be made of

    >>> plaintext = open("data/alice.txt", "rb").read()
    >>> key, recovered = break_repeating_key_xor(repeating_key_xor(plaintext, b"Terminator X: Bring the noise"))
    >>> key
    b'Terminator X: Bring the noise'
    >>> recovered == plaintext
    True

    >>> curly = plaintext.replace(b"'", "\\u2019".encode())
    >>> key, recovered = break_repeating_key_xor(repeating_key_xor(curly, b"Terminator X: Bring the noise"))
    >>> key
    b'Terminator X: Bring the noise'
    >>> recovered == curly
    True

    >>> key, recovered = break_repeating_key_xor(repeating_key_xor(plaintext, b"Mad Hatter"), key_length=10)
    >>> key
    b'Mad Hatter'
    """
    if key_length is None:
        key_length = guess_repeating_xor_key_length(ciphertext, max_key_length, block_count)
        log.info("Guessed key length %d", key_length)

    key: List[int] = []

    for i, column in enumerate(transpose_blocks(ciphertext, key_length)):
        key.append(break_single_byte_xor_key(column, keyspace))
        log.debug("Key byte %d is %#04x", i, key[-1])

    recovered_key = bytes(key)
    return recovered_key, repeating_key_xor(ciphertext, recovered_key)
