#!/usr/bin/env python
#
# Electrum - lightweight Bitcoin client
# Copyright (C) 2014 Thomas Voegtlin
# Copyright (C) 2026 The etherseed developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
import hashlib
import unicodedata
from typing import Sequence, Dict, Iterator, Optional, Tuple, List
from types import MappingProxyType

from . import constants
from .util import resource_path, wipe_bytes
from .crypto import sha256
from .entropy import EntropySource, SystemEntropySource, check_strength
from .i18n import _
from .logging import Logger


BITS_PER_WORD = 11
PBKDF2_ROUNDS = 2048


class InvalidMnemonic(ValueError):
    pass


class InvalidWordCount(InvalidMnemonic):
    def __init__(self, count: int):
        InvalidMnemonic.__init__(self, count)
        self.count = count

    def __str__(self):
        return _("Invalid number of words: {}. Expected one of {}.").format(
            self.count, ", ".join(map(str, constants.MNEMONIC_WORD_COUNTS)))


class InvalidWord(InvalidMnemonic):
    """Word not in the wordlist. position is 0-based."""
    def __init__(self, word: str, position: int):
        InvalidMnemonic.__init__(self, position)
        self.word = word
        self.position = position

    def __str__(self):
        # the word itself is part of a secret, only report where it is
        return _("Unknown word at position {}").format(self.position + 1)


class InvalidChecksum(InvalidMnemonic):
    def __str__(self):
        return _("Invalid seed phrase checksum")


def normalize_mnemonic(mnemonic: str) -> str:
    """NFKD, and whitespace collapsed to single spaces. Case is left alone."""
    return unicodedata.normalize('NFKD', ' '.join(mnemonic.split()))


def normalize_passphrase(passphrase: Optional[str]) -> str:
    return unicodedata.normalize('NFKD', passphrase or '')


def is_matching_seed(*, seed: str, seed_again: str) -> bool:
    """Whether the phrase typed back on the confirmation screen is the same
    as the one shown. Only whitespace may differ.
    """
    return seed.split() == seed_again.split()


def _parse_wordlist(text: str) -> List[str]:
    # one word per line; '#' starts a comment
    words = []
    for line in unicodedata.normalize('NFKD', text).splitlines():
        word = line.partition('#')[0].strip()
        if not word:
            continue
        assert ' ' not in word, f"wordlist line with more than one word: {word!r}"
        words.append(word)
    return words


class Wordlist(tuple):
    """The 2048 words, with O(1) word -> index lookup."""

    _cache = {}  # type: Dict[str, Wordlist]

    def __init__(self, words: Sequence[str]):
        super().__init__()
        self._positions = MappingProxyType({word: pos for pos, word in enumerate(self)})

    def index(self, word: str, start=None, stop=None) -> int:
        if word not in self._positions:
            raise ValueError("word not in wordlist")
        return self._positions[word]

    def __contains__(self, word: str) -> bool:
        return word in self._positions

    @classmethod
    def from_file(cls, filename: str) -> 'Wordlist':
        path = resource_path('wordlist', filename)
        wordlist = cls._cache.get(path)
        if wordlist is None:
            with open(path, 'r', encoding='utf-8') as f:
                words = _parse_wordlist(f.read())
            assert len(words) == 2 ** BITS_PER_WORD, f"wordlist {filename} has {len(words)} words"
            wordlist = cls._cache[path] = cls(words)
        return wordlist


class Mnemonic(Logger):
    """BIP39 mnemonic codec, English wordlist."""

    LOGGING_SHORTCUT = 'M'

    def __init__(self, lang: str = None):
        Logger.__init__(self)
        lang = lang or 'en'
        if lang[0:2] != 'en':
            raise ValueError(f"unsupported wordlist language: {lang!r}")
        self.wordlist = Wordlist.from_file('english.txt')
        self.logger.debug(f"wordlist has {len(self.wordlist)} words")

    def entropy_to_mnemonic(self, entropy: bytes) -> str:
        num_bytes = len(entropy)
        if num_bytes * 8 not in constants.MNEMONIC_ENTROPY_BITS:
            raise ValueError(f"unexpected entropy size: {num_bytes} bytes")
        checksum_length = num_bytes * 8 // 32  # num bits
        checksum = sha256(bytes(entropy))[0] >> (8 - checksum_length)
        i = (int.from_bytes(entropy, byteorder='big') << checksum_length) | checksum
        num_words = (num_bytes * 8 + checksum_length) // BITS_PER_WORD
        words = []
        for _i in range(num_words):
            words.append(self.wordlist[i & (2 ** BITS_PER_WORD - 1)])
            i >>= BITS_PER_WORD
        words.reverse()
        return ' '.join(words)

    def _words_to_int(self, words: List[str]) -> int:
        i = 0
        for pos, w in enumerate(words):
            try:
                k = self.wordlist.index(w)
            except ValueError:
                raise InvalidWord(w, pos) from None
            i = (i << BITS_PER_WORD) | k
        return i

    def mnemonic_to_entropy(self, mnemonic: str) -> bytes:
        words = normalize_mnemonic(mnemonic).split()
        # word membership first, then the count, as a user would type them
        i = self._words_to_int(words)
        words_len = len(words)
        if words_len not in constants.MNEMONIC_WORD_COUNTS:
            raise InvalidWordCount(words_len)
        checksum_length = BITS_PER_WORD * words_len // 33  # num bits
        entropy_length = 32 * checksum_length  # num bits
        entropy_bytes = (i >> checksum_length).to_bytes(entropy_length // 8, byteorder='big')
        checksum = i & (2 ** checksum_length - 1)
        calculated_checksum = sha256(entropy_bytes)[0] >> (8 - checksum_length)
        if checksum != calculated_checksum:
            raise InvalidChecksum()
        return entropy_bytes

    def is_checksum_valid(self, mnemonic: str) -> Tuple[bool, bool]:
        """Returns tuple (is_checksum_valid, is_wordlist_valid)"""
        try:
            self.mnemonic_to_entropy(mnemonic)
        except InvalidWord:
            return False, False
        except (InvalidWordCount, InvalidChecksum):
            return False, True
        return True, True

    @classmethod
    def mnemonic_to_seed(cls, mnemonic: str, passphrase: Optional[str] = '') -> bytes:
        mnemonic = normalize_mnemonic(mnemonic)
        passphrase = normalize_passphrase(passphrase)
        return hashlib.pbkdf2_hmac('sha512', mnemonic.encode('utf-8'),
                                   b'mnemonic' + passphrase.encode('utf-8'), iterations=PBKDF2_ROUNDS)

    def get_suggestions(self, prefix: str) -> Iterator[str]:
        for w in self.wordlist:
            if w.startswith(prefix):
                yield w

    def make_seed(self, *, num_bits: int = None, entropy_source: EntropySource = None) -> str:
        if num_bits is None:
            num_bits = 128
        check_strength(num_bits)
        if entropy_source is None:
            entropy_source = SystemEntropySource()
        self.logger.info(f"make_seed. entropy: {num_bits} bits")
        entropy = entropy_source.generate(num_bits)
        try:
            seed = self.entropy_to_mnemonic(entropy)
        finally:
            wipe_bytes(entropy)
        self.logger.info(f'{len(seed.split())} words')
        return seed
