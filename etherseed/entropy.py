# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

import secrets
from abc import ABC, abstractmethod

from . import constants
from .i18n import _
from .logging import get_logger


_logger = get_logger(__name__)


class InsufficientRandomness(Exception):
    def __str__(self):
        return _("The system random number generator could not provide enough entropy")


def check_strength(strength_bits: int) -> int:
    if strength_bits not in constants.MNEMONIC_ENTROPY_BITS:
        raise ValueError(f"unsupported entropy strength: {strength_bits!r} bits. "
                         f"expected one of {constants.MNEMONIC_ENTROPY_BITS}")
    return strength_bits // 8


class EntropySource(ABC):
    """Provider of seed entropy.

    generate() returns a fresh bytearray that the caller owns,
    and is expected to wipe (util.wipe_bytes) once done with it.
    """

    @abstractmethod
    def generate(self, strength_bits: int) -> bytearray:
        pass


class SystemEntropySource(EntropySource):
    """Operating system CSPRNG. Never falls back to a weaker generator."""

    def generate(self, strength_bits: int) -> bytearray:
        num_bytes = check_strength(strength_bits)
        try:
            data = bytearray(secrets.token_bytes(num_bytes))
        except (OSError, NotImplementedError) as e:
            raise InsufficientRandomness() from e
        if len(data) != num_bytes:
            raise InsufficientRandomness()
        _logger.debug(f"generated {strength_bits} bits of entropy")
        return data


class FixedEntropySource(EntropySource):
    """Hands out a known entropy value. Used for restoring and for test vectors."""

    def __init__(self, entropy: bytes):
        check_strength(len(entropy) * 8)
        self._entropy = bytes(entropy)

    def generate(self, strength_bits: int) -> bytearray:
        num_bytes = check_strength(strength_bits)
        if len(self._entropy) != num_bytes:
            raise InsufficientRandomness()
        return bytearray(self._entropy)
