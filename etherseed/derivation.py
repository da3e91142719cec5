# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""BIP44 paths, and walking them down from a BIP32 root."""

from typing import Union, Sequence, List

import attr

from . import constants
from .bip32 import (BIP32Node, BIP32_PRIME, InvalidPathSyntax,
                    convert_bip32_strpath_to_intpath, convert_bip32_intpath_to_strpath)
from .util import profiler
from .logging import get_logger


_logger = get_logger(__name__)

NUM_LEVELS = 5
NUM_HARDENED_LEVELS = 3


def _validate_level(instance, attribute, value):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{attribute.name} must be int, not {type(value)}")
    if not (0 <= value < BIP32_PRIME):
        raise InvalidPathSyntax(f"{attribute.name} out of range: {value}")


@attr.s(frozen=True, repr=False)
class DerivationPath:
    """purpose'/coin_type'/account'/change/address_index

    Fields hold the plain indices; the first three levels are hardened
    when the path is walked.
    """
    purpose = attr.ib(type=int, validator=_validate_level)
    coin_type = attr.ib(type=int, validator=_validate_level)
    account = attr.ib(type=int, validator=_validate_level)
    change = attr.ib(type=int, validator=_validate_level)
    address_index = attr.ib(type=int, validator=_validate_level)

    def __iter__(self):
        return iter(attr.astuple(self))

    @classmethod
    def from_str(cls, s: str) -> 'DerivationPath':
        if not isinstance(s, str) or not (s.startswith('m/')):
            raise InvalidPathSyntax(f"derivation path must start with 'm/': {s!r}")
        ints = convert_bip32_strpath_to_intpath(s)
        if len(ints) != NUM_LEVELS:
            raise InvalidPathSyntax(f"expected {NUM_LEVELS} levels, got {len(ints)}: {s!r}")
        for level, child_index in enumerate(ints):
            is_hardened = bool(child_index & BIP32_PRIME)
            if is_hardened != (level < NUM_HARDENED_LEVELS):
                raise InvalidPathSyntax(
                    f"level {level} must {'' if level < NUM_HARDENED_LEVELS else 'not '}be hardened: {s!r}")
        return cls(*[child_index & ~BIP32_PRIME for child_index in ints])

    def to_intpath(self) -> List[int]:
        return [index | BIP32_PRIME if level < NUM_HARDENED_LEVELS else index
                for level, index in enumerate(self)]

    def to_str(self) -> str:
        return convert_bip32_intpath_to_strpath(self.to_intpath(), hardened_char="'")

    def __str__(self):
        return self.to_str()

    def __repr__(self):
        return f"<DerivationPath {self.to_str()}>"


ETHEREUM_DERIVATION_PATH = DerivationPath.from_str(constants.DEFAULT_DERIVATION_PATH)


def bip44_derivation(account: int, change: int = 0, address_index: int = 0, *,
                     coin_type: int = constants.COIN_TYPE_ETH) -> DerivationPath:
    return DerivationPath(constants.BIP44_PURPOSE, coin_type, account, change, address_index)


def _to_intpath(path: Union[DerivationPath, str, Sequence[int]]) -> List[int]:
    if isinstance(path, DerivationPath):
        return path.to_intpath()
    if isinstance(path, str):
        return convert_bip32_strpath_to_intpath(path)
    return list(path)


def derive(root: BIP32Node, path: Union[DerivationPath, str, Sequence[int]]) -> BIP32Node:
    intpath = _to_intpath(path)
    node = root
    for child_index in intpath:
        node = node.derive_child(child_index)
    return node


@profiler(min_threshold=1)
def derive_private_key(seed: bytes, path: Union[DerivationPath, str, Sequence[int]] = ETHEREUM_DERIVATION_PATH) -> bytearray:
    """Returns the leaf secret for path, in a buffer the caller owns and should wipe."""
    root = BIP32Node.from_rootseed(seed)
    leaf = derive(root, path)
    _logger.debug(f"derived key at depth {leaf.depth}")
    return leaf.get_secret_bytes()
