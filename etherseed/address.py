# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""Account addresses: keccak256 of the uncompressed public key, EIP-55 checksummed."""

import re
from typing import Union

from . import ecc
from .crypto import keccak256


ADDRESS_RE = re.compile(r'(0x)?[0-9a-fA-F]{40}')


class InvalidAddress(ValueError): pass


def pubkey_to_address_bytes(pubkey: Union[bytes, ecc.ECPubkey]) -> bytes:
    if not isinstance(pubkey, ecc.ECPubkey):
        pubkey = ecc.ECPubkey(pubkey)
    # drop the 0x04 prefix
    raw = pubkey.get_public_key_bytes(compressed=False)[1:]
    return keccak256(raw)[-20:]


def privkey_to_address_bytes(privkey: bytes) -> bytes:
    return pubkey_to_address_bytes(ecc.ECPrivkey(privkey))


def to_checksum_address(addr: Union[str, bytes]) -> str:
    """EIP-55 mixed-case encoding, with 0x prefix."""
    if isinstance(addr, (bytes, bytearray)):
        if len(addr) != 20:
            raise InvalidAddress(f'unexpected address length: {len(addr)}')
        hex_addr = addr.hex()
    else:
        if not ADDRESS_RE.fullmatch(addr):
            raise InvalidAddress(f'not a hex address: {addr!r}')
        hex_addr = addr[-40:].lower()
    digest = keccak256(hex_addr.encode('ascii')).hex()
    return '0x' + ''.join(c.upper() if int(digest[i], 16) >= 8 else c
                          for i, c in enumerate(hex_addr))


def is_address(addr: str) -> bool:
    return isinstance(addr, str) and bool(ADDRESS_RE.fullmatch(addr))


def is_checksum_address(addr: str) -> bool:
    """Returns whether addr is 0x-prefixed and its letter case matches EIP-55."""
    if not is_address(addr):
        return False
    if not addr.startswith('0x'):
        return False
    return to_checksum_address(addr) == addr


def pubkey_to_address(pubkey: Union[bytes, ecc.ECPubkey]) -> str:
    return to_checksum_address(pubkey_to_address_bytes(pubkey))


def privkey_to_address(privkey: bytes) -> str:
    return to_checksum_address(privkey_to_address_bytes(privkey))
