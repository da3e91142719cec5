# Copyright (C) 2018 The Electrum developers
# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""BIP32 hierarchical deterministic keys on secp256k1."""

import hashlib
from typing import List, Tuple, NamedTuple, Union, Iterable, Sequence, Optional

from . import constants
from . import ecc
from .crypto import hash_160, hmac_oneshot
from .base58 import EncodeBase58Check, DecodeBase58Check, BaseDecodeError
from .logging import get_logger


_logger = get_logger(__name__)

BIP32_PRIME = 0x80000000
UINT32_MAX = (1 << 32) - 1
MAX_DEPTH = 255
XKEY_LEN = 78

BIP32_HARDENED_CHAR = "'"  # written in str paths; "h" is accepted when parsing


class BIP32Error(Exception): pass


class PrivateKeyRequired(BIP32Error):
    """Hardened derivation, or xprv serialization, of a public-only node."""


class InvalidMasterKey(BIP32Error):
    """The seed hashes to a master secret outside [1, n-1]."""


class InvalidExtendedKey(BIP32Error): pass


class InvalidChildKey(ecc.InvalidECPointException):
    """I_L >= n, or the child key is zero / the point at infinity.
    Never escapes CKD_priv and CKD_pub: the next index is tried instead.
    """


class InvalidPathSyntax(ValueError): pass


def _ser32(i: int) -> bytes:
    if not isinstance(i, int):
        raise TypeError(f"bip32 child index must be int: {i!r}")
    if not (0 <= i <= UINT32_MAX):
        raise ValueError(f"bip32 child index out of range: {i}")
    return i.to_bytes(4, byteorder="big")


def protect_against_invalid_ecpoint(func):
    """Retries func with the next child index on an invalid child key.
    The wrapped function returns its result with the index actually used appended.
    """
    def func_wrapper(*args):
        *head, child_index = args
        hardened = child_index & BIP32_PRIME
        while True:
            try:
                return func(*head, child_index) + (child_index,)
            except ecc.InvalidECPointException:
                _logger.warning(f"bip32: invalid child key at index {child_index}, skipping to the next index")
                child_index += 1
                if child_index & BIP32_PRIME != hardened:
                    raise OverflowError("no valid child key left below the hardened boundary")
    return func_wrapper


@protect_against_invalid_ecpoint
def CKD_priv(parent_privkey: bytes, parent_chaincode: bytes, child_index: int) -> Tuple[bytes, bytes, int]:
    """Private parent key -> private child key.
    Hardened children hash the parent secret, others the parent public key,
    so only the latter can be followed from an xpub.
    """
    index_bytes = _ser32(child_index)
    if child_index & BIP32_PRIME:
        data = b'\x00' + bytes(parent_privkey) + index_bytes
    else:
        data = ecc.ECPrivkey(parent_privkey).get_public_key_bytes(compressed=True) + index_bytes
    I = hmac_oneshot(parent_chaincode, data, hashlib.sha512)
    il = ecc.string_to_number(I[:32])
    k = (il + ecc.string_to_number(parent_privkey)) % ecc.CURVE_ORDER
    if il >= ecc.CURVE_ORDER or k == 0:
        raise InvalidChildKey()
    return k.to_bytes(32, byteorder='big'), I[32:]


@protect_against_invalid_ecpoint
def CKD_pub(parent_pubkey: bytes, parent_chaincode: bytes, child_index: int) -> Tuple[bytes, bytes, int]:
    """Public parent key -> public child key. Non-hardened indices only."""
    index_bytes = _ser32(child_index)
    if child_index & BIP32_PRIME:
        raise PrivateKeyRequired('not possible to derive hardened child from parent pubkey')
    I = hmac_oneshot(parent_chaincode, parent_pubkey + index_bytes, hashlib.sha512)
    if ecc.string_to_number(I[:32]) >= ecc.CURVE_ORDER:
        raise InvalidChildKey()
    try:
        point = ecc.ECPrivkey(I[:32]) + ecc.ECPubkey(parent_pubkey)
    except ecc.InvalidECPointException as e:
        # I_L == 0, or the sum is the point at infinity
        raise InvalidChildKey() from e
    return point.get_public_key_bytes(compressed=True), I[32:]


class BIP32Node(NamedTuple):
    eckey: Union[ecc.ECPubkey, ecc.ECPrivkey]
    chaincode: bytes
    depth: int = 0
    fingerprint: bytes = bytes(4)  # of the *parent*, as serialized
    child_number: bytes = bytes(4)

    @classmethod
    def from_rootseed(cls, seed: bytes) -> 'BIP32Node':
        if not (16 <= len(seed) <= 64):
            raise ValueError(f'unexpected seed length: {len(seed)} bytes')
        I = hmac_oneshot(b"Bitcoin seed", seed, hashlib.sha512)
        if not ecc.is_secret_within_curve_range(I[:32]):
            raise InvalidMasterKey('master secret not within curve order')
        return cls(eckey=ecc.ECPrivkey(I[:32]), chaincode=I[32:])

    @classmethod
    def from_xkey(cls, xkey: str) -> 'BIP32Node':
        try:
            data = DecodeBase58Check(xkey)
        except BaseDecodeError as e:
            raise InvalidExtendedKey(f'Invalid extended key encoding: {e}') from e
        if len(data) != XKEY_LEN:
            raise InvalidExtendedKey(f'Invalid length for extended key: {len(data)}')
        header = int.from_bytes(data[:4], byteorder='big')
        depth, fingerprint, child_number = data[4], data[5:9], data[9:13]
        chaincode, keydata = data[13:45], data[45:]
        if depth == 0 and (fingerprint != bytes(4) or child_number != bytes(4)):
            raise InvalidExtendedKey('zero depth with non-zero parent fingerprint or child number')
        try:
            if header == constants.XPRV_HEADER:
                if keydata[0] != 0:
                    raise InvalidExtendedKey('private key must be prefixed with 0x00')
                eckey = ecc.ECPrivkey(keydata[1:])
            elif header == constants.XPUB_HEADER:
                eckey = ecc.ECPubkey(keydata)
            else:
                raise InvalidExtendedKey(f'Invalid extended key format: {hex(header)}')
        except ecc.InvalidECPointException as e:
            raise InvalidExtendedKey(f'Invalid key in extended key: {e}') from e
        return cls(eckey=eckey, chaincode=chaincode, depth=depth,
                   fingerprint=fingerprint, child_number=child_number)

    def _serialize(self, header: int, keydata: bytes) -> str:
        payload = b''.join((
            header.to_bytes(4, byteorder="big"),
            bytes([self.depth]),
            self.fingerprint,
            self.child_number,
            self.chaincode,
            keydata,
        ))
        assert len(payload) == XKEY_LEN, f"unexpected xkey payload len {len(payload)}"
        return EncodeBase58Check(payload)

    def to_xprv(self) -> str:
        if not self.is_private():
            raise PrivateKeyRequired("cannot serialize as xprv; private key missing")
        return self._serialize(constants.XPRV_HEADER, b'\x00' + self.eckey.get_secret_bytes())

    def to_xpub(self) -> str:
        return self._serialize(constants.XPUB_HEADER, self.eckey.get_public_key_bytes(compressed=True))

    def is_private(self) -> bool:
        return isinstance(self.eckey, ecc.ECPrivkey)

    def convert_to_public(self) -> 'BIP32Node':
        if not self.is_private():
            return self
        return self._replace(eckey=ecc.ECPubkey(self.eckey.get_public_key_bytes()))

    def get_secret_bytes(self) -> bytearray:
        """Returns a fresh copy of the secret, owned (and to be wiped) by the caller."""
        if not self.is_private():
            raise PrivateKeyRequired("public-only node has no secret")
        return bytearray(self.eckey.get_secret_bytes())

    def calc_fingerprint_of_this_node(self) -> bytes:
        """First 4 bytes of HASH160(pubkey); children carry it as their fingerprint."""
        return hash_160(self.eckey.get_public_key_bytes(compressed=True))[:4]

    def derive_child(self, child_index: int) -> 'BIP32Node':
        if self.is_private():
            return self.subkey_at_private_derivation([child_index])
        return self.subkey_at_public_derivation([child_index])

    def subkey_at_private_derivation(self, path: Union[str, Iterable[int]]) -> 'BIP32Node':
        if not self.is_private():
            raise PrivateKeyRequired("cannot do bip32 private derivation; private key missing")
        node = self
        for child_index in self._checked_path(path):
            privkey, chaincode, child_index = CKD_priv(node.eckey.get_secret_bytes(), node.chaincode, child_index)
            node = BIP32Node(eckey=ecc.ECPrivkey(privkey),
                             chaincode=chaincode,
                             depth=node.depth + 1,
                             fingerprint=node.calc_fingerprint_of_this_node(),
                             child_number=_ser32(child_index))
        return node

    def subkey_at_public_derivation(self, path: Union[str, Iterable[int]]) -> 'BIP32Node':
        node = self.convert_to_public()
        for child_index in self._checked_path(path):
            pubkey, chaincode, child_index = CKD_pub(node.eckey.get_public_key_bytes(compressed=True),
                                                     node.chaincode, child_index)
            node = BIP32Node(eckey=ecc.ECPubkey(pubkey),
                             chaincode=chaincode,
                             depth=node.depth + 1,
                             fingerprint=node.calc_fingerprint_of_this_node(),
                             child_number=_ser32(child_index))
        return node

    def _checked_path(self, path: Union[str, Iterable[int]]) -> List[int]:
        if path is None:
            raise InvalidPathSyntax("derivation path must not be None")
        if isinstance(path, str):
            path = convert_bip32_strpath_to_intpath(path)
        path = list(path)
        if self.depth + len(path) > MAX_DEPTH:
            raise ValueError("bip32 derivation too deep")
        return path

    def __repr__(self):
        # never show the secret
        return (f"<BIP32Node depth={self.depth} private={self.is_private()} "
                f"pubkey={self.eckey.get_public_key_hex()}>")


def convert_bip32_strpath_to_intpath(n: str) -> List[int]:
    """"m/0/1'/2h" -> [0, 0x80000001, 0x80000002]

    The leading "m" is optional, and empty levels ("m//0/") are skipped.
    """
    if not isinstance(n, str):
        raise InvalidPathSyntax(f"bip32 path must be a str, not {type(n)}")
    levels = n.split('/')
    if levels[0] == 'm':
        levels = levels[1:]
    path = []
    for level in filter(None, levels):
        hardened = level[-1] in ("'", "h")
        digits = level[:-1] if hardened else level
        # isdigit() alone lets through non-ascii digits
        if not (digits.isascii() and digits.isdigit()):
            raise InvalidPathSyntax(f"failed to parse bip32 path: invalid level {level!r}")
        child_index = int(digits)
        if child_index >= BIP32_PRIME:
            raise InvalidPathSyntax(f"bip32 path child index too large: {child_index} >= {BIP32_PRIME}")
        path.append(child_index | BIP32_PRIME if hardened else child_index)
    return path


def convert_bip32_intpath_to_strpath(path: Sequence[int], *, hardened_char=BIP32_HARDENED_CHAR) -> str:
    assert isinstance(hardened_char, str) and len(hardened_char) == 1, hardened_char
    levels = ["m"]
    for child_index in path:
        _ser32(child_index)
        if child_index & BIP32_PRIME:
            levels.append(f"{child_index ^ BIP32_PRIME}{hardened_char}")
        else:
            levels.append(str(child_index))
    return "/".join(levels)


def is_bip32_derivation(s: str) -> bool:
    if not (s == 'm' or s.startswith('m/')):
        return False
    try:
        convert_bip32_strpath_to_intpath(s)
    except InvalidPathSyntax:
        return False
    return True


def normalize_bip32_derivation(s: Optional[str], *, hardened_char=BIP32_HARDENED_CHAR) -> Optional[str]:
    if s is None:
        return None
    if not is_bip32_derivation(s):
        raise InvalidPathSyntax(f"invalid bip32 derivation: {s}")
    return convert_bip32_intpath_to_strpath(convert_bip32_strpath_to_intpath(s),
                                            hardened_char=hardened_char)
