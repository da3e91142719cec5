# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""Password-encrypted private keys, in the version 3 keystore layout:

    {
        "version": 3,
        "id": "<uuid4>",
        "address": "<40 hex chars>",
        "crypto": {
            "cipher": "aes-128-ctr",
            "cipherparams": {"iv": "<32 hex chars>"},
            "ciphertext": "<64 hex chars>",
            "kdf": "scrypt" | "pbkdf2",
            "kdfparams": {...},
            "mac": "<64 hex chars>"
        }
    }

The key is stretched from the password with the kdf, dk[0:16] is the AES key
and keccak256(dk[16:32] + ciphertext) is the MAC. The MAC is checked in
constant time before anything is decrypted.
"""

import asyncio
import functools
import json
import re
import secrets
import uuid
from typing import Optional, Union, Dict, Any, Tuple

import attr

from . import ecc
from .address import privkey_to_address_bytes, to_checksum_address
from .crypto import (aes_ctr_encrypt, aes_ctr_decrypt, keccak256, scrypt, pbkdf2_hmac_sha256,
                     constant_time_compare)
from .i18n import _
from .logging import get_logger
from .simple_config import SimpleConfig, value_or_default
from .util import InvalidPassword, KeystoreFileException, to_bytes, wipe_bytes, profiler
from .version import KEYSTORE_VERSION


_logger = get_logger(__name__)

CIPHER_AES_128_CTR = 'aes-128-ctr'
KDF_SCRYPT = 'scrypt'
KDF_PBKDF2 = 'pbkdf2'
PRF_HMAC_SHA256 = 'hmac-sha256'

DKLEN = 32
SALT_LEN = 32
IV_LEN = 16
MAC_LEN = 32
PRIVKEY_LEN = 32

# anything outside these is refused rather than run
MAX_SALT_LEN = 64
MAX_SCRYPT_N = 1 << 20
MAX_SCRYPT_R = 16
MAX_SCRYPT_P = 16
MAX_SCRYPT_MEMORY = 1 << 30  # bytes, 128 * n * r
MAX_PBKDF2_ITERATIONS = 10_000_000

_HEX_RE = re.compile(r'(?:[0-9a-fA-F]{2})*')


class CorruptKeystore(KeystoreFileException):
    def __init__(self, reason: str = ''):
        KeystoreFileException.__init__(self, reason)
        self.reason = reason

    def __str__(self):
        if self.reason:
            return _("Corrupt keystore: {}").format(self.reason)
        return _("Corrupt keystore")


class KdfParamsError(ValueError):
    """KDF parameters outside of what we are willing to run."""


def hex_to_bytes(arg: Union[bytes, bytearray, str]) -> bytes:
    return bytes(arg) if isinstance(arg, (bytes, bytearray)) else bytes.fromhex(arg)


def _random_salt() -> bytes:
    return secrets.token_bytes(SALT_LEN)


def _is_int(x) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def _check_salt(salt: bytes) -> None:
    if not (1 <= len(salt) <= MAX_SALT_LEN):
        raise KdfParamsError(f"salt length {len(salt)} not in [1, {MAX_SALT_LEN}]")


@attr.s(frozen=True)
class ScryptParams:
    NAME = KDF_SCRYPT

    n = attr.ib(type=int)
    r = attr.ib(type=int)
    p = attr.ib(type=int)
    dklen = attr.ib(type=int, default=DKLEN)
    salt = attr.ib(type=bytes, factory=_random_salt, converter=hex_to_bytes, repr=False)

    def validate(self) -> None:
        for name in ('n', 'r', 'p', 'dklen'):
            if not _is_int(getattr(self, name)):
                raise KdfParamsError(f"scrypt param {name} must be int")
        if not (2 <= self.n <= MAX_SCRYPT_N) or self.n & (self.n - 1):
            raise KdfParamsError(f"scrypt n must be a power of 2 in [2, {MAX_SCRYPT_N}], got {self.n}")
        if not (1 <= self.r <= MAX_SCRYPT_R):
            raise KdfParamsError(f"scrypt r must be in [1, {MAX_SCRYPT_R}], got {self.r}")
        if not (1 <= self.p <= MAX_SCRYPT_P):
            raise KdfParamsError(f"scrypt p must be in [1, {MAX_SCRYPT_P}], got {self.p}")
        if 128 * self.n * self.r > MAX_SCRYPT_MEMORY:
            raise KdfParamsError("scrypt parameters need too much memory")
        if self.dklen != DKLEN:
            raise KdfParamsError(f"dklen must be {DKLEN}, got {self.dklen}")
        _check_salt(self.salt)

    def derive(self, password: bytes) -> bytearray:
        return scrypt(password, salt=self.salt, n=self.n, r=self.r, p=self.p, dklen=self.dklen)

    def to_json_dict(self) -> Dict[str, Any]:
        return {'dklen': self.dklen, 'n': self.n, 'p': self.p, 'r': self.r, 'salt': self.salt.hex()}

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> 'ScryptParams':
        return cls(n=d['n'], r=d['r'], p=d['p'], dklen=d['dklen'], salt=_parse_hex(d['salt'], 'salt'))


@attr.s(frozen=True)
class Pbkdf2Params:
    NAME = KDF_PBKDF2

    c = attr.ib(type=int)
    dklen = attr.ib(type=int, default=DKLEN)
    prf = attr.ib(type=str, default=PRF_HMAC_SHA256)
    salt = attr.ib(type=bytes, factory=_random_salt, converter=hex_to_bytes, repr=False)

    def validate(self) -> None:
        for name in ('c', 'dklen'):
            if not _is_int(getattr(self, name)):
                raise KdfParamsError(f"pbkdf2 param {name} must be int")
        if not (1 <= self.c <= MAX_PBKDF2_ITERATIONS):
            raise KdfParamsError(f"pbkdf2 c must be in [1, {MAX_PBKDF2_ITERATIONS}], got {self.c}")
        if self.prf != PRF_HMAC_SHA256:
            raise KdfParamsError(f"unsupported pbkdf2 prf: {self.prf!r}")
        if self.dklen != DKLEN:
            raise KdfParamsError(f"dklen must be {DKLEN}, got {self.dklen}")
        _check_salt(self.salt)

    def derive(self, password: bytes) -> bytearray:
        return pbkdf2_hmac_sha256(password, salt=self.salt, iterations=self.c, dklen=self.dklen)

    def to_json_dict(self) -> Dict[str, Any]:
        return {'c': self.c, 'dklen': self.dklen, 'prf': self.prf, 'salt': self.salt.hex()}

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> 'Pbkdf2Params':
        return cls(c=d['c'], dklen=d['dklen'], prf=d['prf'], salt=_parse_hex(d['salt'], 'salt'))


KdfParams = Union[ScryptParams, Pbkdf2Params]
_KDF_FROM_NAME = {
    KDF_SCRYPT: ScryptParams,
    KDF_PBKDF2: Pbkdf2Params,
}


def default_kdf_params(config: SimpleConfig = None) -> KdfParams:
    """KDF for new keystores, with a fresh random salt."""
    kdf = value_or_default(config, 'KEYSTORE_KDF')
    if kdf == KDF_SCRYPT:
        return ScryptParams(n=value_or_default(config, 'KEYSTORE_SCRYPT_N'),
                            r=value_or_default(config, 'KEYSTORE_SCRYPT_R'),
                            p=value_or_default(config, 'KEYSTORE_SCRYPT_P'))
    elif kdf == KDF_PBKDF2:
        return Pbkdf2Params(c=value_or_default(config, 'KEYSTORE_PBKDF2_ITERATIONS'))
    raise KdfParamsError(f"unknown kdf: {kdf!r}")


@attr.s(eq=False)
class Keystore:
    """A version 3 keystore record.

    Top-level fields we do not know about are kept in `extra` and written
    back out unchanged.
    """
    crypto = attr.ib(type=dict)
    id = attr.ib(type=str, factory=lambda: str(uuid.uuid4()))
    address = attr.ib(type=Optional[str], default=None)
    version = attr.ib(type=int, default=KEYSTORE_VERSION)
    extra = attr.ib(type=dict, factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = dict(self.extra)
        d['version'] = self.version
        d['id'] = self.id
        if self.address is not None:
            d['address'] = self.address
        d['crypto'] = self.crypto
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Keystore':
        if not isinstance(d, dict):
            raise CorruptKeystore('keystore is not a JSON object')
        d = dict(d)
        # some writers capitalize the crypto section
        if 'crypto' in d:
            crypto = d.pop('crypto')
        elif 'Crypto' in d:
            crypto = d.pop('Crypto')
        else:
            raise CorruptKeystore('missing crypto section')
        if not isinstance(crypto, dict):
            raise CorruptKeystore('crypto section is not an object')
        if 'version' not in d:
            raise CorruptKeystore('missing version')
        version = d.pop('version')
        keystore_id = d.pop('id', None)
        if keystore_id is not None and not isinstance(keystore_id, str):
            raise CorruptKeystore('id is not a string')
        address = d.pop('address', None)
        if address is not None and not isinstance(address, str):
            raise CorruptKeystore('address is not a string')
        return cls(crypto=crypto,
                   id=keystore_id if keystore_id is not None else str(uuid.uuid4()),
                   address=address,
                   version=version,
                   extra=d)

    def to_json(self, *, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=indent is not None)

    @classmethod
    def from_json(cls, s: Union[str, bytes]) -> 'Keystore':
        """Parses a record. Only the JSON structure is looked at here: no key
        stretching is done, and nothing about the password can be learned from
        failures. See decrypt for the checks on the crypto section.
        """
        try:
            d = json.loads(s)
        except (ValueError, TypeError) as e:
            raise CorruptKeystore('not valid JSON') from e
        return cls.from_dict(d)

    def get_address(self) -> Optional[str]:
        """EIP-55 checksummed address, if the record carries a well-formed one."""
        if self.address is None:
            return None
        try:
            return to_checksum_address(self.address)
        except ValueError:
            return None

    def get_kdf_params(self) -> KdfParams:
        return _parse_record(self)[0]


def _parse_hex(value, name: str, *, length: int = None) -> bytes:
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        raise CorruptKeystore(f'{name} is not a hex string')
    b = bytes.fromhex(value)
    if length is not None and len(b) != length:
        raise CorruptKeystore(f'{name} has length {len(b)}, expected {length}')
    return b


def _parse_kdf(crypto: Dict[str, Any]) -> KdfParams:
    kdf_name = crypto.get('kdf')
    kdf_cls = _KDF_FROM_NAME.get(kdf_name) if isinstance(kdf_name, str) else None
    if kdf_cls is None:
        raise CorruptKeystore(f'unsupported kdf: {kdf_name!r}')
    kdfparams = crypto.get('kdfparams')
    if not isinstance(kdfparams, dict):
        raise CorruptKeystore('kdfparams is not an object')
    try:
        params = kdf_cls.from_json_dict(kdfparams)
        params.validate()
    except KeyError as e:
        raise CorruptKeystore(f'missing kdf parameter {e}') from None
    except KdfParamsError as e:
        raise CorruptKeystore(str(e)) from None
    return params


def _parse_record(keystore: Keystore) -> Tuple[KdfParams, bytes, bytes, bytes, Optional[bytes]]:
    """Structural checks. Returns (kdf_params, iv, ciphertext, mac, address)."""
    if not _is_int(keystore.version) or keystore.version != KEYSTORE_VERSION:
        raise CorruptKeystore(f'unsupported version: {keystore.version!r}')
    crypto = keystore.crypto
    if not isinstance(crypto, dict):
        raise CorruptKeystore('crypto section is not an object')
    if crypto.get('cipher') != CIPHER_AES_128_CTR:
        raise CorruptKeystore(f'unsupported cipher: {crypto.get("cipher")!r}')
    cipherparams = crypto.get('cipherparams')
    if not isinstance(cipherparams, dict):
        raise CorruptKeystore('cipherparams is not an object')
    iv = _parse_hex(cipherparams.get('iv'), 'iv', length=IV_LEN)
    ciphertext = _parse_hex(crypto.get('ciphertext'), 'ciphertext', length=PRIVKEY_LEN)
    mac = _parse_hex(crypto.get('mac'), 'mac', length=MAC_LEN)
    kdf_params = _parse_kdf(crypto)
    address = None
    if keystore.address is not None:
        addr = keystore.address
        if not isinstance(addr, str):
            raise CorruptKeystore('address is not a string')
        if addr.startswith('0x'):
            addr = addr[2:]
        address = _parse_hex(addr, 'address', length=20)
    return kdf_params, iv, ciphertext, mac, address


def _password_to_bytes(password: Union[str, bytes]) -> bytes:
    if password is None:
        raise InvalidPassword()
    return to_bytes(password, 'utf8')


def _calc_mac(dk: bytearray, ciphertext: bytes) -> bytes:
    body = dk[16:32] + ciphertext
    try:
        return keccak256(bytes(body))
    finally:
        wipe_bytes(body)


def _burn_default_kdf(password: bytes, config: Optional[SimpleConfig]) -> None:
    """Spend as long as a real attempt would, so structural failures
    cannot be told apart from wrong passwords by timing.
    """
    try:
        dk = default_kdf_params(config).derive(password)
    except KdfParamsError:
        return
    wipe_bytes(dk)


@profiler(min_threshold=0.5)
def encrypt(
        private_key: Union[bytearray, bytes],
        password: Union[str, bytes],
        *,
        kdf: KdfParams = None,
        address: Union[str, bytes] = None,
        config: SimpleConfig = None,
) -> Keystore:
    """Encrypts private_key under password.

    private_key is wiped when this returns (or raises), if it is a bytearray.
    """
    dk = aes_key = None
    try:
        if len(private_key) != PRIVKEY_LEN or not ecc.is_secret_within_curve_range(bytes(private_key)):
            raise ValueError('private key is not a valid secp256k1 secret')
        password = _password_to_bytes(password)
        if kdf is None:
            kdf = default_kdf_params(config)
        kdf.validate()
        key_address = privkey_to_address_bytes(bytes(private_key))
        if address is not None:
            if isinstance(address, (bytes, bytearray)):
                address = bytes(address)
            else:
                address = bytes.fromhex(to_checksum_address(address)[2:])
            if address != key_address:
                raise ValueError("address does not belong to the private key")
        address = key_address.hex()
        _logger.info(f"encrypting keystore. kdf: {kdf!r}")
        iv = secrets.token_bytes(IV_LEN)
        dk = kdf.derive(password)
        aes_key = dk[0:16]
        ciphertext = aes_ctr_encrypt(aes_key, iv, private_key)
        mac = _calc_mac(dk, ciphertext)
    finally:
        wipe_bytes(aes_key)
        wipe_bytes(dk)
        wipe_bytes(private_key)
    crypto = {
        'cipher': CIPHER_AES_128_CTR,
        'cipherparams': {'iv': iv.hex()},
        'ciphertext': ciphertext.hex(),
        'kdf': kdf.NAME,
        'kdfparams': kdf.to_json_dict(),
        'mac': mac.hex(),
    }
    return Keystore(crypto=crypto, address=address)


@profiler(min_threshold=0.5)
def decrypt(keystore: Keystore, password: Union[str, bytes], *, config: SimpleConfig = None) -> bytearray:
    """Returns the private key, in a buffer owned (and to be wiped) by the caller.

    Raises InvalidPassword on MAC mismatch, CorruptKeystore on anything malformed.
    Both take at least one key stretching run, whatever the record or password.
    """
    try:
        password = _password_to_bytes(password)
    except InvalidPassword:
        _logger.info("refusing to decrypt without a password")
        _burn_default_kdf(b"", config)
        raise
    try:
        kdf, iv, ciphertext, mac, address = _parse_record(keystore)
    except CorruptKeystore as e:
        _logger.info(f"refusing keystore: {e.reason}")
        _burn_default_kdf(password, config)
        raise
    dk = kdf.derive(password)
    aes_key = None
    try:
        if not constant_time_compare(_calc_mac(dk, ciphertext), mac):
            raise InvalidPassword()
        aes_key = dk[0:16]
        private_key = bytearray(aes_ctr_decrypt(aes_key, iv, ciphertext))
    finally:
        wipe_bytes(aes_key)
        wipe_bytes(dk)
    if not ecc.is_secret_within_curve_range(private_key):
        wipe_bytes(private_key)
        raise CorruptKeystore('decrypted key out of range')
    if address is not None and privkey_to_address_bytes(bytes(private_key)) != address:
        wipe_bytes(private_key)
        raise CorruptKeystore('address does not match the encrypted key')
    return private_key


def check_password(keystore: Keystore, password: Union[str, bytes], *, config: SimpleConfig = None) -> None:
    """Raises InvalidPassword (or CorruptKeystore) unless password opens keystore."""
    private_key = decrypt(keystore, password, config=config)
    wipe_bytes(private_key)


async def encrypt_async(private_key: Union[bytearray, bytes], password: Union[str, bytes], **kwargs) -> Keystore:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(encrypt, private_key, password, **kwargs))


async def decrypt_async(keystore: Keystore, password: Union[str, bytes], **kwargs) -> bytearray:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(decrypt, keystore, password, **kwargs))
