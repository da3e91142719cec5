# -*- coding: utf-8 -*-
#
# Electrum - lightweight Bitcoin client
# Copyright (C) 2018 The Electrum developers
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

import sys
import hashlib
import hmac
from typing import Union

from .util import assert_bytes, to_bytes, versiontuple
from .logging import get_logger

_logger = get_logger(__name__)


HAS_CRYPTODOME = False
MIN_CRYPTODOME_VERSION = "3.7"
try:
    import Cryptodome
    if versiontuple(Cryptodome.__version__) < versiontuple(MIN_CRYPTODOME_VERSION):
        _logger.warning(f"found module 'Cryptodome' but it is too old: {Cryptodome.__version__}<{MIN_CRYPTODOME_VERSION}")
        raise Exception()
    from Cryptodome.Cipher import AES as CD_AES
    from Cryptodome.Hash import keccak as CD_keccak
    from Cryptodome.Hash import RIPEMD160 as CD_RIPEMD160
    from Cryptodome.Protocol.KDF import scrypt as CD_scrypt
except Exception:
    pass
else:
    HAS_CRYPTODOME = True

HAS_CRYPTOGRAPHY = False
MIN_CRYPTOGRAPHY_VERSION = "2.1"
try:
    import cryptography
    if versiontuple(cryptography.__version__) < versiontuple(MIN_CRYPTOGRAPHY_VERSION):
        _logger.warning(f"found module 'cryptography' but it is too old: {cryptography.__version__}<{MIN_CRYPTOGRAPHY_VERSION}")
        raise Exception()
    from cryptography.hazmat.primitives.ciphers import Cipher as CG_Cipher
    from cryptography.hazmat.primitives.ciphers import algorithms as CG_algorithms
    from cryptography.hazmat.primitives.ciphers import modes as CG_modes
    from cryptography.hazmat.primitives.kdf.scrypt import Scrypt as CG_Scrypt
    from cryptography.hazmat.backends import default_backend as CG_default_backend
except Exception:
    pass
else:
    HAS_CRYPTOGRAPHY = True


# keccak256 is only provided by pycryptodomex, so it is a hard requirement
if not HAS_CRYPTODOME:
    sys.exit(f"Error: 'pycryptodomex' >= {MIN_CRYPTODOME_VERSION} needs to be installed.")


def aes_ctr_encrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    """AES in counter mode, the whole 16 byte iv being the initial counter block.
    Key size picks the variant; the keystore uses 16 bytes (aes-128-ctr).
    """
    assert_bytes(key, iv, data)
    assert len(key) in (16, 24, 32), f"unexpected key size: {len(key)}"
    assert len(iv) == 16, f"unexpected iv size: {len(iv)} (expected: 16)"
    if HAS_CRYPTODOME:
        cipher = CD_AES.new(bytes(key), CD_AES.MODE_CTR, nonce=b'', initial_value=bytes(iv))
        return cipher.encrypt(bytes(data))
    if HAS_CRYPTOGRAPHY:
        cipher = CG_Cipher(CG_algorithms.AES(bytes(key)), CG_modes.CTR(bytes(iv)), backend=CG_default_backend())
        encryptor = cipher.encryptor()
        return encryptor.update(bytes(data)) + encryptor.finalize()
    raise Exception("no AES backend found")


def aes_ctr_decrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    # CTR is symmetric
    return aes_ctr_encrypt(key, iv, data)


def scrypt(password: bytes, *, salt: bytes, n: int, r: int, p: int, dklen: int) -> bytearray:
    assert_bytes(password, salt)
    if HAS_CRYPTODOME:
        return bytearray(CD_scrypt(bytes(password), bytes(salt), dklen, N=n, r=r, p=p))
    if HAS_CRYPTOGRAPHY:
        kdf = CG_Scrypt(salt=bytes(salt), length=dklen, n=n, r=r, p=p, backend=CG_default_backend())
        return bytearray(kdf.derive(bytes(password)))
    raise Exception("no scrypt backend found")


def pbkdf2_hmac_sha256(password: bytes, *, salt: bytes, iterations: int, dklen: int) -> bytearray:
    assert_bytes(password, salt)
    return bytearray(hashlib.pbkdf2_hmac('sha256', password, salt, iterations, dklen))


def keccak256(x: Union[bytes, str]) -> bytes:
    """Original Keccak-256 as used by Ethereum. Not the same as NIST SHA3-256."""
    x = to_bytes(x, 'utf8')
    return CD_keccak.new(digest_bits=256, data=x).digest()


def sha256(x: Union[bytes, str]) -> bytes:
    x = to_bytes(x, 'utf8')
    return bytes(hashlib.sha256(x).digest())


def sha256d(x: Union[bytes, str]) -> bytes:
    x = to_bytes(x, 'utf8')
    out = bytes(sha256(sha256(x)))
    return out


def hash_160(x: bytes) -> bytes:
    return ripemd(sha256(x))


def ripemd(x: bytes) -> bytes:
    try:
        md = hashlib.new('ripemd160')
    except ValueError:
        # ripemd160 is not guaranteed to be available in hashlib (e.g. OpenSSL 3 builds)
        return CD_RIPEMD160.new(bytes(x)).digest()
    md.update(x)
    return md.digest()


def hmac_oneshot(key: bytes, msg: bytes, digest) -> bytes:
    return hmac.digest(bytes(key), bytes(msg), digest)


def constant_time_compare(a: bytes, b: bytes) -> bool:
    return hmac.compare_digest(bytes(a), bytes(b))
