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

"""secp256k1 keys, on top of python-ecdsa's curve arithmetic."""

from typing import Union

from ecdsa.ecdsa import curve_secp256k1, generator_secp256k1
from ecdsa.curves import SECP256k1
from ecdsa.ellipticcurve import Point, INFINITY
from ecdsa.util import string_to_number, number_to_string

from .util import assert_bytes


CURVE_ORDER = SECP256k1.order
_FIELD_SIZE = curve_secp256k1.p()


class InvalidECPointException(Exception):
    """e.g. not on curve, or infinity"""


def _encode_point(point, *, compressed: bool) -> bytes:
    if point == INFINITY:
        raise InvalidECPointException('point at infinity')
    x = number_to_string(point.x(), _FIELD_SIZE)
    if compressed:
        return bytes([0x02 | (point.y() & 1)]) + x
    return b'\x04' + x + number_to_string(point.y(), _FIELD_SIZE)


def _y_from_x(x: int, *, odd: bool) -> int:
    p = _FIELD_SIZE
    y_squared = (pow(x, 3, p) + curve_secp256k1.a() * x + curve_secp256k1.b()) % p
    # p = 3 mod 4, so a square root is y_squared ** ((p+1)/4)
    y = pow(y_squared, (p + 1) // 4, p)
    if y * y % p != y_squared:
        raise InvalidECPointException('x coordinate is not on the curve')
    return y if bool(y & 1) == odd else p - y


def _decode_point(ser: bytes) -> Point:
    assert_bytes(ser)
    prefix = ser[0] if ser else None
    expected_len = {0x02: 33, 0x03: 33, 0x04: 65}.get(prefix)
    if expected_len is None:
        raise InvalidECPointException(f'Unexpected first byte: {prefix}')
    if len(ser) != expected_len:
        raise InvalidECPointException(f'unexpected length {len(ser)} for point with prefix {prefix:#04x}')
    x = string_to_number(ser[1:33])
    if x >= _FIELD_SIZE:
        raise InvalidECPointException('x coordinate out of range')
    if prefix == 0x04:
        y = string_to_number(ser[33:])
    else:
        y = _y_from_x(x, odd=prefix == 0x03)
    if y >= _FIELD_SIZE or not curve_secp256k1.contains_point(x, y):
        raise InvalidECPointException('point is not on the curve')
    return Point(curve_secp256k1, x, y, CURVE_ORDER)


class ECPubkey(object):

    def __init__(self, b: bytes):
        self._point = _decode_point(b)

    @classmethod
    def _from_point(cls, point) -> 'ECPubkey':
        return ECPubkey(_encode_point(point, compressed=False))

    def get_public_key_bytes(self, compressed=True) -> bytes:
        return _encode_point(self._point, compressed=compressed)

    def get_public_key_hex(self, compressed=True) -> str:
        return self.get_public_key_bytes(compressed).hex()

    def is_private(self) -> bool:
        return False

    def __mul__(self, other: int) -> 'ECPubkey':
        if not isinstance(other, int):
            raise TypeError(f'multiplication not defined for ECPubkey and {type(other)}')
        return self._from_point(self._point * (other % CURVE_ORDER))

    __rmul__ = __mul__

    def __add__(self, other: 'ECPubkey') -> 'ECPubkey':
        if not isinstance(other, ECPubkey):
            raise TypeError(f'addition not defined for ECPubkey and {type(other)}')
        return self._from_point(self._point + other._point)

    def __eq__(self, other):
        return isinstance(other, ECPubkey) and self.get_public_key_bytes() == other.get_public_key_bytes()

    def __hash__(self):
        return hash(self.get_public_key_bytes())


def generator() -> ECPubkey:
    return ECPubkey._from_point(generator_secp256k1)


def is_secret_within_curve_range(secret: Union[int, bytes]) -> bool:
    if isinstance(secret, (bytes, bytearray)):
        secret = string_to_number(secret)
    return 0 < secret < CURVE_ORDER


class ECPrivkey(ECPubkey):
    """Private key on secp256k1.

    The secret is held as a Python int, which cannot be wiped from memory.
    Keep instances short-lived and hand secrets around as bytearrays instead.
    """

    def __init__(self, privkey_bytes: bytes):
        assert_bytes(privkey_bytes)
        if len(privkey_bytes) != 32:
            raise InvalidECPointException(f'secret must be 32 bytes, not {len(privkey_bytes)}')
        secret = string_to_number(privkey_bytes)
        if not is_secret_within_curve_range(secret):
            raise InvalidECPointException('Invalid secret scalar (not within curve order)')
        self.secret_scalar = secret
        super().__init__(_encode_point(generator_secp256k1 * secret, compressed=True))

    @classmethod
    def from_secret_scalar(cls, secret_scalar: int) -> 'ECPrivkey':
        return cls(number_to_string(secret_scalar, CURVE_ORDER))

    def get_secret_bytes(self) -> bytes:
        return number_to_string(self.secret_scalar, CURVE_ORDER)

    def is_private(self) -> bool:
        return True

    def __repr__(self):
        return f"<ECPrivkey {self.get_public_key_hex()}>"
