# -*- coding: utf-8 -*-
#
# Electrum - lightweight Bitcoin client
# Copyright (C) 2011 thomasv@gitorious
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

"""Base58Check, as used for serialized extended keys."""

from typing import Union

from .util import inv_dict, assert_bytes, to_bytes
from .crypto import sha256d


B58_ALPHABET = b'123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz'
assert len(B58_ALPHABET) == 58
_B58_DIGIT_OF = inv_dict(dict(enumerate(B58_ALPHABET)))
CHECKSUM_LEN = 4


class BaseDecodeError(ValueError): pass


class InvalidChecksum(BaseDecodeError): pass


def base_encode(v: bytes) -> str:
    """Base58 text of v. Each leading zero byte becomes a '1'."""
    assert_bytes(v)
    body = bytes(v).lstrip(b'\x00')
    num = int.from_bytes(body, byteorder='big')
    digits = bytearray()
    while num:
        num, rem = divmod(num, 58)
        digits.append(B58_ALPHABET[rem])
    digits.reverse()
    return ('1' * (len(v) - len(body))) + digits.decode('ascii')


def base_decode(v: Union[bytes, str]) -> bytes:
    try:
        v = to_bytes(v, 'ascii')
    except UnicodeEncodeError:
        raise BaseDecodeError('Forbidden non-ascii character for base 58') from None
    body = v.lstrip(b'1')
    num = 0
    for char in body:
        digit = _B58_DIGIT_OF.get(char)
        if digit is None:
            raise BaseDecodeError(f'Forbidden character {chr(char)!r} for base 58')
        num = num * 58 + digit
    leading_zeros = len(v) - len(body)
    return bytes(leading_zeros) + num.to_bytes((num.bit_length() + 7) // 8, 'big')


def EncodeBase58Check(payload: bytes) -> str:
    return base_encode(payload + sha256d(payload)[:CHECKSUM_LEN])


def DecodeBase58Check(text: Union[bytes, str]) -> bytes:
    """Payload of Base58Check text, after verifying its double-SHA256 checksum."""
    raw = base_decode(text)
    if len(raw) < CHECKSUM_LEN:
        raise BaseDecodeError('too short for a checksum')
    payload, checksum = raw[:-CHECKSUM_LEN], raw[-CHECKSUM_LEN:]
    expected = sha256d(payload)[:CHECKSUM_LEN]
    if checksum != expected:
        raise InvalidChecksum(f'calculated {expected.hex()}, found {checksum.hex()}')
    return payload
