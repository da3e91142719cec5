# Electrum - lightweight Bitcoin client
# Copyright (C) 2011 Thomas Voegtlin
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
"""Helpers shared by the whole package: byte handling, secret buffers,
data directories and the exceptions that several modules raise.
"""

import os
import stat
import time
from functools import partial, wraps
from typing import Optional, Union, Callable, Dict

from .i18n import _
from .logging import get_logger


_logger = get_logger(__name__)
_profiler_logger = _logger.getChild('profiler')

# directory of the etherseed package, holding the wordlists
pkg_dir = os.path.dirname(os.path.realpath(__file__))

bfh = bytes.fromhex


class InvalidPassword(Exception):
    """The password does not open the keystore."""

    def __init__(self, message: Optional[str] = None):
        Exception.__init__(self, message)
        self.message = message

    def __str__(self):
        return self.message if self.message is not None else _("Incorrect password")


class KeystoreFileException(Exception):
    """A keystore record that cannot be used, whatever the password."""


def inv_dict(d: Dict) -> Dict:
    return {value: key for key, value in d.items()}


def profiler(func: Callable = None, *, min_threshold: Union[int, float, None] = None):
    """Logs how long each call of func takes, at debug level.

    With min_threshold (seconds), only calls slower than that are logged.
    Usable bare (@profiler) or with arguments (@profiler(min_threshold=0.5)).
    Sync functions only.
    """
    if func is None:
        return partial(profiler, min_threshold=min_threshold)

    @wraps(func)
    def timed(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            if min_threshold is None or elapsed > min_threshold:
                _profiler_logger.debug(f"{func.__qualname__} took {elapsed:,.4f} sec")
    return timed


def assert_bytes(*args):
    for x in args:
        assert isinstance(x, (bytes, bytearray)), type(x)


def to_bytes(something: Union[str, bytes, bytearray], encoding='utf8') -> bytes:
    if isinstance(something, str):
        return something.encode(encoding)
    if isinstance(something, (bytes, bytearray)):
        return bytes(something)
    raise TypeError(f"expected str or bytes, got {type(something).__name__}")


def wipe_bytes(buf: Optional[bytearray]) -> None:
    """Zeroes a secret bytearray in place.
    Anything else (bytes, None) is left alone, as it cannot be overwritten.
    """
    if isinstance(buf, bytearray):
        buf[:] = bytes(len(buf))


def versiontuple(v: str):
    return tuple(int(part) for part in v.split("."))


def user_dir() -> Optional[str]:
    """Default data directory, holding the config file and logs."""
    if os.name == 'posix' and 'HOME' in os.environ:
        return os.path.join(os.environ["HOME"], ".etherseed")
    for var in ("APPDATA", "LOCALAPPDATA"):
        if var in os.environ:
            return os.path.join(os.environ[var], "Etherseed")
    return None


def resource_path(*parts) -> str:
    return os.path.join(pkg_dir, *parts)


def standardize_path(path: str) -> str:
    # symlinks are deliberately not resolved: realpath misbehaves on some Windows setups
    return os.path.normcase(os.path.abspath(os.path.expanduser(path)))


def is_subpath(long_path: str, short_path: str) -> bool:
    try:
        common = os.path.commonpath([long_path, short_path])
    except ValueError:
        return False
    return standardize_path(common) == standardize_path(short_path)


def os_chmod(path: str, mode: int) -> None:
    """os.chmod, except that failures inside $XDG_RUNTIME_DIR (a tmpfs) are only logged."""
    try:
        os.chmod(path, mode)
    except OSError as e:
        runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
        if not (runtime_dir and is_subpath(path, runtime_dir)):
            raise
        _logger.info(f"cannot chmod {path} on tmpfs, leaving permissions as they are: {e!r}")


def make_dir(path: str, allow_symlink=True) -> None:
    """Creates path, owner-only, unless it already exists."""
    if os.path.exists(path):
        return
    if not allow_symlink and os.path.islink(path):
        raise Exception(f'Dangling link: {path}')
    os.mkdir(path)
    os_chmod(path, stat.S_IRWXU)
