#!/usr/bin/env python
#
# Electrum - lightweight Bitcoin client
# Copyright (C) 2015 Thomas Voegtlin
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
import os
import re
import stat
import threading
from abc import ABC, abstractmethod
from typing import Optional, Dict

from .util import standardize_path, os_chmod, make_dir
from .logging import Logger, get_logger
from .keystore import Keystore


_logger = get_logger(__name__)

KEY_RE = re.compile(r'[A-Za-z0-9_\-][A-Za-z0-9_.\-]{0,127}')


class StorageReadWriteError(Exception): pass


def write_file_atomically(path: str, data: bytes) -> None:
    """Replaces the file at path with data, owner read/write only.
    Readers see either the old or the new contents, never a mix.
    """
    try:
        mode = stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        mode = stat.S_IREAD | stat.S_IWRITE
    temp_path = "%s.tmp.%s" % (path, os.getpid())
    with open(temp_path, "wb") as f:
        os_chmod(temp_path, mode)  # set restrictive perms *before* we write data
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_path, path)


def check_directory_writable(directory: str) -> None:
    """Raises StorageReadWriteError unless a file can be written to directory
    and read back. Existing files are left untouched.
    """
    scratch_path = os.path.join(directory, f".rwcheck.{os.getpid()}")
    marker = b"etherseed r/w check"
    try:
        with open(scratch_path, "wb") as f:
            f.write(marker)
        with open(scratch_path, "rb") as f:
            read_back = f.read()
        os.remove(scratch_path)
    except OSError as e:
        raise StorageReadWriteError(e) from e
    if read_back != marker:
        raise StorageReadWriteError(f"read back different data in {directory}")


def check_key(key: str) -> str:
    if not isinstance(key, str) or not KEY_RE.fullmatch(key):
        raise ValueError(f"invalid storage key: {key!r}")
    return key


class KeyValueStorage(ABC):
    """Where keystores end up. Values are opaque bytes."""

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Returns None if nothing is stored under key."""
        pass


class MemoryStorage(KeyValueStorage):

    def __init__(self):
        self._data = {}  # type: Dict[str, bytes]
        self.lock = threading.Lock()

    def put(self, key: str, value: bytes) -> None:
        check_key(key)
        with self.lock:
            self._data[key] = bytes(value)

    def get(self, key: str) -> Optional[bytes]:
        check_key(key)
        with self.lock:
            return self._data.get(key)


class FileStorage(KeyValueStorage, Logger):
    """One file per key, in a directory only the owner can read."""

    LOGGING_SHORTCUT = 'S'

    def __init__(self, directory: str):
        Logger.__init__(self)
        self.path = standardize_path(directory)
        make_dir(self.path, allow_symlink=False)
        check_directory_writable(self.path)
        self.logger.info(f"storage directory {self.path}")

    def _path_for_key(self, key: str) -> str:
        return os.path.join(self.path, check_key(key))

    def put(self, key: str, value: bytes) -> None:
        path = self._path_for_key(key)
        write_file_atomically(path, bytes(value))
        self.logger.info(f"saved {key}")

    def get(self, key: str) -> Optional[bytes]:
        path = self._path_for_key(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None


def save_keystore(storage: KeyValueStorage, key: str, keystore: Keystore) -> None:
    storage.put(key, keystore.to_json().encode('utf-8'))


def load_keystore(storage: KeyValueStorage, key: str) -> Optional[Keystore]:
    """None if nothing is stored under key. A malformed record raises
    CorruptKeystore right away: the password is only involved in keystore.decrypt.
    """
    raw = storage.get(key)
    if raw is None:
        return None
    return Keystore.from_json(raw)
