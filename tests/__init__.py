import asyncio
import unittest
import threading
import tempfile
import shutil

import etherseed
import etherseed.logging
from etherseed import crypto
from etherseed.logging import Logger
from etherseed.simple_config import SimpleConfig


# Set this locally to make the test suite run faster.
# If set, unit tests that would normally test functions with multiple implementations,
# will only be run once, using the fastest implementation.
# e.g. pycryptodomex vs cryptography.
FAST_TESTS = False

# scrypt cost used by the unit tests
TEST_SCRYPT_N = 2 ** 10
TEST_PBKDF2_C = 2 ** 10


etherseed.logging.configure_console_logging(verbosity="*")


class EtherseedTestCase(unittest.IsolatedAsyncioTestCase, Logger):
    """Base class for our unit tests."""

    # maxDiff = None  # for debugging

    # some unit tests are modifying globals... so we run sequentially:
    _test_lock = threading.Lock()

    def __init__(self, *args, **kwargs):
        Logger.__init__(self)
        unittest.IsolatedAsyncioTestCase.__init__(self, *args, **kwargs)

    def setUp(self):
        have_lock = self._test_lock.acquire(timeout=0.1)
        if not have_lock:
            # This can happen when trying to run the tests in parallel,
            # or if a prior test raised during `setUp` and never released the lock.
            raise Exception("timed out waiting for test_lock")
        super().setUp()
        self.etherseed_path = tempfile.mkdtemp(prefix="etherseed-unittest-base-")
        # cheap kdf, so that keystores (and the dummy kdf run on corrupt ones) are fast
        self.config = SimpleConfig({
            'etherseed_path': self.etherseed_path,
            'keystore_scrypt_n': TEST_SCRYPT_N,
            'keystore_pbkdf2_c': TEST_PBKDF2_C,
        })

    def tearDown(self):
        shutil.rmtree(self.etherseed_path)
        super().tearDown()
        self._test_lock.release()


def needs_test_with_all_crypto_implementations(func):
    """Function decorator to run a unit test multiple times:
    once with each AES-CTR/scrypt implementation.

    NOTE: this is inherently sequential;
    tests running in parallel would break things
    """
    if FAST_TESTS:  # if set, only run tests once, using fastest implementation
        return func
    has_cryptodome = crypto.HAS_CRYPTODOME
    has_cryptography = crypto.HAS_CRYPTOGRAPHY
    if asyncio.iscoroutinefunction(func):
        async def run_test(*args, **kwargs):
            try:
                if has_cryptodome:
                    (crypto.HAS_CRYPTODOME, crypto.HAS_CRYPTOGRAPHY) = True, False
                    await func(*args, **kwargs)  # cryptodome
                if has_cryptography:
                    (crypto.HAS_CRYPTODOME, crypto.HAS_CRYPTOGRAPHY) = False, True
                    await func(*args, **kwargs)  # cryptography
            finally:
                crypto.HAS_CRYPTODOME = has_cryptodome
                crypto.HAS_CRYPTOGRAPHY = has_cryptography
    else:
        def run_test(*args, **kwargs):
            try:
                if has_cryptodome:
                    (crypto.HAS_CRYPTODOME, crypto.HAS_CRYPTOGRAPHY) = True, False
                    func(*args, **kwargs)  # cryptodome
                if has_cryptography:
                    (crypto.HAS_CRYPTODOME, crypto.HAS_CRYPTOGRAPHY) = False, True
                    func(*args, **kwargs)  # cryptography
            finally:
                crypto.HAS_CRYPTODOME = has_cryptodome
                crypto.HAS_CRYPTOGRAPHY = has_cryptography
    return run_test
