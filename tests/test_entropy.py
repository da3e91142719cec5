from unittest import mock

from etherseed import entropy
from etherseed.entropy import (SystemEntropySource, FixedEntropySource, InsufficientRandomness,
                               check_strength)

from . import EtherseedTestCase


class Test_Entropy(EtherseedTestCase):

    def test_check_strength(self):
        for num_bits in (128, 160, 192, 224, 256):
            self.assertEqual(num_bits // 8, check_strength(num_bits))
        for num_bits in (0, 64, 127, 129, 512, "128"):
            with self.assertRaises(ValueError):
                check_strength(num_bits)

    def test_system_source_lengths(self):
        source = SystemEntropySource()
        for num_bits in (128, 160, 192, 224, 256):
            data = source.generate(num_bits)
            self.assertIsInstance(data, bytearray)
            self.assertEqual(num_bits // 8, len(data))

    def test_system_source_outputs_differ(self):
        source = SystemEntropySource()
        self.assertNotEqual(source.generate(128), source.generate(128))

    def test_system_source_failure_is_reported(self):
        with mock.patch.object(entropy.secrets, 'token_bytes', side_effect=OSError("no entropy")):
            with self.assertRaises(InsufficientRandomness):
                SystemEntropySource().generate(128)

    def test_system_source_short_read_is_reported(self):
        with mock.patch.object(entropy.secrets, 'token_bytes', return_value=bytes(15)):
            with self.assertRaises(InsufficientRandomness):
                SystemEntropySource().generate(128)

    def test_fixed_source(self):
        source = FixedEntropySource(bytes(range(16)))
        data = source.generate(128)
        self.assertEqual(bytearray(range(16)), data)
        # each call hands out a fresh buffer
        data[0] = 0xff
        self.assertEqual(bytearray(range(16)), source.generate(128))

    def test_fixed_source_strength_mismatch(self):
        source = FixedEntropySource(bytes(16))
        with self.assertRaises(InsufficientRandomness):
            source.generate(256)
        with self.assertRaises(ValueError):
            FixedEntropySource(bytes(10))
