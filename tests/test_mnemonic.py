from etherseed import mnemonic
from etherseed.entropy import FixedEntropySource
from etherseed.mnemonic import (Mnemonic, InvalidMnemonic, InvalidWordCount, InvalidWord, InvalidChecksum,
                                normalize_mnemonic, is_matching_seed)
from etherseed.util import bfh

from . import EtherseedTestCase


ABANDON_ABOUT = ' '.join(['abandon'] * 11 + ['about'])


# (entropy, words) from the BIP39 reference vectors
ENTROPY_TEST_CASES = (
    ('00000000000000000000000000000000',
     ABANDON_ABOUT),
    ('7f7f7f7f7f7f7f7f7f7f7f7f7f7f7f7f',
     'legal winner thank year wave sausage worth useful legal winner thank yellow'),
    ('80808080808080808080808080808080',
     'letter advice cage absurd amount doctor acoustic avoid letter advice cage above'),
    ('ffffffffffffffffffffffffffffffff',
     ' '.join(['zoo'] * 11 + ['wrong'])),
    ('0000000000000000000000000000000000000000000000000000000000000000',
     ' '.join(['abandon'] * 23 + ['art'])),
)


class Test_Mnemonic(EtherseedTestCase):

    def test_wordlist(self):
        m = Mnemonic()
        self.assertEqual(2048, len(m.wordlist))
        self.assertEqual('abandon', m.wordlist[0])
        self.assertEqual('zoo', m.wordlist[2047])
        self.assertEqual(3, m.wordlist.index('about'))
        self.assertIn('zoo', m.wordlist)
        self.assertNotIn('etherseed', m.wordlist)

    def test_unsupported_language(self):
        with self.assertRaises(ValueError):
            Mnemonic('ja')
        Mnemonic('en')

    def test_entropy_to_mnemonic(self):
        m = Mnemonic()
        for entropy_hex, words in ENTROPY_TEST_CASES:
            with self.subTest(entropy=entropy_hex):
                self.assertEqual(words, m.entropy_to_mnemonic(bfh(entropy_hex)))
                self.assertEqual(bfh(entropy_hex), m.mnemonic_to_entropy(words))

    def test_entropy_to_mnemonic_rejects_bad_length(self):
        m = Mnemonic()
        for num_bytes in (0, 8, 15, 17, 33):
            with self.assertRaises(ValueError):
                m.entropy_to_mnemonic(bytes(num_bytes))

    def test_roundtrip_all_lengths(self):
        m = Mnemonic()
        for num_bits, num_words in zip((128, 160, 192, 224, 256), (12, 15, 18, 21, 24)):
            entropy = bytes(range(7, 7 + num_bits // 8))
            words = m.entropy_to_mnemonic(entropy)
            self.assertEqual(num_words, len(words.split()))
            self.assertEqual(entropy, m.mnemonic_to_entropy(words))

    def test_mnemonic_to_seed(self):
        self.assertEqual(
            '5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1'
            '9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4',
            Mnemonic.mnemonic_to_seed(ABANDON_ABOUT).hex())
        self.assertEqual(
            'c55257c360c07c72029aebc1b53c05ed0362ada38ead3e3e9efa3708e5349553'
            '1f09a6987599d18264c1e1c92f2cf141630c7a3c4ab7c81b2f001698e7463b04',
            Mnemonic.mnemonic_to_seed(ABANDON_ABOUT, 'TREZOR').hex())

    def test_mnemonic_to_seed_passphrase_none_is_empty(self):
        self.assertEqual(Mnemonic.mnemonic_to_seed(ABANDON_ABOUT, ''),
                         Mnemonic.mnemonic_to_seed(ABANDON_ABOUT, None))

    def test_mnemonic_to_seed_ignores_extra_whitespace(self):
        messy = '  ' + ABANDON_ABOUT.replace(' ', '   \t') + '\n'
        self.assertEqual(Mnemonic.mnemonic_to_seed(ABANDON_ABOUT),
                         Mnemonic.mnemonic_to_seed(messy))

    def test_invalid_word_count(self):
        m = Mnemonic()
        with self.assertRaises(InvalidWordCount) as ctx:
            m.mnemonic_to_entropy(' '.join(['abandon'] * 11))
        self.assertEqual(11, ctx.exception.count)
        with self.assertRaises(InvalidWordCount):
            m.mnemonic_to_entropy(' '.join(['abandon'] * 13))
        with self.assertRaises(InvalidWordCount):
            m.mnemonic_to_entropy('')

    def test_invalid_word(self):
        m = Mnemonic()
        with self.assertRaises(InvalidWord) as ctx:
            m.mnemonic_to_entropy(' '.join(['abandon'] * 11 + ['etherseed']))
        self.assertEqual(11, ctx.exception.position)
        self.assertEqual('etherseed', ctx.exception.word)
        self.assertNotIn('etherseed', str(ctx.exception))
        # case matters
        with self.assertRaises(InvalidWord):
            m.mnemonic_to_entropy(ABANDON_ABOUT.upper())

    def test_invalid_checksum(self):
        m = Mnemonic()
        with self.assertRaises(InvalidChecksum):
            m.mnemonic_to_entropy(' '.join(['abandon'] * 12))
        with self.assertRaises(InvalidChecksum):
            m.mnemonic_to_entropy(' '.join(['zoo'] * 12))
        with self.assertRaises(InvalidChecksum):
            m.mnemonic_to_entropy(
                'legal winner thank year wave sausage worth useful legal winner thank zoo')

    def test_errors_are_invalid_mnemonic(self):
        for exc in (InvalidWordCount(11), InvalidWord('x', 0), InvalidChecksum()):
            self.assertIsInstance(exc, InvalidMnemonic)
            self.assertIsInstance(exc, ValueError)

    def test_is_checksum_valid(self):
        m = Mnemonic()
        self.assertEqual((True, True), m.is_checksum_valid(ABANDON_ABOUT))
        self.assertEqual((False, True), m.is_checksum_valid(' '.join(['abandon'] * 12)))
        self.assertEqual((False, True), m.is_checksum_valid(' '.join(['abandon'] * 11)))
        self.assertEqual((False, False), m.is_checksum_valid(' '.join(['abandon'] * 11 + ['etherseed'])))

    def test_get_suggestions(self):
        m = Mnemonic()
        self.assertEqual(['abandon', 'ability', 'able', 'about', 'above', 'absent',
                          'absorb', 'abstract', 'absurd', 'abuse'],
                         list(m.get_suggestions('ab')))
        self.assertEqual([], list(m.get_suggestions('qq')))

    def test_make_seed_with_fixed_entropy(self):
        m = Mnemonic()
        self.assertEqual(ABANDON_ABOUT,
                         m.make_seed(num_bits=128, entropy_source=FixedEntropySource(bytes(16))))

    def test_make_seed_word_counts(self):
        m = Mnemonic()
        for num_bits, num_words in zip((128, 160, 192, 224, 256), (12, 15, 18, 21, 24)):
            words = m.make_seed(num_bits=num_bits)
            self.assertEqual(num_words, len(words.split()))
            self.assertEqual((True, True), m.is_checksum_valid(words))

    def test_make_seed_is_random(self):
        m = Mnemonic()
        self.assertNotEqual(m.make_seed(), m.make_seed())

    def test_make_seed_rejects_bad_strength(self):
        m = Mnemonic()
        with self.assertRaises(ValueError):
            m.make_seed(num_bits=100)


class Test_seeds(EtherseedTestCase):

    def test_normalize_mnemonic(self):
        self.assertEqual('abandon about', normalize_mnemonic('  abandon \n about '))
        # NFKD
        self.assertEqual('cafe\u0301', normalize_mnemonic('caf\u00e9'))

    def test_is_matching_seed(self):
        self.assertTrue(is_matching_seed(seed=ABANDON_ABOUT, seed_again=ABANDON_ABOUT))
        self.assertTrue(is_matching_seed(seed=ABANDON_ABOUT, seed_again='  ' + ABANDON_ABOUT + '  '))
        self.assertTrue(is_matching_seed(seed=ABANDON_ABOUT, seed_again=ABANDON_ABOUT.replace(' ', '\n')))
        self.assertFalse(is_matching_seed(seed=ABANDON_ABOUT, seed_again=ABANDON_ABOUT.upper()))
        self.assertFalse(is_matching_seed(seed=ABANDON_ABOUT, seed_again=ABANDON_ABOUT[:-1]))

    def test_wordlist_is_cached(self):
        self.assertIs(mnemonic.Wordlist.from_file('english.txt'),
                      mnemonic.Wordlist.from_file('english.txt'))
