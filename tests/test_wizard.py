from etherseed.derivation import DerivationPath
from etherseed.entropy import FixedEntropySource
from etherseed.keystore import decrypt
from etherseed.simple_config import SimpleConfig
from etherseed.storage import MemoryStorage, FileStorage, load_keystore
from etherseed.wizard import NewWalletFlow, WizardStateError, WalletFlowState

from . import EtherseedTestCase


ABANDON_ABOUT = ' '.join(['abandon'] * 11 + ['about'])
ABANDON_ABOUT_KEY_0 = '1ab42cc412b618bdea3a599e3c9bae199ebf030895b039e9db1e30dafb12b727'
ABANDON_ABOUT_ADDRESS_0 = '9858effd232b4033e47d90003d41ec34ecaeda94'


class Test_NewWalletFlow(EtherseedTestCase):

    def _flow(self, **kwargs):
        kwargs.setdefault('entropy_source', FixedEntropySource(bytes(16)))
        return NewWalletFlow(self.config, **kwargs)

    @staticmethod
    def _answer(challenge):
        return [item.word for item in challenge]

    def test_initial_state(self):
        flow = self._flow()
        self.assertEqual(WalletFlowState.MNEMONIC_SHOWN, flow.state)
        self.assertEqual(ABANDON_ABOUT, flow.mnemonic)
        self.assertTrue(flow.require_verification)
        self.assertFalse(flow.is_verified())
        self.assertIsNone(flow.keystore)

    def test_random_mnemonic(self):
        flow1 = NewWalletFlow(self.config)
        flow2 = NewWalletFlow(self.config)
        self.assertEqual(12, len(flow1.mnemonic.split()))
        self.assertNotEqual(flow1.mnemonic, flow2.mnemonic)

    def test_mnemonic_strength_from_config(self):
        config = SimpleConfig({'etherseed_path': self.etherseed_path, 'mnemonic_strength_bits': 256})
        flow = NewWalletFlow(config)
        self.assertEqual(24, len(flow.mnemonic.split()))

    def test_full_flow(self):
        flow = self._flow()
        challenge = flow.new_challenge()
        self.assertEqual(3, len(challenge))
        self.assertTrue(flow.confirm(self._answer(challenge)))
        self.assertEqual(WalletFlowState.VERIFIED, flow.state)
        storage = MemoryStorage()
        ks = flow.create_keystore("secret", storage=storage)
        self.assertEqual(WalletFlowState.KEYSTORE_CREATED, flow.state)
        self.assertIs(ks, flow.keystore)
        self.assertEqual(ABANDON_ABOUT_ADDRESS_0, ks.address)
        self.assertEqual(ABANDON_ABOUT_KEY_0, decrypt(ks, "secret", config=self.config).hex())
        stored = load_keystore(storage, ABANDON_ABOUT_ADDRESS_0)
        self.assertEqual(ks.to_dict(), stored.to_dict())

    def test_keystore_requires_verification(self):
        flow = self._flow()
        with self.assertRaises(WizardStateError):
            flow.create_keystore("secret")
        flow.new_challenge()
        with self.assertRaises(WizardStateError):
            flow.create_keystore("secret")
        self.assertEqual(WalletFlowState.MNEMONIC_SHOWN, flow.state)

    def test_wrong_answers(self):
        flow = self._flow()
        challenge = flow.new_challenge(count=2)
        self.assertFalse(flow.confirm(['zoo', 'zoo']))
        self.assertFalse(flow.confirm(self._answer(challenge)[:1]))
        self.assertEqual(WalletFlowState.MNEMONIC_SHOWN, flow.state)
        # the same challenge can be retried
        self.assertTrue(flow.confirm(self._answer(challenge)))
        self.assertTrue(flow.is_verified())

    def test_confirm_without_challenge(self):
        flow = self._flow()
        with self.assertRaises(WizardStateError):
            flow.confirm(['abandon'])

    def test_challenge_word_count_from_config(self):
        config = SimpleConfig({'etherseed_path': self.etherseed_path, 'seed_confirmation_words': 5,
                               'keystore_scrypt_n': 1024})
        flow = NewWalletFlow(config, entropy_source=FixedEntropySource(bytes(16)))
        self.assertEqual(5, len(flow.new_challenge()))
        self.assertEqual(12, len(flow.new_challenge(count=12)))
        with self.assertRaises(ValueError):
            flow.new_challenge(count=13)

    def test_verification_can_be_disabled(self):
        flow = self._flow(require_verification=False)
        ks = flow.create_keystore("secret")
        self.assertEqual(ABANDON_ABOUT_ADDRESS_0, ks.address)
        config = SimpleConfig({'etherseed_path': self.etherseed_path, 'require_seed_confirmation': False,
                               'keystore_scrypt_n': 1024})
        flow = NewWalletFlow(config)
        self.assertFalse(flow.require_verification)
        flow.create_keystore("secret")
        # explicit argument wins over config
        flow = NewWalletFlow(config, require_verification=True)
        with self.assertRaises(WizardStateError):
            flow.create_keystore("secret")

    def test_create_keystore_only_once(self):
        flow = self._flow(require_verification=False)
        flow.create_keystore("secret")
        with self.assertRaises(WizardStateError):
            flow.create_keystore("secret")
        with self.assertRaises(WizardStateError):
            flow.regenerate()
        with self.assertRaises(WizardStateError):
            flow.new_challenge()

    def test_regenerate(self):
        flow = NewWalletFlow(self.config)
        first = flow.mnemonic
        flow.new_challenge()
        second = flow.regenerate()
        self.assertNotEqual(first, second)
        self.assertEqual(second, flow.mnemonic)
        # pending challenge was for the old mnemonic
        self.assertIsNone(flow.challenge)
        with self.assertRaises(WizardStateError):
            flow.confirm(['abandon'])

    def test_regenerate_drops_verification(self):
        flow = self._flow()
        challenge = flow.new_challenge()
        flow.confirm(self._answer(challenge))
        flow.regenerate()
        self.assertEqual(WalletFlowState.MNEMONIC_SHOWN, flow.state)
        with self.assertRaises(WizardStateError):
            flow.create_keystore("secret")

    def test_passphrase_and_path(self):
        flow1 = self._flow(require_verification=False)
        flow2 = self._flow(require_verification=False)
        flow3 = self._flow(require_verification=False)
        ks1 = flow1.create_keystore("secret")
        ks2 = flow2.create_keystore("secret", passphrase="TREZOR")
        ks3 = flow3.create_keystore("secret", path="m/44'/60'/0'/0/1")
        self.assertEqual(3, len({ks1.address, ks2.address, ks3.address}))
        flow4 = self._flow(require_verification=False)
        ks4 = flow4.create_keystore("secret", path=DerivationPath(44, 60, 0, 0, 1))
        self.assertEqual(ks3.address, ks4.address)

    def test_path_from_config(self):
        config = SimpleConfig({'etherseed_path': self.etherseed_path, 'derivation_path': "m/44'/60'/0'/0/1",
                               'keystore_scrypt_n': 1024})
        ks = NewWalletFlow(config, entropy_source=FixedEntropySource(bytes(16)),
                           require_verification=False).create_keystore("secret")
        ks_default = self._flow(require_verification=False).create_keystore("secret")
        self.assertNotEqual(ks_default.address, ks.address)

    def test_storage_key(self):
        storage = FileStorage(self.etherseed_path + "/keystores")
        flow = self._flow(require_verification=False)
        ks = flow.create_keystore("secret", storage=storage, storage_key="main")
        self.assertEqual(ks.to_dict(), load_keystore(storage, "main").to_dict())
        self.assertIsNone(load_keystore(storage, ks.address))

    async def test_create_keystore_async(self):
        flow = self._flow(require_verification=False)
        ks = await flow.create_keystore_async("secret")
        self.assertEqual(ABANDON_ABOUT_ADDRESS_0, ks.address)
        self.assertEqual(WalletFlowState.KEYSTORE_CREATED, flow.state)
