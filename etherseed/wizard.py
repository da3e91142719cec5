# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

import asyncio
import functools
from enum import IntEnum
from typing import Optional, Sequence, Union

from . import verification
from .derivation import DerivationPath, derive_private_key
from .entropy import EntropySource
from .i18n import _
from .keystore import Keystore, encrypt
from .logging import Logger
from .mnemonic import Mnemonic
from .simple_config import SimpleConfig, value_or_default
from .storage import KeyValueStorage, save_keystore
from .util import wipe_bytes


class WizardStateError(Exception):
    pass


class WalletFlowState(IntEnum):
    MNEMONIC_SHOWN = 0
    VERIFIED = 1
    KEYSTORE_CREATED = 2


class NewWalletFlow(Logger):
    """Creating a new wallet, UI agnostic.

    The mnemonic is generated on construction and shown to the user. The user
    then types back a few of its words (new_challenge/confirm), and only after
    that is the key derived and encrypted into a keystore (create_keystore).
    """

    LOGGING_SHORTCUT = 'W'

    def __init__(
            self,
            config: SimpleConfig = None,
            *,
            entropy_source: EntropySource = None,
            require_verification: bool = None,
    ):
        Logger.__init__(self)
        self.config = config
        self._entropy_source = entropy_source
        if require_verification is None:
            require_verification = value_or_default(config, 'WALLET_REQUIRE_SEED_CONFIRMATION')
        self.require_verification = bool(require_verification)
        self._mnemonic_codec = Mnemonic()
        self.mnemonic = None  # type: Optional[str]
        self.challenge = None  # type: Optional[verification.VerificationSample]
        self.keystore = None  # type: Optional[Keystore]
        self.state = WalletFlowState.MNEMONIC_SHOWN
        self._make_mnemonic()

    def _make_mnemonic(self) -> None:
        num_bits = value_or_default(self.config, 'MNEMONIC_STRENGTH_BITS')
        self.mnemonic = self._mnemonic_codec.make_seed(num_bits=num_bits, entropy_source=self._entropy_source)
        self.challenge = None
        self.state = WalletFlowState.MNEMONIC_SHOWN

    def _check_not_finished(self) -> None:
        if self.state == WalletFlowState.KEYSTORE_CREATED:
            raise WizardStateError(_("The keystore for this wallet has already been created."))

    def regenerate(self) -> str:
        """Throws away the current mnemonic, and any verification of it."""
        self._check_not_finished()
        self.logger.info("regenerating mnemonic")
        self._make_mnemonic()
        return self.mnemonic

    def new_challenge(self, count: int = None) -> verification.VerificationSample:
        self._check_not_finished()
        if count is None:
            count = value_or_default(self.config, 'WALLET_SEED_CONFIRMATION_WORDS')
            count = min(count, len(self.mnemonic.split()))
        self.challenge = verification.sample(self.mnemonic, count)
        return self.challenge

    def confirm(self, answers: Sequence[str]) -> bool:
        self._check_not_finished()
        if self.challenge is None:
            raise WizardStateError(_("No verification challenge is pending."))
        if not verification.check(self.challenge, answers):
            self.logger.info("seed confirmation failed")
            return False
        self.logger.info("seed confirmed")
        self.challenge = None
        self.state = WalletFlowState.VERIFIED
        return True

    def is_verified(self) -> bool:
        return self.state >= WalletFlowState.VERIFIED

    def create_keystore(
            self,
            password: Union[str, bytes],
            *,
            passphrase: str = '',
            path: Union[DerivationPath, str] = None,
            storage: KeyValueStorage = None,
            storage_key: str = None,
    ) -> Keystore:
        """Derives the account key along path, encrypts it under password
        and, if storage is given, saves it there (under storage_key, or the
        address).
        """
        self._check_not_finished()
        if self.require_verification and not self.is_verified():
            raise WizardStateError(_("Please confirm your seed phrase before creating the wallet."))
        if path is None:
            path = value_or_default(self.config, 'WALLET_DERIVATION_PATH')
        if not isinstance(path, DerivationPath):
            path = DerivationPath.from_str(path)
        seed = Mnemonic.mnemonic_to_seed(self.mnemonic, passphrase)
        private_key = derive_private_key(seed, path)
        try:
            # encrypt wipes private_key
            keystore = encrypt(private_key, password, config=self.config)
        finally:
            wipe_bytes(private_key)
        if storage is not None:
            if storage_key is None:
                storage_key = keystore.address
            save_keystore(storage, storage_key, keystore)
        self.logger.info(f"keystore created at {path}")
        self.keystore = keystore
        self.state = WalletFlowState.KEYSTORE_CREATED
        return keystore

    async def create_keystore_async(self, password: Union[str, bytes], **kwargs) -> Keystore:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self.create_keystore, password, **kwargs))
