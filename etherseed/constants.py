# Copyright (C) 2018 The Electrum developers
# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

# BIP32 serialization version bytes (mainnet, "standard" xtype only)
XPRV_HEADER = 0x0488ade4
XPUB_HEADER = 0x0488b21e

# BIP44
BIP44_PURPOSE = 44
COIN_TYPE_ETH = 60  # SLIP-0044

DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"

# BIP39
MNEMONIC_ENTROPY_BITS = (128, 160, 192, 224, 256)
MNEMONIC_WORD_COUNTS = (12, 15, 18, 21, 24)
