from .version import ETHERSEED_VERSION
from .simple_config import SimpleConfig
from .mnemonic import Mnemonic
from .bip32 import BIP32Node
from .derivation import DerivationPath, derive_private_key
from .keystore import Keystore, encrypt, decrypt
from .storage import FileStorage, MemoryStorage
from .wizard import NewWalletFlow
from . import address
from .logging import get_logger


__version__ = ETHERSEED_VERSION

_logger = get_logger(__name__)


# Ensure that asserts are enabled. For sanity and paranoia, we require this.
# Code *should not rely* on asserts being enabled. In particular, safety and security checks should
# always explicitly raise exceptions. However, this rule is mistakenly broken occasionally...
try:
    assert False  # noqa: B011
except AssertionError:
    pass
else:
    raise ImportError("Running with asserts disabled. Refusing to continue. Exiting...")
