"""Settings: options from the embedding application over a JSON file in the
data directory, read through typed ConfigVar attributes:

    >>> config = SimpleConfig({'keystore_scrypt_n': 2 ** 14})
    >>> config.KEYSTORE_SCRYPT_N
    16384
"""

import json
import os
import threading
from copy import deepcopy
from typing import Union, Optional, Dict, Sequence, Any, Callable

from . import constants
from .util import user_dir, make_dir
from .logging import get_logger, Logger


_logger = get_logger(__name__)

CONFIG_FILENAME = "config"

_config_var_from_key = {}  # type: Dict[str, 'ConfigVar']


class ConfigVar(property):
    """A typed config key, used as a SimpleConfig class attribute.
    Reading gives the stored value or the default; assigning stores
    (and saves) it, None removes it.
    """

    def __init__(self, key: str, *, default: Any, type_: type = None):
        self._key = key
        self._default = default
        self._type = type_
        property.__init__(self, self._get_config_value, self._set_config_value)
        assert key not in _config_var_from_key, f"duplicate config key: {key!r}"
        _config_var_from_key[key] = self

    def _get_config_value(self, config: 'SimpleConfig'):
        value = config.get(self._key)
        if value is None:
            return self._default
        if self._type is not None and not isinstance(value, self._type):
            try:
                value = self._type(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"config key {self._key!r}: cannot read {value!r} as {self._type.__name__}") from e
        return value

    def _set_config_value(self, config: 'SimpleConfig', value):
        if self._type is not None and value is not None and not isinstance(value, self._type):
            raise ValueError(f"config key {self._key!r}: expected {self._type.__name__}, got {value!r}")
        config.set_key(self._key, value)

    def key(self) -> str:
        return self._key

    def get_default_value(self) -> Any:
        return self._default

    def __repr__(self):
        return f"<ConfigVar key={self._key!r}>"

    def __deepcopy__(self, memo):
        # values live in the config, the descriptor itself is immutable
        return self


class SimpleConfig(Logger):
    """Application options (e.g. from a command line) take precedence over
    the user config file, <data dir>/config. Options are never written back.
    """

    def __init__(
            self,
            options: Dict[str, Any] = None,
            read_user_config_function: Callable[[Optional[str]], Dict[str, Any]] = None,
            read_user_dir_function: Callable[[], Optional[str]] = None,
    ):
        Logger.__init__(self)
        options = options or {}
        for key in options:
            assert isinstance(key, str), f"config option keys must be str, got {key!r}"
        # guards user_config, which several threads may read and write
        self.lock = threading.RLock()
        self.cmdline_options = deepcopy(options)
        self.user_config = {}  # type: Dict[str, Any]
        self.user_dir = read_user_dir_function or user_dir
        self.path = self.etherseed_path()
        self.user_config = (read_user_config_function or read_user_config)(self.path)
        self._check_value_ranges()
        self._init_done = True

    def etherseed_path(self) -> Optional[str]:
        """The data directory: the etherseed_path option, or the user's default.
        Created if missing. None means nothing gets persisted.
        """
        path = self.get('etherseed_path') or self.user_dir()
        if path is None:
            self.logger.info("no data directory, config changes will not be saved")
            return None
        make_dir(path, allow_symlink=False)
        self.logger.info(f"data directory {path}")
        return path

    @staticmethod
    def list_config_vars() -> Sequence[str]:
        return sorted(_config_var_from_key)

    def get(self, key: str, default=None) -> Any:
        assert isinstance(key, str), key
        with self.lock:
            if key in self.cmdline_options:
                return self.cmdline_options[key]
            return self.user_config.get(key, default)

    def is_set(self, key: Union[str, ConfigVar]) -> bool:
        if isinstance(key, ConfigVar):
            key = key.key()
        return self.get(key) is not None

    def is_modifiable(self, key: Union[str, ConfigVar]) -> bool:
        if isinstance(key, ConfigVar):
            key = key.key()
        return key not in self.cmdline_options

    def set_key(self, key: Union[str, ConfigVar], value, *, save=True) -> None:
        """Stores value in the user config (None deletes the key).
        Keys given as options cannot be changed.
        """
        if isinstance(key, ConfigVar):
            key = key.key()
        assert isinstance(key, str), key
        if not self.is_modifiable(key):
            self.logger.warning(f"not changing config key {key!r}, it is set by an option")
            return
        try:
            json.dumps(value)
        except TypeError as e:
            raise ValueError(f"config key {key!r}: value is not JSON serializable: {value!r}") from e
        with self.lock:
            if value is None:
                self.user_config.pop(key, None)
            else:
                self.user_config[key] = value
            if save:
                self.save_user_config()

    def save_user_config(self) -> None:
        if self.CONFIG_FORGET_CHANGES or not self.path:
            return
        from .storage import write_file_atomically
        with self.lock:
            data = json.dumps(self.user_config, indent=4, sort_keys=True)
        path = os.path.join(self.path, CONFIG_FILENAME)
        try:
            write_file_atomically(path, data.encode('utf-8'))
        except OSError:
            # the data directory went away under us (e.g. removable drive)
            if os.path.exists(self.path):
                raise

    def _check_value_ranges(self) -> None:
        """Refuses settings the library would fail on later, at first use."""
        from .keystore import default_kdf_params, KdfParamsError
        from .derivation import DerivationPath
        try:
            default_kdf_params(self).validate()
        except KdfParamsError as e:
            raise ValueError(f"invalid keystore kdf settings: {e}") from e
        if self.MNEMONIC_STRENGTH_BITS not in constants.MNEMONIC_ENTROPY_BITS:
            raise ValueError(
                f"config key {SimpleConfig.MNEMONIC_STRENGTH_BITS.key()!r} must be one of "
                f"{constants.MNEMONIC_ENTROPY_BITS}, got {self.MNEMONIC_STRENGTH_BITS!r}")
        DerivationPath.from_str(self.WALLET_DERIVATION_PATH)
        if self.WALLET_SEED_CONFIRMATION_WORDS < 1:
            raise ValueError(
                f"config key {SimpleConfig.WALLET_SEED_CONFIRMATION_WORDS.key()!r} must be at least 1")

    def __setattr__(self, name, value):
        # after __init__, only existing attributes (ConfigVars included) can be
        # assigned: config.KEYSTORE_SCRYPT_NN = 1024 must not pass silently
        if not getattr(self, "_init_done", False) or hasattr(self, name):
            return super().__setattr__(name, value)
        raise AttributeError(f"SimpleConfig has no attribute {name!r}, is it a mistyped ConfigVar?")

    # keystore encryption of new keystores
    KEYSTORE_KDF = ConfigVar('keystore_kdf', default='scrypt', type_=str)
    KEYSTORE_SCRYPT_N = ConfigVar('keystore_scrypt_n', default=262144, type_=int)
    KEYSTORE_SCRYPT_R = ConfigVar('keystore_scrypt_r', default=8, type_=int)
    KEYSTORE_SCRYPT_P = ConfigVar('keystore_scrypt_p', default=1, type_=int)
    KEYSTORE_PBKDF2_ITERATIONS = ConfigVar('keystore_pbkdf2_c', default=262144, type_=int)
    # wallet creation
    MNEMONIC_STRENGTH_BITS = ConfigVar('mnemonic_strength_bits', default=128, type_=int)
    WALLET_DERIVATION_PATH = ConfigVar('derivation_path', default=constants.DEFAULT_DERIVATION_PATH, type_=str)
    WALLET_REQUIRE_SEED_CONFIRMATION = ConfigVar('require_seed_confirmation', default=True, type_=bool)
    WALLET_SEED_CONFIRMATION_WORDS = ConfigVar('seed_confirmation_words', default=3, type_=int)
    # logging
    LOG_TO_FILE = ConfigVar('log_to_file', default=False, type_=bool)
    VERBOSITY = ConfigVar('verbosity', default='', type_=str)
    VERBOSITY_SHORTCUTS = ConfigVar('verbosity_shortcuts', default='', type_=str)
    CONFIG_FORGET_CHANGES = ConfigVar('forget_config', default=False, type_=bool)


def read_user_config(path: Optional[str]) -> Dict[str, Any]:
    """The JSON object in <path>/config, or {} if there is none."""
    if not path:
        return {}
    config_path = os.path.join(path, CONFIG_FILENAME)
    try:
        with open(config_path, "r", encoding='utf-8') as f:
            result = json.load(f)
    except FileNotFoundError:
        return {}
    except ValueError as e:
        raise ValueError(f"Invalid config file at {config_path}: {e}") from e
    if not isinstance(result, dict):
        raise ValueError(f"Invalid config file at {config_path}: not a JSON object")
    return result


def value_or_default(config: Optional[SimpleConfig], name: str) -> Any:
    """config.<name>, or the ConfigVar default when running without a config."""
    if config is not None:
        return getattr(config, name)
    config_var = getattr(SimpleConfig, name)
    assert isinstance(config_var, ConfigVar), name
    return config_var.get_default_value()
