# Copyright (C) 2012 thomasv@gitorious
# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""Translation of user-facing error messages.

etherseed ships no catalogs of its own. An application that has them installs
a gettext translations object with set_translations(); until then messages
are returned in English.
"""

import gettext
import string
from typing import Optional

from .logging import get_logger


_logger = get_logger(__name__)

_translations = gettext.NullTranslations()


def set_translations(translations: Optional[gettext.NullTranslations]) -> None:
    """Installs the catalog used by _(). None goes back to English."""
    global _translations
    _translations = translations if translations is not None else gettext.NullTranslations()
    _logger.info(f"translations set to {type(_translations).__name__}")


def _format_fields(s: str):
    return [(field_name, format_spec, conversion)
            for _literal, field_name, format_spec, conversion in string.Formatter().parse(s)
            if field_name is not None]


def keeps_format_fields(msg: str, translation: str) -> bool:
    """Whether translation can stand in for msg in msg.format(...) calls:
    same number of replacement fields, with the same names. Order may differ.
    """
    try:
        translated_fields = _format_fields(translation)
    except ValueError:
        return False
    source_fields = _format_fields(msg)
    if len(source_fields) != len(translated_fields):
        return False
    return sorted(f[0] for f in source_fields) == sorted(f[0] for f in translated_fields)


# f-strings cannot be translated. Translate the template, then .format it:
#       _("Unknown word at position {}").format(i)
def _(msg: str) -> str:
    if not msg:
        return msg
    translation = _translations.gettext(msg)
    if translation is not msg and not keeps_format_fields(msg, translation):
        _logger.info(f"ignoring translation with different format fields: {msg!r} -> {translation!r}")
        return msg
    return translation
