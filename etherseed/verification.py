# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""Asking the user to type back a few words of their seed phrase."""

import random
import secrets
from typing import NamedTuple, Tuple, Sequence, Optional

from .logging import get_logger


_logger = get_logger(__name__)


class ChallengeWord(NamedTuple):
    index: int  # 0-based position in the mnemonic
    word: str


VerificationSample = Tuple[ChallengeWord, ...]


def sample(mnemonic: str, count: int, *, rng: Optional[random.Random] = None) -> VerificationSample:
    """Picks count distinct positions of mnemonic, uniformly, in ascending order."""
    words = mnemonic.split()
    if not (1 <= count <= len(words)):
        raise ValueError(f"count must be in [1, {len(words)}], got {count}")
    if rng is None:
        rng = secrets.SystemRandom()
    indices = sorted(rng.sample(range(len(words)), count))
    _logger.debug(f"challenge on {count} of {len(words)} words")
    return tuple(ChallengeWord(index=i, word=words[i]) for i in indices)


def check(challenge: VerificationSample, answers: Sequence[str]) -> bool:
    """Answers must match the challenge words exactly, in order."""
    if len(answers) != len(challenge):
        return False
    return all(answer == item.word for item, answer in zip(challenge, answers))
