"""
Round letter alphabets and uniform letter draws.

The draw uses secrets.SystemRandom by default so the letter of the next round
cannot be predicted from earlier ones; tests inject a seeded random.Random.
"""

import random
import secrets
import string

from letterdash.logic.enums import Language

PERSIAN_LETTERS: tuple[str, ...] = (
    "ا", "ب", "پ", "ت", "ث", "ج", "چ", "ح", "خ", "د", "ذ", "ر", "ز", "ژ", "س", "ش",
    "ص", "ض", "ط", "ظ", "ع", "غ", "ف", "ق", "ک", "گ", "ل", "م", "ن", "و", "ه", "ی",
)  # fmt: skip

ENGLISH_LETTERS: tuple[str, ...] = tuple(string.ascii_uppercase)

ALPHABETS: dict[Language, tuple[str, ...]] = {
    Language.PERSIAN: PERSIAN_LETTERS,
    Language.ENGLISH: ENGLISH_LETTERS,
}

_system_random = secrets.SystemRandom()


def draw_letter(language: Language, rng: random.Random | None = None) -> str:
    """Pick one letter uniformly from the alphabet of the given language."""
    return (rng or _system_random).choice(ALPHABETS[language])
