"""
Text <-> Morse codec
====================
Dictionary translation between text and canonical morse (``[.-/ ]*``).

Untranslatable tokens are not fatal: they are marked with ``#`` and the
``has_error`` flag is set on the returned Translation.

    >>> text_to_morse("sos").morse
    '... --- ...'
    >>> morse_to_text(".- / -").message
    'A T'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from .errors import TranslationError


# ---------------------------------------------------------------------------
# Morse tables
# ---------------------------------------------------------------------------

_MORSE_MAP: Dict[str, str] = {
    "A": ".-", "B": "-...", "C": "-.-.", "D": "-..", "E": ".", "F": "..-.",
    "G": "--.", "H": "....", "I": "..", "J": ".---", "K": "-.-", "L": ".-..",
    "M": "--", "N": "-.", "O": "---", "P": ".--.", "Q": "--.-", "R": ".-.",
    "S": "...", "T": "-", "U": "..-", "V": "...-", "W": ".--", "X": "-..-",
    "Y": "-.--", "Z": "--..",
    "1": ".----", "2": "..---", "3": "...--", "4": "....-", "5": ".....",
    "6": "-....", "7": "--...", "8": "---..", "9": "----.", "0": "-----",
    ".": ".-.-.-", ",": "--..--", ":": "---...", "?": "..--..", "'": ".----.",
    "-": "-....-", "/": "-..-.", "(": "-.--.", ")": "-.--.-", '"': ".-..-.",
    "@": ".--.-.", "=": "-...-", "&": ".-...", "+": ".-.-.", "!": "-.-.--",
    " ": "/",   # not morse, but makes word spacing translate like any token
}

_PROSIGN_MAP: Dict[str, str] = {
    "<AA>": ".-.-",
    "<AR>": ".-.-.",
    "<AS>": ".-...",
    "<BK>": "-...-.-",
    "<BT>": "-...-",      # also <TV>
    "<CL>": "-.-..-..",
    "<CT>": "-.-.-",
    "<DO>": "-..---",
    "<KN>": "-.--.",
    "<SK>": "...-.-",     # also <VA>
    "<VA>": "...-.-",
    "<SN>": "...-.",      # also <VE>
    "<VE>": "...-.",
    "<SOS>": "...---...",
}

# Prosigns shadow the punctuation sharing their code (.-.-. reads as <AR>
# not +), and of two prosigns with one code the later is used.
TEXT_TO_MORSE: Mapping[str, str] = MappingProxyType(dict(_MORSE_MAP))
TEXT_TO_MORSE_PRO: Mapping[str, str] = MappingProxyType({**_MORSE_MAP, **_PROSIGN_MAP})
MORSE_TO_TEXT: Mapping[str, str] = MappingProxyType(
    {code: text for text, code in _MORSE_MAP.items()}
)
MORSE_TO_TEXT_PRO: Mapping[str, str] = MappingProxyType({
    **MORSE_TO_TEXT,
    **{code: sign for sign, code in _PROSIGN_MAP.items()},
})

_PROSIGN_RE = re.compile(r"^<...?>")
_MORSE_RE   = re.compile(r"^[/.-][ /.-]*$")


@dataclass(frozen=True)
class Translation:
    morse: str = ""
    message: str = ""
    has_error: bool = False


# ---------------------------------------------------------------------------
# Canonicalisation
# ---------------------------------------------------------------------------

def tidy_text(text: str) -> str:
    """Upper-case, trim and squash runs of whitespace to one space."""
    return re.sub(r"\s+", " ", text.upper().strip())


def tidy_morse(morse: str) -> str:
    """
    Canonicalise morse written with ``[.-_/| ]``.

    The result has single spaces between characters, words separated by
    ``' / '`` and no leading or trailing space. A lone ``'/'`` is possible.
    """
    morse = morse.replace("|", "/")
    morse = morse.replace("/", " / ")
    morse = re.sub(r"\s+", " ", morse)
    morse = re.sub(r"(/ )+/", "/", morse)
    morse = morse.replace("_", "-")
    return morse.strip()


def looks_like_morse(text: str) -> bool:
    """True if the input holds nothing but morse once canonicalised."""
    return _MORSE_RE.match(tidy_morse(text)) is not None


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

def _tokenise_text(text: str, use_prosigns: bool) -> List[str]:
    tokens = []
    while text:
        n = 1
        if use_prosigns:
            m = _PROSIGN_RE.match(text)
            if m:
                n = len(m.group(0))
        tokens.append(text[:n])
        text = text[n:]
    return tokens


def text_to_morse(text: str, use_prosigns: bool = True) -> Translation:
    """
    Translate text to canonical morse, e.g. ``'..- .. / --'``.

    An untranslatable token is surrounded by ``#`` in the message and a
    single ``#`` is put in the morse in its place.
    """
    text = tidy_text(text)
    if not text:
        return Translation()

    table = TEXT_TO_MORSE_PRO if use_prosigns else TEXT_TO_MORSE
    morse: List[str] = []
    message = ""
    has_error = False
    for token in _tokenise_text(text, use_prosigns):
        code = table.get(token)
        if code is None:
            message += "#" + token + "#"
            morse.append("#")
            has_error = True
        else:
            message += token
            morse.append(code)
    return Translation(" ".join(morse), message, has_error)


def morse_to_text(morse: str, use_prosigns: bool = True) -> Translation:
    """
    Translate morse to text, canonicalising the morse first.

    An untranslatable token becomes ``#`` in the message and is surrounded
    by ``#`` in the returned morse.
    """
    morse = tidy_morse(morse)
    if not morse:
        return Translation()

    table = MORSE_TO_TEXT_PRO if use_prosigns else MORSE_TO_TEXT
    out: List[str] = []
    message = ""
    has_error = False
    for token in morse.split(" "):
        char = table.get(token)
        if char is None:
            out.append("#" + token + "#")
            message += "#"
            has_error = True
        else:
            out.append(token)
            message += char
    return Translation(" ".join(out), message, has_error)


def text_to_ditdah(text: str, use_prosigns: bool = True) -> str:
    """Spell text out as spoken morse: ``'S S'`` -> ``'Di-di-dit, di-di-dit.'``."""
    ditdah = text_to_morse(text, use_prosigns).morse + " "
    ditdah = ditdah.replace(".", "di~").replace("-", "dah~")
    ditdah = ditdah.replace("~", "-")
    ditdah = ditdah.replace("- ", " ")
    ditdah = ditdah.replace("di ", "dit ")
    ditdah = ditdah.replace(" / ", ", ")
    ditdah = re.sub(r"^d", "D", ditdah)
    ditdah = re.sub(r" $", "", ditdah)
    ditdah = re.sub(r"([th])$", r"\1.", ditdah)
    return ditdah


class MorseMessage:
    """
    Translate in whichever direction the input calls for.

    ``translate()`` guesses whether the input is morse unless told, keeps
    both sides of the translation, and raises TranslationError if anything
    could not be translated. The attributes still hold the best attempt, so
    a caller can ``clear_error()`` and carry on.
    """

    def __init__(self, use_prosigns: bool = True):
        self.use_prosigns = use_prosigns
        self.input = ""
        self.output = ""
        self.morse = ""
        self.message = ""
        self.input_was_morse: Optional[bool] = None
        self.has_error: Optional[bool] = None

    def translate(self, text: str, is_morse: Optional[bool] = None) -> str:
        if is_morse is None:
            # a guess: "." on its own reads as morse
            is_morse = looks_like_morse(text)

        self.input_was_morse = bool(is_morse)
        if self.input_was_morse:
            translation = morse_to_text(text, self.use_prosigns)
        else:
            translation = text_to_morse(text, self.use_prosigns)

        self.morse = translation.morse
        self.message = translation.message
        if self.input_was_morse:
            self.input, self.output = self.morse, self.message
        else:
            self.input, self.output = self.message, self.morse

        self.has_error = translation.has_error
        if self.has_error:
            raise TranslationError("Error in input", translation)
        return self.output

    def clear_error(self) -> None:
        """Remove the ``#`` markers left by a failed translation."""
        if self.input_was_morse:
            self.morse = self.morse.replace("#", "")   # keep the bad morse itself
        else:
            self.message = re.sub(r"#[^#]*?#", "", self.message)
            self.morse = self.morse.replace("#", "")
        self.has_error = False
