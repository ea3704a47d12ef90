"""Tests for the text <-> morse codec."""

import pytest

from morse_timing.codec import (MORSE_TO_TEXT, MorseMessage, looks_like_morse, morse_to_text,
                                text_to_ditdah, text_to_morse, tidy_morse)
from morse_timing.errors import TranslationError


class TestTextToMorse:
    """Text to morse translation."""

    @pytest.mark.parametrize("args,morse,message,has_error", [
        ([""], "", "", False),
        (["S"], "...", "S", False),
        (["s"], "...", "S", False),
        ([" S"], "...", "S", False),
        (["S "], "...", "S", False),
        (["s s"], "... / ...", "S S", False),
        (["s  s"], "... / ...", "S S", False),
        (["<AA>"], ".-.-", "<AA>", False),
        (["<AA>", True], ".-.-", "<AA>", False),
        (["<AA>", False], "# .- .- #", "#<#AA#>#", True),
        (["<AAA>", True], "#", "#<AAA>#", True),
    ])
    def test_translation(self, args, morse, message, has_error):
        res = text_to_morse(*args)
        assert res.morse == morse
        assert res.message == message
        assert res.has_error is has_error


class TestDitDah:
    """Spoken rendering."""

    @pytest.mark.parametrize("text,expected", [
        ("", ""),
        ("S", "Di-di-dit."),
        ("C", "Dah-di-dah-dit."),
        ("SS", "Di-di-dit di-di-dit."),
        ("S S", "Di-di-dit, di-di-dit."),
    ])
    def test_ditdah(self, text, expected):
        assert text_to_ditdah(text) == expected


class TestMorseToText:
    """Morse to text translation."""

    @pytest.mark.parametrize("args,morse,message,has_error", [
        ([""], "", "", False),
        (["."], ".", "E", False),
        (["-"], "-", "T", False),
        (["_"], "-", "T", False),
        ([" "], "", "", False),
        (["/"], "/", " ", False),
        (["|"], "/", " ", False),
        (["//"], "/", " ", False),
        (["..."], "...", "S", False),
        ([".-.-.-.-.-.-"], "#.-.-.-.-.-.-#", "#", True),
        ([" ..."], "...", "S", False),
        (["... "], "...", "S", False),
        (["/ ..."], "/ ...", " S", False),
        (["... /"], "... /", "S ", False),
        (["... ..."], "... ...", "SS", False),
        (["...  ..."], "... ...", "SS", False),
        (["... / ..."], "... / ...", "S S", False),
        (["...  /  ..."], "... / ...", "S S", False),
        ([".../..."], "... / ...", "S S", False),
        (["... // ..."], "... / ...", "S S", False),
        ([".-.-"], ".-.-", "<AA>", False),
        ([".-.-", True], ".-.-", "<AA>", False),
        ([".-.-", False], "#.-.-#", "#", True),
    ])
    def test_translation(self, args, morse, message, has_error):
        res = morse_to_text(*args)
        assert res.morse == morse
        assert res.message == message
        assert res.has_error is has_error

    def test_prosign_shadows_punctuation(self):
        assert morse_to_text(".-.-.", True).message == "<AR>"
        assert morse_to_text(".-.-.", False).message == "+"

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            MORSE_TO_TEXT["...---..."] = "SOS"

    def test_every_character_round_trips(self):
        text = "ABCDEFGHIJKLMNOPQRSTUVWXYZ 0123456789 .,:?'-/()\"@=&+!"
        morse = text_to_morse(text, False).morse
        assert morse_to_text(morse, False).message == text


class TestTidy:
    """Canonical morse and morse detection."""

    def test_tidy_morse(self):
        assert tidy_morse(" ._  |  _.. ") == ".- / -.."
        assert tidy_morse(".- ./.") == ".- . / ."

    @pytest.mark.parametrize("text,expected", [
        ("... --- ...", True),
        ("/", True),
        ("._ |", True),
        ("SOS", False),
        ("", False),
        (". a", False),
    ])
    def test_looks_like_morse(self, text, expected):
        assert looks_like_morse(text) is expected


class TestMorseMessage:
    """Direction guessing and error handling."""

    def test_text_input(self):
        msg = MorseMessage()
        assert msg.translate("sos") == "... --- ..."
        assert msg.input_was_morse is False
        assert msg.input == "SOS"
        assert msg.has_error is False

    def test_morse_input(self):
        msg = MorseMessage()
        assert msg.translate("... --- ...") == "SOS"
        assert msg.input_was_morse is True

    def test_forced_direction(self):
        msg = MorseMessage()
        assert msg.translate(".", is_morse=False) == ".-.-.-"

    def test_error_raises_with_best_attempt(self):
        msg = MorseMessage()
        with pytest.raises(TranslationError) as exc:
            msg.translate("a~b")
        assert exc.value.translation.message == "A#~#B"
        assert msg.has_error is True
        msg.clear_error()
        assert msg.message == "AB"
        assert msg.morse == ".-  -..."
        assert msg.has_error is False

    def test_morse_error_keeps_bad_morse(self):
        msg = MorseMessage()
        with pytest.raises(TranslationError):
            msg.translate("... ........")
        assert msg.message == "S#"
        msg.clear_error()
        assert msg.morse == "... ........"
