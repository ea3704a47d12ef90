"""Tests for the streaming decoder."""

import math

import pytest

from morse_timing.codec import tidy_morse
from morse_timing.decoder import Element, MorseDecoder, SpeedEvent
from morse_timing.timings import morse_to_timings, text_to_timings


def feed(dec, timings):
    for t in timings:
        dec.add_timing(t)


class TestThresholds:
    """Thresholds follow the speed."""

    def test_twenty_wpm(self):
        dec = MorseDecoder(20)
        assert dec.dit_len == 60
        assert dec.fdit_len == 60
        assert dec.dit_dah_threshold == 120
        assert dec.dah_space_threshold == 300

    def test_farnsworth(self):
        dec = MorseDecoder(20, 10)
        assert dec.fdit_len == 218
        assert dec.dit_dah_threshold == 120
        assert dec.dah_space_threshold == 1090

    @pytest.mark.parametrize("duration,element", [
        (60, Element.DIT),
        (119, Element.DIT),
        (120, Element.DAH),
        (400, Element.DAH),
        (-60, Element.DIT_SPACE),
        (-120, Element.CHAR_SPACE),
        (-299, Element.CHAR_SPACE),
        (-300, Element.WORD_SPACE),
        (-5000, Element.WORD_SPACE),
    ])
    def test_classify(self, duration, element):
        assert MorseDecoder(20).classify(duration) is element


class TestStreaming:
    """Messages come out as silences arrive."""

    def test_events_per_flush(self):
        events = []
        dec = MorseDecoder(20, on_message=events.append)
        feed(dec, [60, -60, 180, -180, 60, -420, 60])
        dec.flush()

        assert [e.message for e in events] == ["A", "E ", "E"]
        assert [e.morse for e in events] == [".-", " ./", "."]
        assert [e.timings for e in events] == [[60, -60, 180], [-180, 60, -420], [60]]
        assert not any(e.has_error for e in events)
        assert dec.morse == ".- ./."
        assert tidy_morse(dec.morse) == ".- . / ."
        assert dec.message == "AE E"
        assert dec.unused_times == []

    def test_element_lists(self):
        dec = MorseDecoder(20)
        feed(dec, [60, -60, 180, -180, 60, -420, 60])
        dec.flush()
        assert dec.dits == [60, 60, 60]
        assert dec.dahs == [180]
        assert dec.dit_spaces == [60]
        assert dec.dah_spaces == [180]
        assert dec.spaces == [420]

    def test_second_flush_is_quiet(self):
        events = []
        dec = MorseDecoder(20, on_message=events.append)
        feed(dec, [60, -60, 180])
        assert dec.flush() is not None
        assert dec.flush() is None
        assert len(events) == 1

    def test_flush_empty(self):
        dec = MorseDecoder(20)
        assert dec.flush() is None
        assert dec.message == ""

    def test_round_trip_text(self):
        dec = MorseDecoder(18)
        feed(dec, text_to_timings("THE QUICK BROWN FOX", 18))
        dec.flush()
        assert dec.message == "THE QUICK BROWN FOX"

    def test_round_trip_farnsworth(self):
        dec = MorseDecoder(20, 8)
        feed(dec, text_to_timings("CQ CQ DE G0ABC", 20, 8))
        dec.flush()
        assert dec.message == "CQ CQ DE G0ABC"

    def test_zero_ignored(self):
        dec = MorseDecoder(20)
        feed(dec, [60, 0, 0, -60, 60])
        assert dec.unused_times == [60, -60, 60]


class TestBuffering:
    """Merging, glitches and held-back silence."""

    def test_same_sign_merges(self):
        dec = MorseDecoder(20)
        feed(dec, [30, 30, -30, -30, 90, 90])
        assert dec.unused_times == [60, -60, 180]
        dec.flush()
        assert dec.message == "A"

    def test_glitch_in_tone(self):
        dec = MorseDecoder(20)
        feed(dec, [100, -1, 100])
        assert dec.unused_times == [201]
        dec.flush()
        assert dec.message == "T"
        assert dec.dahs == [201]

    def test_glitch_in_silence(self):
        dec = MorseDecoder(20)
        feed(dec, [60, -30, 1, -30, 60])
        dec.flush()
        assert dec.message == "I"
        assert dec.dit_spaces == [61]

    def test_short_trailing_silence_held_back(self):
        events = []
        dec = MorseDecoder(20, on_message=events.append)
        feed(dec, [60, -180])
        assert [e.message for e in events] == ["E"]
        assert dec.unused_times == [-180]
        assert dec.flush() is None
        assert dec.unused_times == [-180]

    def test_word_space_not_repeated(self):
        events = []
        dec = MorseDecoder(20, on_message=events.append)
        feed(dec, [60, -420])
        assert dec.message == "E "
        dec.add_timing(-500)
        assert len(events) == 1
        assert dec.unused_times == []
        feed(dec, [60])
        dec.flush()
        assert dec.message == "E E"

    def test_farnsworth_boundary(self):
        plain = MorseDecoder(20, 10)
        feed(plain, [60, -200])
        assert plain.message == "E"

        boundary = MorseDecoder(20, 10, farnsworth_boundary=True)
        feed(boundary, [60, -200])
        assert boundary.message == ""
        assert boundary.unused_times == [60, -200]

        feed(boundary, [-454])
        assert boundary.message == "E"

    def test_reset(self):
        dec = MorseDecoder(15)
        feed(dec, [80, -80, 240, -240])
        dec.reset()
        assert dec.unused_times == []
        assert dec.elements == []
        assert dec.message == ""
        assert dec.morse == ""
        assert dec.wpm == 15


class TestProsigns:
    """Prosign decoding is opt-in."""

    def test_plain_table(self):
        dec = MorseDecoder(20)
        feed(dec, morse_to_timings(".-.-.", 20))
        dec.flush()
        assert dec.message == "+"

    def test_prosign_table(self):
        dec = MorseDecoder(20, use_prosigns=True)
        feed(dec, morse_to_timings(".-.-.", 20))
        dec.flush()
        assert dec.message == "<AR>"

    def test_unknown_character(self):
        events = []
        dec = MorseDecoder(20, on_message=events.append)
        feed(dec, morse_to_timings("........", 20))
        dec.flush()
        assert events[-1].has_error is True
        assert events[-1].message == "#"


class TestSpeed:
    """set_speed and set_unit_lengths keep wpm and fwpm consistent."""

    def test_construction_is_silent(self):
        events = []
        MorseDecoder(20, 10, on_speed_change=events.append)
        assert events == []

    def test_fwpm_defaults_to_wpm(self):
        dec = MorseDecoder(15)
        assert (dec.wpm, dec.fwpm) == (15, 15)

    def test_fwpm_raises_wpm(self):
        dec = MorseDecoder(20, 10)
        assert dec.set_speed(fwpm=25) == (25, 25)

    def test_wpm_lowers_fwpm(self):
        dec = MorseDecoder(25)
        assert dec.set_speed(wpm=15) == (15, 15)

    def test_conflicting_pair_favours_fwpm(self):
        dec = MorseDecoder(20)
        assert dec.set_speed(10, 15) == (15, 15)

    def test_keep_unchanged(self):
        dec = MorseDecoder(20, 10)
        assert dec.set_speed() == (20, 10)

    @pytest.mark.parametrize("bad", [math.nan, "fast", object()])
    def test_non_numeric_uses_default(self, bad):
        dec = MorseDecoder(15, default_wpm=20)
        assert dec.set_speed(wpm=bad)[0] == 20

    def test_minimum_speed(self):
        dec = MorseDecoder(20)
        assert dec.set_speed(0.5) == (1, 1)
        assert dec.set_speed(-10) == (1, 1)

    @pytest.mark.parametrize("bad", [math.inf, -math.inf, "inf"])
    def test_infinite_uses_default(self, bad):
        dec = MorseDecoder(15, default_wpm=20, default_fwpm=10)
        assert dec.set_speed(bad, bad) == (20, 10)
        assert dec.dit_len == 60

    def test_maximum_speed(self):
        dec = MorseDecoder(20)
        assert dec.set_speed(3000)[0] == 1200
        assert dec.dit_len == 1
        wpm, fwpm = dec.set_unit_lengths(fdit_len=5)
        assert dec.dit_len == 1
        assert wpm == pytest.approx(1200)
        assert fwpm < wpm

    def test_speed_event_on_change(self):
        events = []
        dec = MorseDecoder(20, on_speed_change=events.append)
        dec.set_speed(12)
        assert events[-1] == SpeedEvent(12.0, 12.0)


class TestUnitLengths:
    """Setting dit lengths directly."""

    def test_dit_only(self):
        dec = MorseDecoder(20)
        wpm, fwpm = dec.set_unit_lengths(100)
        assert wpm == pytest.approx(12)
        assert fwpm == pytest.approx(12)
        assert dec.dit_dah_threshold == 200

    def test_short_fdit_pulls_dit_down(self):
        dec = MorseDecoder(20)
        dec.set_unit_lengths(100)
        wpm, fwpm = dec.set_unit_lengths(fdit_len=50)
        assert (wpm, fwpm) == (pytest.approx(24), pytest.approx(24))

    def test_conflict_favours_dit(self):
        dec = MorseDecoder(20)
        assert dec.set_unit_lengths(60, 40) == (pytest.approx(20), pytest.approx(20))

    def test_farnsworth_lengths(self):
        dec = MorseDecoder(20)
        wpm, fwpm = dec.set_unit_lengths(60, 218)
        assert wpm == pytest.approx(20)
        assert fwpm == pytest.approx(10, abs=0.05)
        assert dec.dah_space_threshold == 1090

    def test_lengths_under_a_millisecond(self):
        dec = MorseDecoder(20)
        assert dec.set_unit_lengths(0.25, 0.25) == (pytest.approx(1200), pytest.approx(1200))
        assert dec.dit_len == 1
        assert dec.fdit_len == 1

    @pytest.mark.parametrize("bad", [0, -60, math.nan, math.inf, "slow"])
    def test_unusable_values_ignored(self, bad):
        dec = MorseDecoder(20)
        assert dec.set_unit_lengths(bad, bad) == (pytest.approx(20), pytest.approx(20))

    def test_fires_speed_event(self):
        events = []
        dec = MorseDecoder(20, on_speed_change=events.append)
        dec.set_unit_lengths(120)
        assert events[-1].wpm == pytest.approx(10)


class TestHooks:
    """Element hooks see every classification."""

    def test_hook_sees_elements(self):
        seen = []
        dec = MorseDecoder(20)
        dec.add_element_hook(lambda d, e: seen.append((d, e)))
        feed(dec, [60, -60, 180])
        dec.flush()
        assert seen == [(60, Element.DIT), (60, Element.DIT_SPACE), (180, Element.DAH)]

    def test_remove_hook(self):
        seen = []
        hook = lambda d, e: seen.append(e)  # noqa: E731
        dec = MorseDecoder(20)
        dec.add_element_hook(hook)
        dec.remove_element_hook(hook)
        dec.remove_element_hook(hook)
        feed(dec, [60])
        dec.flush()
        assert seen == []
