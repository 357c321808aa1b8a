"""Simple note strings turned into MIDI files and back, plus ear-training helpers."""

from __future__ import annotations

import io
import math
import os
import random
import re
import subprocess
from os import PathLike
from pathlib import Path

import mido

NOTE_MAP = {
    "C": 60,
    "Db": 61,
    "D": 62,
    "Eb": 63,
    "E": 64,
    "F": 65,
    "Gb": 66,
    "G": 67,
    "Ab": 68,
    "A": 69,
    "Bb": 70,
    "B": 71,
}
TICKS_PER_QUARTER = 960
TEMPO_BPM = 72
VELOCITY = 120
DEFAULT_TIMBRE = 40
INSTRUMENT = "Violin"
LOWEST_TARGET = 55
TARGET_SPAN = 34
INDIVIDUAL_MAX_ERRORS = 3
TEAM_MAX_ERRORS = 10
ROUNDS = 5

_NAMES = {pitch % 12: name for name, pitch in NOTE_MAP.items()}
_INT = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_U32 = 0xFFFFFFFF


def _u8(value: int) -> int:
    return value & 0xFF


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_note_letter(char: str) -> bool:
    return "A" <= char <= "G"


def note_pitch(base: int, octave: int) -> int:
    """The MIDI pitch of pitch class ``base`` in ``octave`` (capped at 10, kept below 128)."""
    base = _u8(base)
    octave = _u8(octave)
    if octave > 10:
        octave = 10
    if octave == 0:
        return base
    result = _u8(base + 12 * octave)
    if result > 127:
        result -= 12
    return result


def note_name(pitch: int) -> str:
    """The note letter, with a flat where needed, of a pitch."""
    return _NAMES[pitch % 12]


def process_one(note: str) -> int:
    """The pitch written by a single note such as ``C#6``; the octave defaults to 5."""
    base = 0
    level = 0
    for char in note.replace(" ", ""):
        if _is_note_letter(char):
            base = NOTE_MAP[char] % 12
        elif char == "b":
            base = _u8(base - 1)
        elif char == "#":
            base = _u8(base + 1)
        elif _is_digit(char):
            level = _u8(level * 10 + int(char))
    if level == 0:
        level = 5
    return note_pitch(base, level)


def _atoi(text: str) -> int:
    if not _INT.fullmatch(text):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(text)))


def _duration(length: int) -> int:
    """Ticks of a note lasting 2**length quarter notes."""
    if length >= 0:
        factor = (1 << length) & _U32 if length < 32 else 0
        return (TICKS_PER_QUARTER * factor) & _U32
    if -length >= 32:
        raise ValueError(f"note length 2^{length} is too short")
    return TICKS_PER_QUARTER // (1 << -length)


def build_midi(text: str, timbre: int = DEFAULT_TIMBRE) -> mido.MidiFile:
    """Build a one-track MIDI file from a note string such as ``CCGGAAGR``.

    Notes are ``A``-``G`` with optional ``b``/``#``, an octave and ``<n`` for a
    length of 2**n quarters; ``R`` is a rest. Raises ValueError on any other character.
    """
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name=INSTRUMENT, time=0))
    track.append(mido.Message("program_change", channel=0, program=timbre & 0x7F, time=0))

    notes = text.replace(" ", "")
    size = len(notes)
    delay = 0
    i = 0
    while i < size:
        base = 0
        level = 0
        rest = False
        digits = ""
        while True:
            char = notes[i]
            if char == "R":
                rest = True
                i += 1
            elif _is_note_letter(char):
                base = NOTE_MAP[char] % 12
                i += 1
            elif char == "b":
                base = _u8(base - 1)
                i += 1
            elif char == "#":
                base = _u8(base + 1)
                i += 1
            elif _is_digit(char):
                level = _u8(level * 10 + int(char))
                i += 1
            elif char == "<":
                i += 1
                start = i
                while i < size and (notes[i] == "-" or _is_digit(notes[i])):
                    i += 1
                digits += notes[start:i]
            else:
                raise ValueError(f"无法解析第{i}个位置的{char}字符")
            if i >= size or _is_note_letter(notes[i]) or notes[i] == "R":
                break
        length = _atoi(digits)
        if rest:
            delay = _duration(length)
            continue
        if level == 0:
            level = 5
        pitch = note_pitch(base, level) & 0x7F
        track.append(
            mido.Message("note_on", channel=0, note=pitch, velocity=VELOCITY, time=delay)
        )
        track.append(
            mido.Message("note_off", channel=0, note=pitch, velocity=0, time=_duration(length))
        )
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))

    midi = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_QUARTER)
    midi.tracks.append(track)
    return midi


def write_midi(path: str | PathLike[str], text: str, timbre: int = DEFAULT_TIMBRE) -> bool:
    """Write the MIDI file for ``text`` unless ``path`` already exists.

    Returns whether a file was written.
    """
    target = Path(path)
    if target.exists():
        return False
    midi = build_midi(text, timbre)
    with target.open("wb") as handle:
        midi.save(file=handle)
    return True


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _power(ticks: float) -> int | None:
    length = ticks / TICKS_PER_QUARTER
    if length <= 0:
        return None
    return _round_half_away(math.log2(length))


def midi_to_text(data: bytes, track_no: int) -> str:
    """Write one track of a MIDI file back as a note string.

    A track number that does not exist gives an empty string; data that is not
    a MIDI file raises ValueError.
    """
    try:
        midi = mido.MidiFile(file=io.BytesIO(data))
    except (OSError, EOFError, ValueError, KeyError, IndexError) as err:
        raise ValueError(f"invalid midi data: {err}") from err
    if not 0 <= track_no < len(midi.tracks):
        return ""

    parts: list[str] = []
    ticks = 0
    start = 0
    end = 0
    start_note = 0
    end_note = 0
    for message in midi.tracks[track_no]:
        ticks += message.time
        if message.is_meta:
            continue
        is_on = message.type == "note_on" and message.velocity > 0
        if is_on:
            start = ticks
            start_note = message.note
        if message.type == "note_off" or (message.type == "note_on" and message.velocity == 0):
            end = ticks
            end_note = message.note
            if start_note == end_note:
                parts.append(note_name(message.note))
                level = message.note // 12
                if level != 5:
                    parts.append(str(level))
                power = _power(end - start)
                if power is not None and power >= -4 and power != 0:
                    parts.append(f"<{power}")
                start_note = 0
                end_note = 0
        if is_on and start > end:
            power = _power(start - end)
            if power == 0:
                parts.append("R")
            elif power is not None and power >= -4:
                parts.append(f"R<{power}")
    return "".join(parts)


def render_wav(
    midi_path: str | PathLike[str], wav_path: str | PathLike[str] | None = None
) -> Path:
    """Render a MIDI file to WAV with timidity and return the WAV path."""
    source = os.fspath(midi_path)
    target = os.fspath(wav_path) if wav_path is not None else source.replace(".mid", ".wav")
    subprocess.run(["timidity", source, "-Ow", "-o", target], check=True)
    return Path(target)


def answer_for(target: int) -> str:
    """The note string naming a target pitch, octave included."""
    return note_name(target) + str(target // 12)


def random_target(rng: random.Random | None = None) -> int:
    """A random pitch to guess in ear training."""
    return LOWEST_TARGET + (rng or random).randrange(TARGET_SPAN)


def score_round(team: bool, error_count: int, max_errors: int) -> float:
    """The points won for a round ended after ``error_count`` wrong answers."""
    if team:
        return 1.0 if error_count != max_errors else 0.0
    return {0: 1.0, 1: 0.5, 2: 0.2}.get(error_count, 0.0)


def validate_timbre(timbre: int) -> int:
    """Check that a MIDI program number is 0 to 127 and return it."""
    if timbre < 0 or timbre > 127:
        raise ValueError("音色应该在0~127之间")
    return timbre