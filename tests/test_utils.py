import struct

import pytest

from audioindex.utils import (
    FILE_TYPE_MP3,
    FILE_TYPE_UNKNOWN,
    FILE_TYPE_WAV,
    AudInfo,
    FileMeta,
    extract_file_meta,
    parse_aud_from_filename,
    tick_ms,
)


def _wav_bytes(total_size, fmt, bytes_per_sec):
    header = (
        b"RIFF"
        + struct.pack("<I", total_size - 8)
        + b"WAVE"
        + b"fmt "
        + struct.pack("<IHHIIHH", 16, fmt, 1, 8000, bytes_per_sec, 2, 16)
        + b"data"
        + struct.pack("<I", total_size - 44)
    )
    assert len(header) == 44
    return header + b"\x00" * (total_size - 44)


def test_wav_metadata(tmp_path):
    path = tmp_path / "a.wav"
    path.write_bytes(_wav_bytes(1000, 1, 250))
    meta = extract_file_meta(path)
    assert meta == FileMeta(size=1000, duration=4, file_type=FILE_TYPE_WAV, codec="1")


def test_wav_zero_rate_has_no_duration(tmp_path):
    path = tmp_path / "b.wav"
    path.write_bytes(_wav_bytes(600, 3, 0))
    meta = extract_file_meta(path)
    assert meta.duration == 0
    assert meta.codec == "3"
    assert meta.file_type == FILE_TYPE_WAV


def test_short_wav_uses_generic_codec(tmp_path):
    path = tmp_path / "c.wav"
    path.write_bytes(b"RIFF\x00\x00\x00\x00WAVE\x00\x00")
    meta = extract_file_meta(path)
    assert meta.file_type == FILE_TYPE_WAV
    assert meta.codec == "wav"
    assert meta.duration == 0
    assert meta.size == 14


def test_mp3_metadata(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 20)
    meta = extract_file_meta(path)
    assert meta.file_type == FILE_TYPE_MP3
    assert meta.codec == "mp3"
    assert meta.duration == 0
    assert meta.size == 23


def test_unknown_type_takes_extension(tmp_path):
    path = tmp_path / "clip.flac"
    path.write_bytes(b"xyz")
    meta = extract_file_meta(path)
    assert meta.file_type == FILE_TYPE_UNKNOWN
    assert meta.codec == "flac"
    assert meta.size == 3


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        extract_file_meta(tmp_path / "absent.wav")


def test_parse_filename_example():
    info = parse_aud_from_filename("audio2 2025-06-09 14:30:45.wav")
    assert info == AudInfo(ch=2, year=25, month=6, day=9, hour=14, minute=30, second=45)


def test_parse_filename_record_fields():
    info = parse_aud_from_filename("audio2 2025-06-09 14:30:45.wav")
    assert info.to_record_fields() == {
        "ch": 2, "yy": 25, "MM": 6, "dd": 9, "hh": 14, "mm": 30, "ss": 45,
    }


def test_parse_filename_without_extension():
    info = parse_aud_from_filename("audio7 2031-12-31 23:59:58")
    assert (info.ch, info.month, info.day) == (7, 12, 31)
    assert (info.hour, info.minute, info.second) == (23, 59, 58)


def test_parse_filename_strips_only_last_extension():
    info = parse_aud_from_filename("audio1 2025-01-02 03:04:05.part.wav")
    assert info is not None
    assert info.ch == 1
    assert info.second == 5


@pytest.mark.parametrize(
    "name", ["record.wav", "audio 2025-06-09.wav", "audiox 2025-06-09 14:30:45.wav", ""]
)
def test_parse_filename_rejects(name):
    assert parse_aud_from_filename(name) is None


def test_tick_ms_is_monotonic_and_32_bit():
    first = tick_ms()
    second = tick_ms()
    assert 0 <= first <= second < 2**32