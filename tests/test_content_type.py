"""内容类型嗅探测试。"""

from __future__ import annotations

import pytest

from nela_agi.content_type import UNKNOWN, extension_to_mime, guess_from_path, sniff

from fixtures.samples import (
    JPEG_BYTES,
    MP3_FRAME_BYTES,
    MP3_ID3_BYTES,
    PNG_BYTES,
    UNKNOWN_BYTES,
    WAV_BYTES,
)


class TestSniff:
    """文件头嗅探。"""

    @pytest.mark.parametrize(
        "data, expected",
        [
            (JPEG_BYTES, "image/jpeg"),
            (PNG_BYTES, "image/png"),
            (MP3_ID3_BYTES, "audio/mpeg"),
            (MP3_FRAME_BYTES, "audio/mpeg"),
            (WAV_BYTES, "audio/wav"),
        ],
    )
    def test_known_signatures(self, data: bytes, expected: str):
        assert sniff(data) == expected

    @pytest.mark.parametrize("second", [0xFA, 0xFB, 0xF2, 0xF3, 0xE2, 0xE3])
    def test_all_mp3_frame_sync_variants(self, second: int):
        assert sniff(bytes([0xFF, second, 0x90, 0x00])) == "audio/mpeg"

    def test_empty_is_unknown(self):
        assert sniff(b"") == UNKNOWN

    def test_unmatched_is_unknown(self):
        assert sniff(UNKNOWN_BYTES) == "unknown"

    def test_truncated_png_is_unknown(self):
        """不足 8 字节的 PNG 头不匹配。"""
        assert sniff(PNG_BYTES[:5]) == UNKNOWN

    def test_riff_without_wave_is_unknown(self):
        """RIFF 但偏移 8 不是 WAVE（如 AVI）。"""
        assert sniff(b"RIFF\x00\x00\x00\x00AVI LIST") == UNKNOWN

    def test_riff_too_short_is_unknown(self):
        assert sniff(b"RIFF\x00\x00") == UNKNOWN

    def test_jpeg_wins_over_frame_sync(self):
        """FF D8 FF 优先识别为 JPEG。"""
        assert sniff(b"\xff\xd8\xff\xfb") == "image/jpeg"

    def test_accepts_bytearray_and_memoryview(self):
        assert sniff(bytearray(PNG_BYTES)) == "image/png"
        assert sniff(memoryview(WAV_BYTES)) == "audio/wav"


class TestExtensionToMime:
    """扩展名映射。"""

    @pytest.mark.parametrize(
        "ext, expected",
        [
            ("jpg", "image/jpeg"),
            ("JpG", "image/jpeg"),
            ("PNG", "image/png"),
            ("mp3", "audio/mpeg"),
            ("WAV", "audio/wav"),
            (".png", "image/png"),
        ],
    )
    def test_known_extensions(self, ext: str, expected: str):
        assert extension_to_mime(ext) == expected

    def test_unknown_passes_through_lowercased(self):
        assert extension_to_mime("mkv") == "mkv"
        assert extension_to_mime("MKV") == "mkv"

    @pytest.mark.parametrize("ext", ["", "a", "."])
    def test_too_short_is_unknown(self, ext: str):
        assert extension_to_mime(ext) == "unknown"


class TestGuessFromPath:
    """本地文件类型判断。"""

    def test_sniff_wins_over_extension(self):
        assert guess_from_path("photo.wav", PNG_BYTES) == "image/png"

    def test_falls_back_to_extension(self):
        assert guess_from_path("song.mp3", UNKNOWN_BYTES) == "audio/mpeg"

    def test_no_extension_stays_unknown(self):
        assert guess_from_path("README", UNKNOWN_BYTES) == UNKNOWN
