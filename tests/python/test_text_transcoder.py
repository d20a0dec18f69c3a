"""
Test decoding and encoding whole text movies, including line numbering of
frame parse errors
"""

import io
import json

import pytest

from dtm_transcoder import (
    ControllerFrame,
    DtmEncodingError,
    FrameParseError,
    FrameParseReason,
    HeaderFormatError,
    Movie,
    decode_text,
    encode_text,
    load_text,
    save_text,
)
from dtm_transcoder.text_io import LineCountingReader, read_json_object
from movie_helpers import make_header, make_movie

# 41 header fields plus the two brace lines
HEADER_LINES = 43

RELEASED = "s a b x y z u d l r lt rt"


def encode_to_text(movie):
    sink = io.BytesIO()
    encode_text(movie, sink)
    return sink.getvalue().decode("utf-8")


def decode_from_text(text):
    return decode_text(io.BytesIO(text.encode("utf-8")))


class TestLineCountingReader:
    def test_counts_newlines(self):
        reader = LineCountingReader(io.BytesIO(b"a\nb\n\nc"))
        assert reader.read(3) == b"a\nb"
        assert reader.newlines == 1
        assert reader.read() == b"\n\nc"
        assert reader.newlines == 3

    def test_does_not_close_inner_stream(self):
        inner = io.BytesIO(b"x")
        reader = LineCountingReader(inner)
        reader.close()
        assert not inner.closed


class TestReadJsonObject:
    def test_stops_at_closing_brace(self):
        stream = io.BytesIO(b'{"a": {"b": [1, 2]}}\nrest')
        assert read_json_object(stream) == b'{"a": {"b": [1, 2]}}'
        assert stream.read() == b"\nrest"

    def test_braces_inside_strings(self):
        stream = io.BytesIO(b'{"a": "}{ \\" }"} tail')
        assert json.loads(read_json_object(stream)) == {"a": '}{ " }'}

    def test_leading_whitespace_kept(self):
        assert read_json_object(io.BytesIO(b"\n\n {}")) == b"\n\n {}"

    def test_unterminated(self):
        with pytest.raises(HeaderFormatError, match="end of file"):
            read_json_object(io.BytesIO(b'{"a": 1'))

    def test_not_an_object(self):
        with pytest.raises(HeaderFormatError, match="line 2"):
            read_json_object(io.BytesIO(b"\nS a b"))

    @pytest.mark.parametrize("data", [b"}", b"\n ]\n{}"])
    def test_closing_bracket_before_object(self, data):
        with pytest.raises(HeaderFormatError, match=r"Expected '\{'"):
            read_json_object(io.BytesIO(data))


class TestTextEncode:
    def test_header_is_pretty_json(self, sample_movie):
        lines = encode_to_text(sample_movie).split("\n")

        assert lines[0] == "{"
        assert lines[1] == '  "game_id": "GALE01",'
        assert lines[2] == '  "wii_game": false,'
        assert lines[3] == '  "controllers": 1,'
        assert lines[HEADER_LINES - 2] == f'  "reserved3": "{"00" * 11}"'
        assert lines[HEADER_LINES - 1] == "}"

    def test_frame_lines(self, sample_movie):
        lines = encode_to_text(sample_movie).split("\n")

        assert lines[HEADER_LINES:] == [
            f"{RELEASED}   0   0 128 128 128 128 CC",
            "S A b x y z u d l r LT rt 255   0   0 255   7  99 CD RST CC",
            "s a B X Y Z U D L R lt RT   0  10   0   0   0   0 RSV",
            "",
        ]

    def test_non_ascii_kept_as_utf8(self):
        movie = Movie(header=make_header(author="Zéro"), frames=[])
        assert '"author": "Zéro"' in encode_to_text(movie)

    def test_analog_out_of_range_writes_nothing(self):
        movie = Movie(header=make_header(), frames=[ControllerFrame(), ControllerFrame(c_x=300)])
        sink = io.BytesIO()
        with pytest.raises(ValueError, match="c_x=300"):
            encode_text(movie, sink)
        assert sink.getvalue() == b""

    def test_ends_with_newline_without_frames(self):
        movie = Movie(header=make_header(input_count=0), frames=[])
        text = encode_to_text(movie)
        assert text.endswith("}\n")
        assert text.count("\n") == HEADER_LINES


class TestTextDecode:
    def test_round_trip(self, sample_movie):
        assert decode_from_text(encode_to_text(sample_movie)) == sample_movie

    def test_frame_count_from_lines_not_header(self):
        """A stale input_count in the text header is replaced"""
        movie = make_movie(input_count=99)
        decoded = decode_from_text(encode_to_text(movie))

        assert decoded.frame_count == 3
        assert decoded.header.input_count == 3
        assert decoded.frames == movie.frames
        assert decoded.header == make_header(input_count=3)

    def test_deleting_a_frame_line(self, sample_movie):
        lines = encode_to_text(sample_movie).splitlines()
        del lines[HEADER_LINES + 1]
        decoded = decode_from_text("\n".join(lines) + "\n")

        assert decoded.frames == [sample_movie.frames[0], sample_movie.frames[2]]
        assert decoded.header.input_count == 2

    def test_no_trailing_newline(self, sample_movie):
        text = encode_to_text(sample_movie).rstrip("\n")
        assert decode_from_text(text) == sample_movie

    def test_header_only(self):
        movie = Movie(header=make_header(input_count=0), frames=[])
        assert decode_from_text(encode_to_text(movie)) == movie

    def test_header_without_newline_at_eof(self):
        movie = Movie(header=make_header(input_count=0), frames=[])
        assert decode_from_text(encode_to_text(movie).rstrip("\n")) == movie

    def test_blank_lines_skipped(self, sample_movie):
        lines = encode_to_text(sample_movie).splitlines()
        lines.insert(HEADER_LINES + 1, "   ")
        lines.insert(HEADER_LINES, "")
        assert decode_from_text("\n".join(lines)).frames == sample_movie.frames

    def test_crlf_line_endings(self, sample_movie):
        text = encode_to_text(sample_movie).replace("\n", "\r\n")
        assert decode_from_text(text) == sample_movie

    def test_compact_header(self, sample_header):
        text = json.dumps(sample_header.to_json_dict()) + "\n" + f"{RELEASED} 1 2 3 4 5 6\n"
        movie = decode_from_text(text)
        assert movie.frames == [
            ControllerFrame(l_pressure=1, r_pressure=2, analog_x=3, analog_y=4, c_x=5, c_y=6)
        ]

    def test_text_after_header_on_same_line_is_skipped(self, sample_header):
        header_json = json.dumps(sample_header.to_json_dict())
        text = f"{header_json} ignored\n{RELEASED} 0 0 0 0 0 0\n"
        assert decode_from_text(text).frame_count == 1

    def test_invalid_header_json(self):
        with pytest.raises(HeaderFormatError, match="line 2 column"):
            decode_from_text('{\n  "game_id": GALE01\n}\n')

    def test_header_missing_field(self, sample_header):
        data = sample_header.to_json_dict()
        del data["author"]
        with pytest.raises(HeaderFormatError, match="author"):
            decode_from_text(json.dumps(data, indent=2) + "\n")

    def test_header_duplicate_field(self, sample_header):
        """A repeated key is rejected rather than keeping the last value"""
        text = encode_to_text(Movie(header=sample_header, frames=[]))
        text = text.replace(
            '  "author": "speedrunner",\n',
            '  "author": "speedrunner",\n  "author": "other",\n',
        )
        with pytest.raises(HeaderFormatError, match="duplicate field.*author"):
            decode_from_text(text)

    def test_invalid_utf8_in_frame_line(self, sample_header):
        data = json.dumps(sample_header.to_json_dict()).encode("utf-8") + b"\n\xff\xfe\n"
        with pytest.raises(DtmEncodingError, match="Line 2"):
            decode_text(io.BytesIO(data))


class TestFrameErrorLineNumbers:
    def replace_line(self, movie, index, new_line):
        lines = encode_to_text(movie).splitlines()
        lines[index] = new_line
        return "\n".join(lines) + "\n"

    def test_first_frame_line_number(self, sample_movie):
        bad_line = "S a B x Y z U d L r LT rt 5 10 128 130 0"
        text = self.replace_line(sample_movie, HEADER_LINES, bad_line)
        with pytest.raises(FrameParseError, match="missing token") as exc_info:
            decode_from_text(text)

        assert exc_info.value.line == HEADER_LINES + 1
        assert exc_info.value.reason is FrameParseReason.MISSING_TOKEN
        assert str(exc_info.value) == f"Line {HEADER_LINES + 1}: missing token"

    def test_last_frame_line_number(self, sample_movie):
        last = HEADER_LINES + 2
        text = self.replace_line(sample_movie, last, f"{RELEASED} 0 0 0 0 0 300")
        with pytest.raises(FrameParseError) as exc_info:
            decode_from_text(text)

        assert exc_info.value.line == last + 1
        assert exc_info.value.reason is FrameParseReason.INVALID_BYTE
        assert exc_info.value.token == "300"

    def test_line_numbers_count_blank_lines(self, sample_movie):
        lines = encode_to_text(sample_movie).splitlines()
        lines.insert(HEADER_LINES, "")
        lines.insert(HEADER_LINES, "")
        lines[HEADER_LINES + 3] = f"{RELEASED} 0 0 0 0 0 0 TURBO"
        with pytest.raises(FrameParseError) as exc_info:
            decode_from_text("\n".join(lines))

        assert exc_info.value.line == HEADER_LINES + 4
        assert exc_info.value.reason is FrameParseReason.UNKNOWN_FLAG

    def test_compact_header_line_numbers(self, sample_header):
        header_json = json.dumps(sample_header.to_json_dict())
        text = f"{header_json}\n{RELEASED} 0 0 0 0 0 0\nS A B X Y Z U D L R LT Rt 0 0 0 0 0 0\n"
        with pytest.raises(FrameParseError) as exc_info:
            decode_from_text(text)

        assert exc_info.value.line == 3
        assert exc_info.value.reason is FrameParseReason.INVALID_BUTTON

    def test_header_with_leading_blank_lines(self, sample_header):
        header_json = json.dumps(sample_header.to_json_dict(), indent=2)
        text = f"\n\n{header_json}\n{RELEASED} 0 0 0 0 0\n"
        with pytest.raises(FrameParseError) as exc_info:
            decode_from_text(text)

        assert exc_info.value.line == 2 + HEADER_LINES + 1


class TestTextFiles:
    def test_save_and_load(self, tmp_path, sample_movie):
        path = tmp_path / "movie.txt"
        save_text(sample_movie, path)

        assert path.read_text(encoding="utf-8").startswith("{\n")
        assert load_text(path) == sample_movie
