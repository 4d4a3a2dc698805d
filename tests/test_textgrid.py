"""Tests for TextGrid import/export."""

import io
import logging
import tempfile
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from praatgrid.annotation.tier import Interval, Point, IntervalTier, PointTier, TextGrid
from praatgrid.annotation.errors import (
    TextGridError, MalformedHeaderError, UnknownTierTypeError,
    MissingValueError, MalformedNumberError, TextGridWriteError
)
from praatgrid.annotation.textgrid import (
    TextFormat, read_lines, read_textgrid, parse_textgrid, render_textgrid,
    write_textgrid, resolve_destination
)


DAISY_BELL_LONG = '\n'.join([
    'File type = "ooTextFile"',
    'Object class = "TextGrid"',
    '',
    'xmin = 0',
    'xmax = 2.3',
    'tiers? <exists>',
    'size = 3',
    'item []:',
    '    item [1]:',
    '        class = "IntervalTier"',
    '        name = "John"',
    '        xmin = 0',
    '        xmax = 2.3',
    '        intervals: size = 1',
    '        intervals [1]:',
    '            xmin = 0',
    '            xmax = 2.3',
    '            text = "daisy bell"',
    '    item [2]:',
    '        class = "IntervalTier"',
    '        name = "Kelly"',
    '        xmin = 0',
    '        xmax = 2.3',
    '        intervals: size = 1',
    '        intervals [1]:',
    '            xmin = 0',
    '            xmax = 2.3',
    '            text = ""',
    '    item [3]:',
    '        class = "TextTier"',
    '        name = "Bell"',
    '        xmin = 0',
    '        xmax = 2.3',
    '        points: size = 1',
    '        points [1]:',
    '            number = 1',
    '            mark = "give me your answer do"',
])

DAISY_BELL_SHORT = '\n'.join([
    '"ooTextFile"',
    '"TextGrid"',
    '',
    '0',
    '2.3',
    '<exists>',
    '3',
    '"IntervalTier"',
    '"John"',
    '0',
    '2.3',
    '1',
    '0',
    '2.3',
    '"daisy bell"',
    '"IntervalTier"',
    '"Kelly"',
    '0',
    '2.3',
    '1',
    '0',
    '2.3',
    '""',
    '"TextTier"',
    '"Bell"',
    '0',
    '2.3',
    '1',
    '1',
    '"give me your answer do"',
])


def _daisy_bell():
    return TextGrid(0.0, 2.3, [
        IntervalTier("John", 0.0, 2.3, [Interval(0.0, 2.3, "daisy bell")]),
        IntervalTier("Kelly", 0.0, 2.3, [Interval(0.0, 2.3, "")]),
        PointTier("Bell", 0.0, 2.3, [Point(1.0, "give me your answer do")]),
    ])


def _assert_raises(exc_type, func, *args, **kwargs):
    try:
        func(*args, **kwargs)
    except exc_type as e:
        return e
    assert False, f"Should have raised {exc_type.__name__}"


def test_parse_long_format():
    """Test decoding the reference long-format document."""
    textgrid = parse_textgrid(DAISY_BELL_LONG)

    assert textgrid.xmin == 0.0
    assert textgrid.xmax == 2.3
    assert textgrid.num_tiers == 3
    assert textgrid.name == "New TextGrid"
    assert textgrid.get_tier(1).name == "Kelly"

    john = textgrid.get_tier(0)
    assert isinstance(john, IntervalTier)
    assert john.get_intervals() == [Interval(0.0, 2.3, "daisy bell")]

    bell = textgrid.get_tier(2)
    assert isinstance(bell, PointTier)
    assert bell.get_points() == [Point(1.0, "give me your answer do")]
    print("test_parse_long_format PASSED")


def test_long_format_byte_identical():
    """Test that decoding and re-rendering reproduces the reference text."""
    textgrid = parse_textgrid(DAISY_BELL_LONG)
    assert render_textgrid(textgrid, TextFormat.VERBOSE) == DAISY_BELL_LONG
    print("test_long_format_byte_identical PASSED")


def test_short_format_matches_reference():
    """Test compact rendering of the reference document."""
    assert render_textgrid(_daisy_bell(), "compact") == DAISY_BELL_SHORT
    assert parse_textgrid(DAISY_BELL_SHORT) == _daisy_bell()
    print("test_short_format_matches_reference PASSED")


def test_round_trip_both_formats():
    """Test that an in-memory document survives rendering and parsing."""
    textgrid = TextGrid(0.0, 12.75, [
        IntervalTier("words", 0.0, 12.75, [
            Interval(0.0, 0.1 + 0.2, "the"),
            Interval(0.1 + 0.2, 4.125, 'say "hello"'),
            Interval(4.125, 12.75, "hi! there"),
        ]),
        PointTier("events", 0.0, 12.75, [Point(0.0000001, "tick"), Point(7.5, "")]),
        IntervalTier("empty", 0.0, 12.75),
    ])

    for fmt in (TextFormat.VERBOSE, TextFormat.COMPACT):
        assert parse_textgrid(render_textgrid(textgrid, fmt)) == textgrid
    print("test_round_trip_both_formats PASSED")


def test_round_trip_unicode_line_separators():
    """Test that labels holding non-newline line breaks survive both formats."""
    textgrid = TextGrid(0.0, 3.0, [
        IntervalTier("words", 0.0, 3.0, [
            Interval(0.0, 1.0, "a\u2028b"),
            Interval(1.0, 2.0, "c\u2029d\x85e"),
            Interval(2.0, 3.0, "f\x0cg\x1ch\x0bi"),
        ]),
        PointTier("events", 0.0, 3.0, [Point(1.5, "tick\u2028tock")]),
    ])

    for fmt in (TextFormat.VERBOSE, TextFormat.COMPACT):
        decoded = parse_textgrid(render_textgrid(textgrid, fmt))
        assert decoded == textgrid
        assert isinstance(decoded.get_tier(1), PointTier)
    print("test_round_trip_unicode_line_separators PASSED")


def test_round_trip_multiline_labels():
    """Test that labels spanning several lines survive both formats."""
    textgrid = TextGrid(0.0, 2.0, [
        IntervalTier("words", 0.0, 2.0, [
            Interval(0.0, 1.0, "line one\nline two"),
            Interval(1.0, 2.0, 'first\n\n"quoted" third ! not a comment'),
        ]),
        PointTier("events", 0.0, 2.0, [Point(0.5, "up\ndown")]),
    ])

    for fmt in (TextFormat.VERBOSE, TextFormat.COMPACT):
        assert parse_textgrid(render_textgrid(textgrid, fmt)) == textgrid
    print("test_round_trip_multiline_labels PASSED")


def test_render_counts_current_sizes():
    """Test that sizes are recomputed after mutation."""
    textgrid = _daisy_bell()
    textgrid.get_tier(0).insert_interval(Interval(2.3, 3.0, "extra"))
    textgrid.remove_tier(2)

    text = render_textgrid(textgrid, "long")
    assert 'size = 2' in text
    assert '        intervals: size = 2' in text
    assert '        intervals [2]:' in text
    print("test_render_counts_current_sizes PASSED")


def test_render_unknown_format():
    """Test that an unknown layout name is rejected."""
    _assert_raises(ValueError, render_textgrid, _daisy_bell(), "binary")
    print("test_render_unknown_format PASSED")


def test_render_empty_textgrid():
    """Test rendering a document without tiers."""
    text = render_textgrid(TextGrid(0.0, 1.0), TextFormat.VERBOSE)
    assert text.splitlines()[-1] == 'size = 0'
    assert parse_textgrid(text) == TextGrid(0.0, 1.0)
    print("test_render_empty_textgrid PASSED")


def test_wrong_declared_sizes_still_decode():
    """Test that children are found by tier class lookahead, not declared sizes."""
    messages = []
    for declared in ('0', '1', '9'):
        text = '\n'.join([
            '"ooTextFile"', '"TextGrid"', '0', '3', '<exists>', '5',
            '"IntervalTier"', '"words"', '0', '3', declared,
            '0', '1', '"a"',
            '1', '2', '"b"',
            '2', '3', '"c"',
            '"TextTier"', '"bells"', '0', '3', declared,
            '1.5', '"ding"',
        ])
        textgrid = parse_textgrid(text, warnings=True, sink=messages.append)

        assert textgrid.num_tiers == 2
        assert [i.text for i in textgrid.get_tier(0).get_intervals()] == ["a", "b", "c"]
        assert textgrid.get_tier(1).get_points() == [Point(1.5, "ding")]

    # Tier count (5 vs 2) plus one message per tier whose declared size is off
    assert any("5" in m and "2 tiers" in m for m in messages)
    assert any("3 intervals" in m for m in messages)
    assert any("1 points" in m for m in messages)
    print("test_wrong_declared_sizes_still_decode PASSED")


def test_warnings_disabled_by_default():
    """Test that advisory conditions are silent unless enabled."""
    messages = []
    text = DAISY_BELL_LONG.replace('size = 3', 'size = 7')
    parse_textgrid(text, sink=messages.append)
    assert messages == []

    parse_textgrid(text, warnings=True, sink=messages.append)
    assert len(messages) == 1
    print("test_warnings_disabled_by_default PASSED")


def test_warnings_go_to_logger(caplog):
    """Test that enabled warnings without a sink are logged."""
    text = DAISY_BELL_LONG.replace('size = 3', 'size = 7')
    with caplog.at_level(logging.WARNING, logger="praatgrid"):
        parse_textgrid(text, warnings=True)
    assert "size of 7" in caplog.text
    print("test_warnings_go_to_logger PASSED")


def test_out_of_bounds_children_warn():
    """Test that children outside their tier's range produce warnings only."""
    messages = []
    text = DAISY_BELL_LONG.replace('            number = 1', '            number = 9')
    textgrid = parse_textgrid(text, warnings=True, sink=messages.append)
    assert textgrid.get_tier(2).get_point(0).number == 9.0
    assert len(messages) == 1
    print("test_out_of_bounds_children_warn PASSED")


def test_duplicate_tier_names_renamed():
    """Test that a file with repeated tier names gets unique names."""
    text = DAISY_BELL_LONG.replace('name = "Kelly"', 'name = "John"')
    textgrid = parse_textgrid(text)
    assert textgrid.tier_names() == ["John", "John_1", "Bell"]
    print("test_duplicate_tier_names_renamed PASSED")


def test_comments_are_ignored():
    """Test that same-line comments do not leak into the data."""
    text = DAISY_BELL_SHORT.replace('"John"', '"John" ! speaker').replace(
        '"daisy bell"', '"daisy bell" ! lyric 1.5')
    assert parse_textgrid(text) == _daisy_bell()
    print("test_comments_are_ignored PASSED")


def test_bad_file_type():
    """Test the error for a wrong File type."""
    text = DAISY_BELL_LONG.replace('"ooTextFile"', '"ooBinaryFile"')
    e = _assert_raises(MalformedHeaderError, parse_textgrid, text)
    assert e.field == "File type"
    assert "ooBinaryFile" in str(e)
    print("test_bad_file_type PASSED")


def test_bad_object_class():
    """Test the error for a wrong Object class."""
    text = DAISY_BELL_LONG.replace('"TextGrid"', '"PitchTier"')
    e = _assert_raises(MalformedHeaderError, parse_textgrid, text)
    assert e.field == "Object class"
    print("test_bad_object_class PASSED")


def test_empty_input():
    """Test that empty input fails on the header."""
    e = _assert_raises(MalformedHeaderError, parse_textgrid, [])
    assert e.found is None
    print("test_empty_input PASSED")


def test_unknown_tier_type():
    """Test the error for an unrecognized tier class."""
    text = DAISY_BELL_LONG.replace('class = "TextTier"', 'class = "PitchTier"')
    e = _assert_raises(UnknownTierTypeError, parse_textgrid, text)
    assert e.token == "PitchTier"
    print("test_unknown_tier_type PASSED")


def test_missing_bounds():
    """Test the error when input ends before xmax."""
    e = _assert_raises(MissingValueError, parse_textgrid, '"ooTextFile"\n"TextGrid"\n0\n')
    assert e.field == "xmax"
    print("test_missing_bounds PASSED")


def test_truncated_tier():
    """Test the error when a tier record is cut short."""
    text = '"ooTextFile"\n"TextGrid"\n0\n1\n<exists>\n1\n"IntervalTier"\n"words"\n0\n'
    e = _assert_raises(MissingValueError, parse_textgrid, text)
    assert e.field == "xmax"
    assert isinstance(e, TextGridError)
    print("test_truncated_tier PASSED")


def test_malformed_tier_count():
    """Test the error when the tier count is not an integer."""
    text = DAISY_BELL_LONG.replace('size = 3', 'size = 3.5')
    e = _assert_raises(MalformedNumberError, parse_textgrid, text)
    assert e.token == "3.5"
    print("test_malformed_tier_count PASSED")


def test_read_lines_sources():
    """Test each supported input source."""
    lines, name = read_lines(DAISY_BELL_SHORT)
    assert name == "New TextGrid"
    assert lines[0] == '"ooTextFile"'

    assert read_lines(io.StringIO(DAISY_BELL_SHORT))[0] == lines
    assert read_lines(io.BytesIO(DAISY_BELL_SHORT.encode('utf-8')))[0] == lines
    assert read_lines(DAISY_BELL_SHORT.encode('utf-8'))[0] == lines
    assert read_lines(lines)[0] == lines

    _assert_raises(TypeError, read_lines, 42)
    print("test_read_lines_sources PASSED")


def test_read_lines_splits_on_line_feeds_only():
    """Test that only line feeds end a line and a trailing carriage return is dropped."""
    lines, _ = read_lines('a\r\nb\u2028c\nd\x85e\x0cf')
    assert lines == ['a', 'b\u2028c', 'd\x85e\x0cf']

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "crlf.TextGrid"
        path.write_bytes(DAISY_BELL_SHORT.replace('\n', '\r\n').encode('utf-8'))
        assert read_textgrid(path) == _daisy_bell()
    print("test_read_lines_splits_on_line_feeds_only PASSED")


def test_read_from_path():
    """Test reading from a path and a path given as a string."""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "daisy.TextGrid"
        path.write_text(DAISY_BELL_LONG, encoding='utf-8')

        textgrid = read_textgrid(path)
        assert textgrid.name == "daisy"
        assert textgrid == _daisy_bell()

        from_string = parse_textgrid(str(path))
        assert from_string.name == "daisy"
        assert TextGrid.from_source(str(path)) == textgrid
    print("test_read_from_path PASSED")


def test_write_to_file():
    """Test writing the exact path given, creating parents."""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "nested" / "dir" / "out.TextGrid"
        written = write_textgrid(_daisy_bell(), path, TextFormat.VERBOSE)

        assert written == path
        assert path.read_text(encoding='utf-8') == DAISY_BELL_LONG + '\n'
        assert read_textgrid(path) == _daisy_bell()
    print("test_write_to_file PASSED")


def test_write_to_directory():
    """Test that a destination without an extension is treated as a directory."""
    with tempfile.TemporaryDirectory() as tmp:
        textgrid = _daisy_bell()
        textgrid.name = "daisy"
        written = textgrid.write(Path(tmp) / "out", "short")

        assert written == Path(tmp) / "out" / "daisy.TextGrid"
        assert written.read_text(encoding='utf-8') == DAISY_BELL_SHORT + '\n'
    print("test_write_to_directory PASSED")


def test_write_to_existing_directory_with_suffix():
    """Test that an existing directory is used even if its name has a dot."""
    with tempfile.TemporaryDirectory() as tmp:
        folder = Path(tmp) / "takes.v1"
        folder.mkdir()
        textgrid = _daisy_bell()
        assert resolve_destination(textgrid, folder) == folder / "New TextGrid.TextGrid"
    print("test_write_to_existing_directory_with_suffix PASSED")


def test_write_failure():
    """Test that an unwritable destination raises TextGridWriteError."""
    with tempfile.TemporaryDirectory() as tmp:
        blocker = Path(tmp) / "blocker"
        blocker.write_text("not a directory")
        e = _assert_raises(TextGridWriteError, write_textgrid, _daisy_bell(),
                           blocker / "out.TextGrid")
        assert isinstance(e.__cause__, OSError)
    print("test_write_failure PASSED")


def test_to_string():
    """Test the TextGrid.to_string shortcut."""
    assert _daisy_bell().to_string(TextFormat.VERBOSE) == DAISY_BELL_LONG
    assert _daisy_bell().to_string("compact") == DAISY_BELL_SHORT
    print("test_to_string PASSED")


if __name__ == "__main__":
    test_parse_long_format()
    test_long_format_byte_identical()
    test_short_format_matches_reference()
    test_round_trip_both_formats()
    test_round_trip_unicode_line_separators()
    test_round_trip_multiline_labels()
    test_render_counts_current_sizes()
    test_render_unknown_format()
    test_render_empty_textgrid()
    test_wrong_declared_sizes_still_decode()
    test_warnings_disabled_by_default()
    test_out_of_bounds_children_warn()
    test_duplicate_tier_names_renamed()
    test_comments_are_ignored()
    test_bad_file_type()
    test_bad_object_class()
    test_empty_input()
    test_unknown_tier_type()
    test_missing_bounds()
    test_truncated_tier()
    test_malformed_tier_count()
    test_read_lines_sources()
    test_read_lines_splits_on_line_feeds_only()
    test_read_from_path()
    test_write_to_file()
    test_write_to_directory()
    test_write_to_existing_directory_with_suffix()
    test_write_failure()
    test_to_string()
    print("\nAll TextGrid tests passed!")
