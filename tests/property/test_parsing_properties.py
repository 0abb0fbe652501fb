"""
Property-Based Tests for Configuration and Path Parsing

Duration strings, log levels and request path normalization with
arbitrary inputs.
"""
import logging

import pytest
from hypothesis import example, given, settings, strategies as st


class TestDurationProperties:
    """Property-based tests for parse_duration."""

    @given(
        hours=st.integers(min_value=0, max_value=48),
        minutes=st.integers(min_value=0, max_value=59),
        seconds=st.integers(min_value=0, max_value=59),
    )
    @settings(max_examples=200)
    def test_composite_durations_add_up(self, hours, minutes, seconds):
        from config import parse_duration

        value = f"{hours}h{minutes}m{seconds}s"

        assert parse_duration(value) == pytest.approx(hours * 3600 + minutes * 60 + seconds)

    @given(st.integers(min_value=0, max_value=10 ** 6))
    def test_milliseconds(self, millis):
        from config import parse_duration

        assert parse_duration(f"{millis}ms") == pytest.approx(millis / 1000)

    @given(st.text(max_size=30))
    @settings(max_examples=300)
    @example("")
    @example("s")
    @example("1.5.5s")
    @example("-3s")
    def test_never_raises_anything_but_value_error(self, text):
        from config import parse_duration

        try:
            result = parse_duration(text)
        except ValueError:
            return
        assert isinstance(result, float)


class TestLogLevelProperties:
    """Property-based tests for parse_log_level."""

    @given(st.text(max_size=20))
    def test_always_a_known_level(self, text):
        from config import parse_log_level

        assert parse_log_level(text) in (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR)


class TestPathNormalizationProperties:
    """Property-based tests for normalize_path."""

    paths = st.text(alphabet="/ab.", max_size=40)

    @given(paths)
    @settings(max_examples=300)
    def test_idempotent(self, path):
        from api.middleware import normalize_path

        once = normalize_path(path)

        assert normalize_path(once) == once

    @given(paths)
    @example("//")
    @example("/a//b/")
    def test_no_duplicate_or_trailing_slashes(self, path):
        from api.middleware import normalize_path

        result = normalize_path(path)

        assert "//" not in result
        assert result == "/" or not result.endswith("/")
