"""Tests for numeric formatting and datablock construction."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone

import pytest

from gnuplotter.core.datablock import (
    build_datablock,
    format_title,
    format_value,
    make_series,
    pad_titles,
    rows_from_columns,
    rows_from_pairs,
    separated,
    series_from_vectors,
    solve,
    wrap_datablock,
)
from gnuplotter.core.models import Axes, Series


class _NumpyLikeScalar:
    """Mimics a numpy scalar: not a float, but has ``.item()``."""

    def __init__(self, value):
        self.value = value

    def item(self):
        return self.value


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

class TestFormatValue:
    def test_float_uses_shortest_repr(self):
        assert format_value(1.0) == "1.0"
        assert format_value(0.25) == "0.25"
        assert format_value(1e-05) == "1e-05"

    def test_int_stays_int(self):
        assert format_value(3) == "3"

    def test_non_finite_becomes_nan(self):
        assert format_value(math.nan) == "NaN"
        assert format_value(math.inf) == "NaN"

    def test_naive_datetime_is_utc_seconds(self):
        assert format_value(datetime(1970, 1, 2)) == "86400.0"

    def test_aware_datetime(self):
        stamp = datetime(2021, 1, 1, tzinfo=timezone.utc)
        assert format_value(stamp) == repr(stamp.timestamp())

    def test_date_is_midnight_utc(self):
        assert format_value(date(1970, 1, 3)) == "172800.0"

    def test_numpy_like_scalar_unwrapped(self):
        assert format_value(_NumpyLikeScalar(2.5)) == "2.5"

    def test_bool(self):
        assert format_value(True) == "1"


class TestSeparated:
    def test_rows_and_columns(self):
        assert separated([[1.0, 2.0], [3.0, 4.5]]) == "1.0 2.0\n3.0 4.5"

    def test_single_column(self):
        assert separated([[1], [2]]) == "1\n2"

    def test_empty(self):
        assert separated([]) == ""


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------

class TestTitles:
    def test_plain_title_unquoted(self):
        assert format_title("sin") == "sin"

    def test_title_with_space_quoted(self):
        assert format_title("sin x") == '"sin x"'

    def test_embedded_double_quote_escaped(self):
        assert format_title('a "b"') == '"a \\"b\\""'

    def test_blank_title_becomes_dash(self):
        assert format_title("  ") == "-"

    def test_pad_titles(self):
        assert pad_titles(["a"], 3) == ["a", "-", "-"]

    def test_pad_titles_keeps_extra(self):
        assert pad_titles(["a", "b"], 1) == ["a", "b"]


# ---------------------------------------------------------------------------
# Container normalisation
# ---------------------------------------------------------------------------

class TestNormalisation:
    def test_rows_from_pairs(self):
        assert rows_from_pairs([(0, 1), (1, 2)]) == [[0, 1], [1, 2]]

    def test_rows_from_bare_numbers(self):
        assert rows_from_pairs([1.5, 2.5]) == [[1.5], [2.5]]

    def test_rows_from_generator(self):
        assert rows_from_pairs((x, x * x) for x in range(3)) == [[0, 0], [1, 1], [2, 4]]

    def test_rows_from_string_rejected(self):
        with pytest.raises(TypeError):
            rows_from_pairs(["ab"])

    def test_rows_from_columns(self):
        rows = rows_from_columns([0, 1, 2], [10, 11, 12], [20, 21, 22])
        assert rows == [[0, 10, 20], [1, 11, 21], [2, 12, 22]]

    def test_rows_from_columns_length_mismatch(self):
        with pytest.raises(ValueError, match="same length"):
            rows_from_columns([0, 1, 2], [10, 11])

    def test_series_from_vectors(self):
        groups = series_from_vectors([0, 1], [(1.0, 2.0), (3.0, 4.0)])
        assert groups == [[[0, 1.0], [1, 3.0]], [[0, 2.0], [1, 4.0]]]

    def test_series_from_vectors_count_mismatch(self):
        with pytest.raises(ValueError):
            series_from_vectors([0, 1, 2], [(1.0, 2.0)])

    def test_series_from_vectors_ragged(self):
        with pytest.raises(ValueError, match="components"):
            series_from_vectors([0, 1], [(1.0, 2.0), (3.0,)])

    def test_make_series_pads_titles_and_sets_axes(self):
        series = make_series([[(0, 1)], [(0, 2)]], ["first"], Axes.X1Y2)
        assert [s.title for s in series] == ["first", "-"]
        assert all(s.axes is Axes.X1Y2 for s in series)


# ---------------------------------------------------------------------------
# Datablock
# ---------------------------------------------------------------------------

class TestDatablock:
    def test_single_series_layout(self):
        block = build_datablock([Series(title="a", rows=[[0.0, 1.0], [1.0, 2.0]])])
        assert block == "\n$data <<EOD\na\n0.0 1.0\n1.0 2.0\n\n\nEOD\n\n"

    def test_series_separated_by_two_blank_lines(self):
        block = build_datablock([
            Series(title="a", rows=[[1]]),
            Series(title="b", rows=[[2]]),
        ])
        assert "a\n1\n\n\nb\n2" in block

    def test_custom_name(self):
        block = build_datablock([Series(rows=[[1]])], name="$data3")
        assert block.startswith("\n$data3 <<EOD\n")

    def test_wrap_raw_data(self):
        assert wrap_datablock("1 2\n3 4") == "\n$data <<EOD\n1 2\n3 4\n\n\nEOD\n\n"


# ---------------------------------------------------------------------------
# solve
# ---------------------------------------------------------------------------

class TestSolve:
    def test_closed_interval(self):
        points = solve((0.0, 1.0), 0.25, lambda x: 2 * x)
        assert [p[0] for p in points] == [0.0, 0.25, 0.5, 0.75, 1.0]
        assert points[-1][1] == 2.0

    def test_step_not_dividing_interval(self):
        points = solve((0.0, 1.0), 0.3, lambda x: x)
        assert len(points) == 4

    def test_non_positive_step(self):
        with pytest.raises(ValueError):
            solve((0.0, 1.0), 0.0, lambda x: x)
