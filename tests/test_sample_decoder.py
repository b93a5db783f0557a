"""
Unit tests for SampleDecoder

Tests:
- Compact encoding: count expansion, dual-count rule, header reconstruction
- Delimited text: delimiter detection, quoting, row fitting
- Classification of payloads for display
"""

import json
from collections import OrderedDict

import pytest

from phantom_recon.parser.sample_decoder import SampleDecoder, SampleFormat, decode_sample


@pytest.fixture
def decoder():
    return SampleDecoder()


def compact(*entries):
    return json.dumps(list(entries))


class TestCompactEncoding:
    """Test the count-annotated JSON encoding."""

    def test_count_expansion(self, decoder):
        """Legacy count repeats the row N times."""
        table = decoder.decode(compact("a|b (Count: 3)"), None)

        assert table.headers == ["Column 1", "Column 2"]
        assert table.rows == [["a", "b"], ["a", "b"], ["a", "b"]]

    def test_dual_count_uses_larger_side(self, decoder):
        """Left/Right annotation emits max(L, R) rows."""
        assert decoder.decode(compact("x (Left: 2, Right: 5)")).rows == [["x"]] * 5
        assert decoder.decode(compact("x (Left: 5, Right: 2)")).rows == [["x"]] * 5

    def test_field_map_headers(self, decoder):
        """Left fields of the map label the columns, in insertion order."""
        field_map = OrderedDict([("id", "userId"), ("amt", "total")])

        table = decoder.decode(compact("1|2 (Count: 1)"), field_map)

        assert table.headers == ["id", "amt"]
        assert table.rows == [["1", "2"]]

    def test_field_map_shorter_than_columns_is_padded(self, decoder):
        table = decoder.decode(compact("1|2|3 (Count: 1)"), {"id": "userId"})

        assert table.headers == ["id", "Column 2", "Column 3"]

    def test_empty_field_map_uses_generic_headers(self, decoder):
        table = decoder.decode(compact("1|2 (Count: 1)"), {})

        assert table.headers == ["Column 1", "Column 2"]

    def test_malformed_entry_contributes_nothing(self, decoder):
        """Entries without an annotation yield zero rows, no exception."""
        table = decoder.decode(compact("a|b (Count: 2)", "no-annotation-here"))

        assert table.rows == [["a", "b"], ["a", "b"]]

    def test_unannotated_only_payload_has_no_rows(self, decoder):
        table = decoder.decode(compact("no-annotation-here"))

        assert table.rows == []

    def test_zero_count_skips_row(self, decoder):
        table = decoder.decode(compact("a (Count: 0)", "b (Count: 1)"))

        assert table.rows == [["b"]]

    def test_rows_match_header_width(self, decoder):
        """Entries with more or fewer values than the first are fitted."""
        table = decoder.decode(compact("a|b (Count: 1)", "c (Count: 1)", "d|e|f (Count: 1)"))

        assert table.rows == [["a", "b"], ["c", ""], ["d", "e"]]

    def test_mixed_annotations(self, decoder):
        table = decoder.decode(compact("a (Left: 1, Right: 1)", "b (Count: 2)"))

        assert table.rows == [["a"], ["b"], ["b"]]

    def test_non_string_entry_yields_empty_table(self, decoder):
        """A broken entry later in the array never propagates."""
        payload = json.dumps(["a (Count: 1)", {"bad": True}])

        table = decoder.parse_compact(payload)

        assert table.headers == []
        assert table.rows == []

    def test_is_compact_encoding(self, decoder):
        assert decoder.is_compact_encoding(compact("a (Count: 1)"))
        assert decoder.is_compact_encoding(compact("a (Left: 1, Right: 0)"))
        # Marker present but not a JSON array
        assert not decoder.is_compact_encoding("a (Count: 1)")
        # Marker only in a later element
        assert not decoder.is_compact_encoding(compact("plain", "a (Count: 1)"))
        assert not decoder.is_compact_encoding(json.dumps({"x": "(Count: 1)"}))


class TestDelimitedText:
    """Test comma and tab separated payloads."""

    def test_quoted_delimiter(self, decoder):
        table = decoder.decode('a,"b,c",d\n1,2,3')

        assert table.headers == ["a", "b,c", "d"]
        assert table.rows == [["1", "2", "3"]]

    def test_doubled_quote_is_literal(self, decoder):
        table = decoder.decode('name,quote\nann,"say ""hi"""')

        assert table.rows == [["ann", 'say "hi"']]

    def test_tab_wins_only_when_more_frequent(self, decoder):
        assert decoder.detect_delimiter("a\tb\tc") == "\t"
        assert decoder.detect_delimiter("a\tb,c") == ","
        assert decoder.detect_delimiter("a,b\tc,d") == ","

    def test_tab_separated(self, decoder):
        table = decoder.decode("id\tname\n1\tAnn\n2\tBob")

        assert table.headers == ["id", "name"]
        assert table.rows == [["1", "Ann"], ["2", "Bob"]]

    def test_blank_lines_discarded(self, decoder):
        table = decoder.decode("a,b\n\n1,2\n   \n3,4\n")

        assert table.rows == [["1", "2"], ["3", "4"]]

    def test_short_rows_padded(self, decoder):
        table = decoder.decode("a,b,c\n1\n1,2,3,4")

        assert table.rows == [["1", "", ""], ["1", "2", "3"]]

    def test_values_trimmed(self, decoder):
        table = decoder.decode(" a , b \n 1 , 2 ")

        assert table.headers == ["a", "b"]
        assert table.rows == [["1", "2"]]

    @pytest.mark.parametrize("payload", ["", "\n\n  \n", None])
    def test_empty_payload(self, decoder, payload):
        table = decoder.decode(payload)

        assert table.is_empty


class TestClassification:
    """Test display classification."""

    def test_compact(self, decoder):
        assert decoder.classify(compact("a (Count: 1)")) == SampleFormat.COMPACT

    def test_delimited(self, decoder):
        assert decoder.classify("a,b\n1,2") == SampleFormat.DELIMITED
        assert decoder.classify("a\tb\n1\t2") == SampleFormat.DELIMITED

    def test_single_line_is_raw(self, decoder):
        assert decoder.classify("a,b") == SampleFormat.RAW

    def test_no_delimiter_is_raw(self, decoder):
        assert decoder.classify("first line\nsecond line") == SampleFormat.RAW

    def test_empty_is_raw(self, decoder):
        assert decoder.classify("") == SampleFormat.RAW


def test_decode_sample_helper():
    table = decode_sample(compact("a|b (Count: 2)"), {"x": "y", "z": "w"})

    assert table.headers == ["x", "z"]
    assert len(table.rows) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
