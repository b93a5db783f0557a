"""Decoder for reconciliation sample previews."""
import json
import logging
import re
from enum import Enum
from typing import Optional, List, Dict, Tuple

from phantom_recon.schema.models import ParsedTable

logger = logging.getLogger(__name__)


class SampleFormat(str, Enum):
    """Shape of a fetched sample payload."""

    COMPACT = "compact"
    DELIMITED = "delimited"
    RAW = "raw"


class SampleDecoder:
    """Turn sample payloads into tables.

    Two encodings are understood:

    - plain delimited text (comma or tab separated, double-quote quoting),
      first line holding the headers;
    - the compact reconciliation encoding, a JSON array of strings where each
      string is one distinct pipe-delimited row annotated with how many times
      it occurred, e.g. ``"460764|33 (Count: 2)"`` or
      ``"460922 (Left: 1, Right: 3)"``.

    Decoding never raises; anything unreadable becomes an empty table.
    """

    MARKERS = ("(Count:", "(Left:", "(Right:")

    DUAL_COUNT = re.compile(r"\(Left:\s*(\d+),\s*Right:\s*(\d+)\)$")
    DUAL_COUNT_SUFFIX = re.compile(r"\s*\(Left:\s*\d+,\s*Right:\s*\d+\)$")
    LEGACY_COUNT = re.compile(r"\(Count:\s*(\d+)\)$")
    LEGACY_COUNT_SUFFIX = re.compile(r"\s*\(Count:\s*\d+\)$")

    def decode(
        self,
        payload: str,
        field_map: Optional[Dict[str, str]] = None,
    ) -> ParsedTable:
        """
        Decode a sample payload.

        Args:
            payload: Raw sample text
            field_map: Mapping whose left-field names label compact columns

        Returns:
            ParsedTable: Decoded headers and rows
        """
        if not payload or not isinstance(payload, str):
            return ParsedTable.empty()

        if self.is_compact_encoding(payload):
            return self.parse_compact(payload, field_map)

        try:
            return self.parse_delimited(payload)
        except Exception as e:
            logger.warning(f"Could not parse sample as delimited text: {e}")
            return ParsedTable.empty()

    def classify(self, payload: str) -> SampleFormat:
        """
        Classify a payload for display.

        Returns:
            SampleFormat: COMPACT, DELIMITED (two or more lines with a comma
            or tab in the first) or RAW
        """
        if not payload or not isinstance(payload, str):
            return SampleFormat.RAW

        if self.is_compact_encoding(payload):
            return SampleFormat.COMPACT

        lines = self._non_blank_lines(payload)
        if len(lines) < 2:
            return SampleFormat.RAW

        if "," in lines[0] or "\t" in lines[0]:
            return SampleFormat.DELIMITED
        return SampleFormat.RAW

    def is_compact_encoding(self, payload: str) -> bool:
        """Check for a JSON array of count-annotated strings."""
        if not any(marker in payload for marker in self.MARKERS):
            return False

        try:
            parsed = json.loads(payload)
        except ValueError:
            return False

        if not isinstance(parsed, list) or not parsed:
            return False

        first = parsed[0]
        return isinstance(first, str) and any(marker in first for marker in self.MARKERS)

    # ------------------------------------------------------------------
    # Compact encoding
    # ------------------------------------------------------------------

    def parse_compact(
        self,
        payload: str,
        field_map: Optional[Dict[str, str]] = None,
    ) -> ParsedTable:
        """
        Expand the compact encoding into one row per occurrence.

        Column count is inferred from the first entry. Headers come from the
        field map's left fields in insertion order, padded with
        ``Column N`` names.
        """
        try:
            entries = json.loads(payload)
            if not isinstance(entries, list) or not entries:
                return ParsedTable.empty()

            column_count = entries[0].count("|") + 1
            headers = self._compact_headers(column_count, field_map)

            rows: List[List[str]] = []
            for entry in entries:
                multiplicity, values = self._split_entry(entry)
                row = self._fit_row(values, column_count)
                for _ in range(multiplicity):
                    rows.append(list(row))

            return ParsedTable(headers=headers, rows=rows)

        except Exception as e:
            logger.warning(f"Error parsing compact sample encoding: {e}")
            return ParsedTable.empty()

    def _split_entry(self, entry: str) -> Tuple[int, List[str]]:
        """Return (multiplicity, field values) for one encoded entry."""
        dual = self.DUAL_COUNT.search(entry)
        if dual:
            # Emit the larger side so each side's occurrences are represented
            multiplicity = max(int(dual.group(1)), int(dual.group(2)))
            data_part = self.DUAL_COUNT_SUFFIX.sub("", entry)
        else:
            legacy = self.LEGACY_COUNT.search(entry)
            multiplicity = int(legacy.group(1)) if legacy else 0
            data_part = self.LEGACY_COUNT_SUFFIX.sub("", entry)

        return multiplicity, data_part.split("|")

    @staticmethod
    def _compact_headers(
        column_count: int,
        field_map: Optional[Dict[str, str]],
    ) -> List[str]:
        if field_map:
            source_fields = list(field_map.keys())
            return [
                source_fields[i] if i < len(source_fields) else f"Column {i + 1}"
                for i in range(column_count)
            ]
        return [f"Column {i}" for i in range(1, column_count + 1)]

    # ------------------------------------------------------------------
    # Delimited text
    # ------------------------------------------------------------------

    def parse_delimited(self, content: str) -> ParsedTable:
        """
        Parse comma or tab separated text.

        Args:
            content: Text whose first non-blank line holds the headers

        Returns:
            ParsedTable: Headers and rows, rows fitted to the header width
        """
        lines = self._non_blank_lines(content)
        if not lines:
            return ParsedTable.empty()

        delimiter = self.detect_delimiter(lines[0])
        headers = self.split_line(lines[0], delimiter)
        rows = [
            self._fit_row(self.split_line(line, delimiter), len(headers))
            for line in lines[1:]
        ]
        return ParsedTable(headers=headers, rows=rows)

    @staticmethod
    def detect_delimiter(first_line: str) -> str:
        """Tab only when strictly more frequent than comma."""
        if first_line.count("\t") > first_line.count(","):
            return "\t"
        return ","

    @staticmethod
    def split_line(line: str, delimiter: str) -> List[str]:
        """
        Split one line honouring double-quote quoting.

        A doubled quote inside a quoted value is a literal quote; the
        delimiter only separates fields outside quotes. Values are trimmed.
        """
        values = []
        current = []
        in_quotes = False
        i = 0

        while i < len(line):
            char = line[i]
            if char == '"':
                if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = not in_quotes
            elif char == delimiter and not in_quotes:
                values.append("".join(current).strip())
                current = []
            else:
                current.append(char)
            i += 1

        values.append("".join(current).strip())
        return values

    @staticmethod
    def _non_blank_lines(content: str) -> List[str]:
        return [line for line in content.strip().split("\n") if line.strip()]

    @staticmethod
    def _fit_row(values: List[str], width: int) -> List[str]:
        """Pad or truncate a row to the header width."""
        if len(values) >= width:
            return values[:width]
        return values + [""] * (width - len(values))


_default_decoder = SampleDecoder()


def decode_sample(payload: str, field_map: Optional[Dict[str, str]] = None) -> ParsedTable:
    """Decode a sample payload with the default decoder."""
    return _default_decoder.decode(payload, field_map)
