"""Tests for CSV bar ingestion."""

from pathlib import Path

from src.modules.data.csv_parser import (
    WHITESPACE,
    detect_delimiter,
    load_csv,
    parse_csv,
    parse_time,
)


class TestDetectDelimiter:
    """Tests for detect_delimiter."""

    def test_comma(self) -> None:
        assert detect_delimiter("time,open,high,low,close,volume") == ","

    def test_tab(self) -> None:
        assert detect_delimiter("time\topen\thigh\tlow\tclose") == "\t"

    def test_semicolon(self) -> None:
        assert detect_delimiter("time;open;high;low;close") == ";"

    def test_whitespace_fallback(self) -> None:
        assert detect_delimiter("1704067200 1 2 0.5 1.5 10") == WHITESPACE


class TestParseTime:
    """Tests for parse_time."""

    def test_seconds_scaled_to_ms(self) -> None:
        assert parse_time("1704067200") == 1_704_067_200_000

    def test_milliseconds_kept(self) -> None:
        assert parse_time("1704067200000") == 1_704_067_200_000

    def test_date_string_as_utc(self) -> None:
        assert parse_time("2024-01-01 00:05:00") == 1_704_067_500_000

    def test_garbage_is_zero(self) -> None:
        assert parse_time("not a date") == 0


class TestParseCSV:
    """Tests for parse_csv."""

    def test_header_with_seconds(self) -> None:
        """Standard header, epoch seconds scaled to milliseconds."""
        content = (
            "time,open,high,low,close,volume\n"
            "1704067200,100,102,99,101,1500\n"
            "1704067500,101,103,100,102,1600\n"
        )
        bars = parse_csv(content)

        assert len(bars) == 2
        assert bars[0].timestamp == 1_704_067_200_000
        assert (bars[0].open, bars[0].high, bars[0].low, bars[0].close) == (100.0, 102.0, 99.0, 101.0)
        assert bars[1].volume == 1600.0

    def test_reordered_header(self) -> None:
        """Columns are mapped by header keyword, not position."""
        content = (
            "Date;Close;Open;High;Low;Volume\n"
            "1704067200000;101;100;102;99;1500\n"
            "1704067500000;102;101;103;100;1600\n"
        )
        bars = parse_csv(content)

        assert bars[0].open == 100.0
        assert bars[0].close == 101.0
        assert bars[0].high == 102.0
        assert bars[0].low == 99.0
        assert bars[0].volume == 1500.0

    def test_blank_leading_header_column(self) -> None:
        """An unnamed index column (as written by DataFrame.to_csv) keeps fields aligned."""
        content = (
            ",time,open,high,low,close,volume\n"
            "0,1700000000,1,2,0.5,1.5,10\n"
            "1,1700000300,1.5,2,1,1.8,11\n"
        )
        bars = parse_csv(content)

        assert len(bars) == 2
        assert bars[0].timestamp == 1_700_000_000_000
        assert (bars[0].open, bars[0].high, bars[0].low, bars[0].close) == (1.0, 2.0, 0.5, 1.5)
        assert bars[0].volume == 10.0
        assert bars[1].timestamp == 1_700_000_300_000
        assert bars[1].close == 1.8

    def test_tab_without_header(self) -> None:
        """No letters in the first row: default column order, no row skipped."""
        content = (
            "1704067200000\t100\t102\t99\t101\t1500\n"
            "1704067500000\t101\t103\t100\t102\t1600\n"
        )
        bars = parse_csv(content)
        assert len(bars) == 2
        assert bars[0].close == 101.0

    def test_whitespace_separated(self) -> None:
        """Whitespace-separated rows parse with the fallback delimiter."""
        content = (
            "1704067200000  100 102 99 101 1500\n"
            "1704067500000 101  103 100 102 1600\n"
        )
        bars = parse_csv(content)
        assert [b.close for b in bars] == [101.0, 102.0]

    def test_date_strings(self) -> None:
        """Date-time strings parse as UTC."""
        content = (
            "2024-01-01 00:00:00,100,102,99,101,1500\n"
            "2024-01-01 00:05:00,101,103,100,102,1600\n"
        )
        bars = parse_csv(content)
        assert [b.timestamp for b in bars] == [1_704_067_200_000, 1_704_067_500_000]

    def test_invalid_rows_skipped(self) -> None:
        """Unparseable prices or times drop the row; bad volume becomes 0."""
        content = (
            "time,open,high,low,close,volume\n"
            "1704067200,100,102,99,101,1500\n"
            "1704067500,101,103,100,abc,1600\n"
            "garbage,101,103,100,102,1600\n"
            "1704068100,102,104,101,103,\n"
        )
        bars = parse_csv(content)

        assert [b.timestamp for b in bars] == [1_704_067_200_000, 1_704_068_100_000]
        assert bars[1].volume == 0.0

    def test_sorted_by_time(self) -> None:
        """Rows are returned in time order regardless of file order."""
        content = (
            "time,open,high,low,close,volume\n"
            "1704067500,101,103,100,102,1600\n"
            "1704067200,100,102,99,101,1500\n"
        )
        bars = parse_csv(content)
        assert [b.close for b in bars] == [101.0, 102.0]

    def test_quoted_values(self) -> None:
        """Quotes around cells are stripped."""
        content = (
            '"time","open","high","low","close","volume"\n'
            '"1704067200","100","102","99","101","1500"\n'
        )
        bars = parse_csv(content)
        assert len(bars) == 1
        assert bars[0].close == 101.0

    def test_too_short(self) -> None:
        """Fewer than two lines yields no bars."""
        assert parse_csv("time,open,high,low,close,volume") == []
        assert parse_csv("") == []


class TestLoadCSV:
    """Tests for load_csv."""

    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bars.csv"
        path.write_text(
            "time,open,high,low,close,volume\n1704067200,100,102,99,101,1500\n",
            encoding="utf-8",
        )
        bars = load_csv(path)
        assert len(bars) == 1
        assert bars[0].timestamp == 1_704_067_200_000
