"""Tests for the atomic CSV writer."""

from __future__ import annotations

import os
from datetime import time
from unittest.mock import patch

import pytest

from power_position.core.models import PowerPosition
from power_position.positions.aggregator import aggregate_positions
from power_position.positions.csv_writer import CsvPositionWriter, OutputWriteError


@pytest.fixture
def writer() -> CsvPositionWriter:
    return CsvPositionWriter()


class TestFormat:
    def test_header_and_24_rows(self, writer, make_trade, tmp_path, read_csv):
        out = tmp_path / "PowerPosition_20240116.csv"
        writer.write_atomic(aggregate_positions([make_trade(1.0), make_trade(2.0)]), out)

        lines = read_csv(out)
        assert lines[-1] == ""  # newline-terminated
        rows = lines[:-1]
        assert len(rows) == 25
        assert rows[0] == "Local Time,Volume"
        assert rows[1] == "23:00,3.00"
        assert rows[2] == "00:00,3.00"
        assert rows[24] == "22:00,3.00"

    def test_zero_volumes_written_with_two_decimals(self, writer, tmp_path, read_csv):
        out = tmp_path / "out.csv"
        writer.write_atomic(aggregate_positions([]), out)

        rows = read_csv(out)[1:-1]
        assert len(rows) == 24
        assert all(row.endswith(",0.00") for row in rows)

    def test_utf8_without_bom_and_lf_line_endings(self, writer, tmp_path):
        out = tmp_path / "out.csv"
        writer.write_atomic(aggregate_positions([]), out)

        raw = out.read_bytes()
        assert raw.startswith(b"Local Time,Volume\n")
        assert b"\r" not in raw

    def test_rows_sorted_by_period(self, writer, tmp_path, read_csv):
        positions = [
            PowerPosition(period=p, local_time=time((22 + p) % 24, 0), volume=float(p))
            for p in range(24, 0, -1)
        ]
        out = tmp_path / "out.csv"
        writer.write_atomic(positions, out)

        rows = read_csv(out)[1:-1]
        assert rows[0] == "23:00,1.00"
        assert rows[-1] == "22:00,24.00"


class TestAtomicity:
    def test_replaces_existing_file(self, writer, make_trade, tmp_path, read_csv):
        out = tmp_path / "out.csv"
        out.write_text("stale content\n", encoding="utf-8")

        writer.write_atomic(aggregate_positions([make_trade(5.0)]), out)

        assert read_csv(out)[1] == "23:00,5.00"

    def test_no_temp_files_left_after_success(self, writer, tmp_path):
        out = tmp_path / "out.csv"
        writer.write_atomic(aggregate_positions([]), out)
        assert [p.name for p in tmp_path.iterdir()] == ["out.csv"]

    def test_publish_failure_keeps_previous_file_and_cleans_temp(self, writer, tmp_path):
        out = tmp_path / "out.csv"
        out.write_text("previous\n", encoding="utf-8")

        with patch(
            "power_position.positions.csv_writer.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(OutputWriteError, match="disk full"):
                writer.write_atomic(aggregate_positions([]), out)

        assert out.read_text(encoding="utf-8") == "previous\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.csv"]

    def test_failure_surfaces_even_if_temp_cleanup_fails(self, writer, tmp_path):
        out = tmp_path / "out.csv"
        with patch(
            "power_position.positions.csv_writer.os.replace",
            side_effect=OSError("disk full"),
        ), patch(
            "power_position.positions.csv_writer.os.unlink",
            side_effect=OSError("busy"),
        ):
            with pytest.raises(OutputWriteError):
                writer.write_atomic(aggregate_positions([]), out)

        assert not out.exists()

    def test_missing_directory_raises_output_write_error(self, writer, tmp_path):
        with pytest.raises(OutputWriteError):
            writer.write_atomic(aggregate_positions([]), tmp_path / "missing" / "out.csv")


class TestContract:
    @pytest.mark.parametrize("count", [0, 23, 25])
    def test_wrong_position_count_raises(self, writer, tmp_path, count):
        positions = [PowerPosition(period=1, local_time=time(23, 0), volume=0.0)] * count
        with pytest.raises(ValueError, match="Expected 24 positions"):
            writer.write_atomic(positions, tmp_path / "out.csv")
        assert not os.listdir(tmp_path)
