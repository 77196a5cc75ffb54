"""Tests for the asmscan command."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from asmscan.cli.main import cli
from asmscan.core.errors import ErrorCode, ExitCode
from asmscan.snapshot import (
    AssemblySnapshot,
    AssemblyVersion,
    FieldSnapshot,
    MethodSnapshot,
    ParameterSnapshot,
    TypeSnapshot,
    dump_snapshot,
)

runner = CliRunner()


def _snapshot(
    *,
    version: AssemblyVersion = AssemblyVersion(1, 0),
    hash: str = "0000000004beef",
    readonly: bool = False,
    extra_overload: bool = False,
) -> AssemblySnapshot:
    params = [ParameterSnapshot(0, "x", "System.Int32")]
    if extra_overload:
        params.append(ParameterSnapshot(1, "y", "System.String"))
    return AssemblySnapshot(
        "Lib",
        version=version,
        hash=hash,
        types=(
            TypeSnapshot(
                "Lib.Foo",
                fields=(FieldSnapshot("X", "System.Int32", is_public=True, is_read_only=readonly),),
                methods=(MethodSnapshot.create("Foo", params, is_public=True),),
            ),
        ),
    )


@pytest.fixture
def binary(tmp_path: Path) -> Path:
    path = tmp_path / "Lib.dll"
    path.write_bytes(b"MZ")
    return path


@pytest.fixture
def baseline(tmp_path: Path) -> Path:
    path = tmp_path / "Lib.snapshot.json"
    path.write_text(dump_snapshot(_snapshot()))
    return path


@pytest.fixture
def scanner() -> Iterator[MagicMock]:
    """Replace the introspection adapter; set ``scanner.scan.return_value`` per test."""
    with patch("asmscan.cli.main.ExternalScanner") as scanner_cls:
        instance = scanner_cls.return_value
        instance.scan.return_value = _snapshot()
        yield instance


class TestUsage:
    """Argument count and option errors exit with the usage code."""

    @pytest.mark.parametrize(
        "args",
        [
            [],
            ["a.dll", "b.json", "c.json"],
            ["a.dll", "out", "b.json", "extra"],
            ["a.dll", "OUT", "b.json"],
            ["--bogus", "a.dll"],
        ],
    )
    def test_given_bad_arguments_when_invoked_then_usage_exit(self, args: list[str]) -> None:
        result = runner.invoke(cli, args)

        assert result.exit_code == ExitCode.USAGE

    def test_given_uppercase_out_keyword_when_invoked_then_usage_exit_without_scanning(
        self, scanner: MagicMock, binary: Path, tmp_path: Path
    ) -> None:
        # Given
        target = tmp_path / "s.json"

        # When
        result = runner.invoke(cli, [str(binary), "Out", str(target)])

        # Then
        assert result.exit_code == ExitCode.USAGE
        scanner.scan.assert_not_called()
        assert not target.exists()

    def test_help(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "ASSEMBLY" in result.output

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestPrintMode:
    def test_given_assembly_when_invoked_then_prints_indented_document(
        self, scanner: MagicMock, binary: Path
    ) -> None:
        # When
        result = runner.invoke(cli, [str(binary)])

        # Then
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["name"] == "Lib"
        assert data["types"][0]["fullName"] == "Lib.Foo"
        assert '\n  "name"' in result.stdout
        scanner.scan.assert_called_once_with(binary)

    def test_given_indent_config_when_invoked_then_indent_used(
        self, scanner: MagicMock, binary: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "asmscan.yaml"
        config.write_text("output:\n  indent: 4\n")

        result = runner.invoke(cli, ["--config", str(config), str(binary)])

        assert result.exit_code == 0
        assert '\n    "name"' in result.stdout

    def test_given_missing_assembly_when_invoked_then_assembly_not_found(
        self, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, [str(tmp_path / "Missing.dll")])

        assert result.exit_code == ExitCode.ASSEMBLY_NOT_FOUND
        assert "Assembly not found" in result.output

    def test_given_no_scanner_command_when_invoked_then_scan_failed(self, binary: Path) -> None:
        result = runner.invoke(cli, [str(binary)])

        assert result.exit_code == ExitCode.SCAN_FAILED


class TestWriteMode:
    def test_given_out_keyword_when_invoked_then_writes_compact_document(
        self, scanner: MagicMock, binary: Path, tmp_path: Path
    ) -> None:
        # Given
        target = tmp_path / "new.json"

        # When
        result = runner.invoke(cli, [str(binary), "out", str(target)])

        # Then
        assert result.exit_code == 0
        text = target.read_text()
        assert "\n" not in text
        assert json.loads(text)["hash"] == "0000000004beef"
        assert result.stdout == ""

    def test_given_unwritable_target_when_invoked_then_error_exit(
        self, scanner: MagicMock, binary: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, [str(binary), "out", str(tmp_path / "no" / "dir.json")])

        assert result.exit_code == ExitCode.SNAPSHOT_NOT_FOUND
        assert "Failed to write snapshot" in result.output


class TestDiffMode:
    def test_given_identical_snapshot_when_diffed_then_no_changes(
        self, scanner: MagicMock, binary: Path, baseline: Path
    ) -> None:
        result = runner.invoke(cli, [str(binary), str(baseline)])

        assert result.exit_code == ExitCode.OK
        assert "NONE The assembly file hash is the same." in result.stdout
        assert "The assembly has not changed." in result.stdout
        assert "✓ Changes: none" in result.output

    def test_given_breaking_change_when_diffed_then_major_exit(
        self, scanner: MagicMock, binary: Path, baseline: Path
    ) -> None:
        # Given
        scanner.scan.return_value = _snapshot(readonly=True, hash="0000000004cafe")

        # When
        result = runner.invoke(cli, [str(binary), str(baseline)])

        # Then
        assert result.exit_code == ExitCode.RECOMMEND_MAJOR
        lines = result.stdout.splitlines()
        assert lines[0] == "MAJOR Type 'Lib.Foo' field X is now a readonly field."
        assert lines[-1] == (
            "The assembly interface has had major changes, recommend incrementing the major version."
        )
        assert "! Changes: 1 major" in result.output

    def test_given_major_bump_already_applied_when_diffed_then_ok(
        self, scanner: MagicMock, binary: Path, baseline: Path
    ) -> None:
        scanner.scan.return_value = _snapshot(
            version=AssemblyVersion(2, 0), readonly=True, hash="0000000004cafe"
        )

        result = runner.invoke(cli, [str(binary), str(baseline)])

        assert result.exit_code == ExitCode.OK
        assert "the major version has increased" in result.stdout

    def test_given_overload_change_when_diffed_then_removal_and_addition(
        self, scanner: MagicMock, binary: Path, baseline: Path
    ) -> None:
        scanner.scan.return_value = _snapshot(extra_overload=True, hash="0000000004cafe")

        result = runner.invoke(cli, [str(binary), str(baseline)])

        assert result.exit_code == ExitCode.RECOMMEND_MAJOR
        assert "MAJOR Type 'Lib.Foo' method Foo(System.Int32) has been removed." in result.stdout
        assert (
            "MINOR Type 'Lib.Foo' method Foo(System.Int32,System.String) has been added."
            in result.stdout
        )

    def test_given_content_only_change_when_diffed_then_build_exit(
        self, scanner: MagicMock, binary: Path, baseline: Path
    ) -> None:
        scanner.scan.return_value = _snapshot(hash="0000000004cafe")

        result = runner.invoke(cli, [str(binary), str(baseline)])

        assert result.exit_code == ExitCode.RECOMMEND_BUILD
        assert "Recommend incrementing the build version." in result.stdout

    def test_given_missing_snapshot_when_diffed_then_not_found_exit(
        self, scanner: MagicMock, binary: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, [str(binary), str(tmp_path / "none.json")])

        assert result.exit_code == ExitCode.SNAPSHOT_NOT_FOUND
        assert "Snapshot file not found" in result.output

    def test_given_malformed_snapshot_when_diffed_then_parse_exit(
        self, scanner: MagicMock, binary: Path, tmp_path: Path
    ) -> None:
        broken = tmp_path / "broken.json"
        broken.write_text("{ this is not a snapshot")

        result = runner.invoke(cli, [str(binary), str(broken)])

        assert result.exit_code == ExitCode.SNAPSHOT_PARSE_FAILED

    def test_given_renamed_assembly_when_diffed_then_warns_and_compares(
        self, scanner: MagicMock, binary: Path, baseline: Path
    ) -> None:
        renamed = _snapshot()
        scanner.scan.return_value = AssemblySnapshot(
            "Lib.Renamed", version=renamed.version, hash=renamed.hash, types=renamed.types
        )

        result = runner.invoke(cli, [str(binary), str(baseline)])

        assert result.exit_code == ExitCode.OK
        assert "differs from snapshot name" in result.output


class TestConfigErrors:
    def test_given_missing_config_file_when_invoked_then_config_exit(
        self, binary: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), str(binary)])

        assert result.exit_code == ExitCode.CONFIG_INVALID

    def test_given_invalid_config_value_when_invoked_then_config_exit(
        self, binary: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("scanner:\n  timeout_sec: 0\n")

        result = runner.invoke(cli, ["--config", str(config), str(binary)])

        assert result.exit_code == ExitCode.CONFIG_INVALID
        assert "scanner.timeout_sec" in result.output


class TestErrorLogPointer:
    """Failures point at the log file when a file output is configured."""

    def test_given_file_log_output_when_command_fails_then_points_at_log(
        self, binary: Path, tmp_path: Path
    ) -> None:
        # Given
        log_file = tmp_path / "logs" / "asmscan.log"
        config = tmp_path / "asmscan.yaml"
        config.write_text(
            "logging:\n"
            "  level: INFO\n"
            "  outputs:\n"
            "    - destination: stderr\n"
            "      level: ERROR\n"
            "    - format: json\n"
            f"      destination: {log_file}\n"
        )

        # When
        result = runner.invoke(cli, ["--config", str(config), str(binary)])

        # Then
        assert result.exit_code == ExitCode.SCAN_FAILED
        assert f"See {log_file} for details." in result.output
        events = [json.loads(line) for line in log_file.read_text().splitlines()]
        failed = [e for e in events if e["event"] == "command_failed"]
        assert failed[0]["code"] == ErrorCode.SCANNER_FAILED.value
        assert failed[0]["run_id"]

    def test_given_console_only_logging_when_command_fails_then_no_pointer(
        self, binary: Path
    ) -> None:
        result = runner.invoke(cli, [str(binary)])

        assert result.exit_code == ExitCode.SCAN_FAILED
        assert "for details." not in result.output
