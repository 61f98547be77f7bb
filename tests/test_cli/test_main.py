"""Tests for the command line entry point."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from oneinv.cli import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_PLACEMENT_FAILED,
    build_parser,
    main,
)
from oneinv.core.exceptions import TransportError


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the root logger untouched while running the CLI."""
    with patch("oneinv.cli.setup_logging"):
        yield


def dump_args(pool_files):
    vm_file, host_file = pool_files
    return ["--vm-pool", str(vm_file), "--host-pool", str(host_file)]


def test_parser_defaults() -> None:
    """Test defaults come from settings."""
    args = build_parser().parse_args(["placement"])

    assert args.command == "placement"
    assert args.full_pattern == r"^([a-z]{2}).+([a-z]{2})$"
    assert args.prefix == "^"
    assert args.infix == ".+"
    assert args.suffix == "$"
    assert args.datacenters is None
    assert args.legacy_empty_datacenters is False


def test_parser_repeatable_datacenter() -> None:
    """Test that --datacenter accumulates."""
    args = build_parser().parse_args(
        ["placement", "--datacenter", "A", "--datacenter", "B", "--vm-pattern", "db.*"]
    )

    assert args.datacenters == ["A", "B"]
    assert args.vm_pattern == "db.*"


def test_usage_error_exits_with_failure_code() -> None:
    """Test that argument errors do not reuse the placement exit code."""
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(["unknown"])

    assert exc_info.value.code == EXIT_FAILURE


def test_vms_command(pool_files, capsys) -> None:
    """Test that only the pool size is printed by default."""
    code = main(dump_args(pool_files) + ["vms"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Read in VM pool of length 3" in out
    assert "usweb01db" not in out


def test_vms_command_verbose(pool_files, capsys) -> None:
    """Test listing each VM in verbose mode."""
    code = main(dump_args(pool_files) + ["-v", "vms"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Read in VM pool of length 3" in out
    assert "0 usweb01db (CPU: 0.5, template/mem: 1024)" in out
    assert "2 adhoc (CPU: 0, template/mem: 512)" in out


def test_vms_command_json(pool_files, capsys) -> None:
    """Test the VM pool as JSON."""
    code = main(dump_args(pool_files) + ["--json", "vms"])

    data = json.loads(capsys.readouterr().out)
    assert code == EXIT_OK
    assert [vm["name"] for vm in data] == ["usweb01db", "euweb02db", "adhoc"]


def test_hosts_command_verbose(pool_files, capsys) -> None:
    """Test listing hosts with their VMs."""
    code = main(dump_args(pool_files) + ["-v", "hosts"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "1 node1 [A] MONITORED VMs: 1" in out
    assert '2 node2 [""] DISABLED VMs: 1' in out
    assert "3 node3 [<none>] 9 VMs: 0" in out
    assert "    0 usweb01db (CPU: 0.5, template/mem: 1024)" in out


def test_hosts_command_cluster(pool_files, capsys) -> None:
    """Test narrowing hosts to a cluster."""
    code = main(dump_args(pool_files) + ["--cluster", "edge", "--json", "hosts"])

    data = json.loads(capsys.readouterr().out)
    assert code == EXIT_OK
    assert [host["name"] for host in data] == ["node2"]
    assert data[0]["patterns"] == ["^eu.+db$"]


def test_patterns_command(pool_files, capsys) -> None:
    """Test listing patterns per host."""
    code = main(dump_args(pool_files) + ["patterns"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "node1: ^us.+db$" in out
    assert "node3: -" in out


def test_patterns_command_custom_template(pool_files, capsys) -> None:
    """Test that template flags reach the extractor."""
    code = main(
        dump_args(pool_files)
        + ["--full-pattern", r"^([a-z]{2})", "--suffix", ".*", "--json", "patterns"]
    )

    data = json.loads(capsys.readouterr().out)
    assert code == EXIT_OK
    assert data["hosts"]["node1"] == ["^us.*"]
    assert data["template"]["suffix"] == ".*"


def test_placement_ok(pool_files, capsys) -> None:
    """Test a balanced placement exits 0."""
    code = main(
        dump_args(pool_files)
        + ["placement", "--datacenter", "A", "--datacenter", "", "--vm-pattern", ".+db"]
    )

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Total 2, threshold 1: OK" in out


def test_placement_imbalance_exit_code(pool_files, capsys) -> None:
    """Test an imbalance exits with the dedicated code."""
    code = main(
        dump_args(pool_files)
        + ["placement", "--datacenter", "A", "--datacenter", "B", "--vm-pattern", ".+db"]
    )

    out = capsys.readouterr().out
    assert code == EXIT_PLACEMENT_FAILED
    assert "B: 0 (below threshold)" in out
    assert "FAILED" in out


def test_placement_legacy_mode(pool_files, capsys) -> None:
    """Test that legacy mode ignores expected datacenters without VMs."""
    code = main(
        dump_args(pool_files)
        + [
            "placement",
            "--datacenter",
            "A",
            "--datacenter",
            "B",
            "--vm-pattern",
            ".+db",
            "--legacy-empty-datacenters",
        ]
    )

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "B:" not in out


def test_placement_without_datacenters_fails(pool_files, capsys) -> None:
    """Test that a check with no datacenter fails as an error."""
    with patch("oneinv.cli.settings.DATACENTERS", []):
        code = main(dump_args(pool_files) + ["placement"])

    assert code == EXIT_FAILURE
    assert "At least one datacenter" in capsys.readouterr().err


def test_placement_invalid_pattern(pool_files, capsys) -> None:
    """Test that an invalid pattern is a failure, not a verdict."""
    code = main(
        dump_args(pool_files) + ["placement", "--datacenter", "A", "--vm-pattern", "("]
    )

    assert code == EXIT_FAILURE
    assert "Invalid pattern" in capsys.readouterr().err


def test_placement_json(pool_files, capsys) -> None:
    """Test the placement report as JSON."""
    code = main(
        dump_args(pool_files)
        + ["--json", "placement", "--datacenter", "A", "--vm-pattern", "us.+db"]
    )

    data = json.loads(capsys.readouterr().out)
    assert code == EXIT_OK
    assert data["total"] == 1
    assert data["threshold"] == 1
    assert data["ok"] is True
    assert "matched" not in data


def test_missing_dump_file(tmp_path, capsys) -> None:
    """Test that an unreadable dump exits 1."""
    code = main(["--vm-pool", str(tmp_path / "absent.xml"), "vms"])

    assert code == EXIT_FAILURE
    assert "Cannot read" in capsys.readouterr().err


@patch("oneinv.cli.OneClient")
def test_api_source_used_without_dumps(mock_client_class, capsys) -> None:
    """Test that the XML-RPC client is built from flags."""
    mock_client = mock_client_class.return_value
    mock_client.fetch_pool = AsyncMock(side_effect=TransportError("connection refused"))
    mock_client.close = AsyncMock()

    code = main(
        [
            "--api-url",
            "http://one:2633/RPC2",
            "--credentials",
            "u:p",
            "--timeout",
            "3",
            "vms",
        ]
    )

    assert code == EXIT_FAILURE
    mock_client_class.assert_called_once_with(
        api_url="http://one:2633/RPC2", credentials="u:p", timeout=3.0
    )
    mock_client.close.assert_awaited_once()
