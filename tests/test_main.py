"""
Tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from storage_usage import main as cli_module
from storage_usage.core.exceptions import ProviderQueryError
from storage_usage.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def use_fake_provider(monkeypatch, fake_provider):
    """Route every StorageProvider built by the CLI to the in-memory fake."""
    monkeypatch.setattr(cli_module, "StorageProvider", lambda **kwargs: fake_provider)
    return fake_provider


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(
        cli_module, "serve_metrics", lambda publisher, config: calls.append((publisher, config))
    )
    return calls


def scan_args(tmp_path, *extra):
    return [
        "scan",
        "--cache-file",
        str(tmp_path / "regions.json"),
        "--output",
        str(tmp_path / "storage.json"),
        *extra,
    ]


class TestScanCommand:
    """Tests for `storage-usage scan`."""

    def test_scan_writes_report(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(cli, scan_args(tmp_path, "--no-serve"))

        assert result.exit_code == 0, result.output
        rows = json.loads((tmp_path / "storage.json").read_text())
        assert [row["ID"] for row in rows] == ["vol-a", "vol-b", "snap-b", "snap-a"]
        assert rows[0]["AttachedInstance"] == "web"
        assert rows[2]["AttachedInstance"] == "Volume: db-data"
        assert "Storage Used: 100 GB, Volume ID: vol-a" in result.output
        assert "Total Storage Used: 0.18 TB" in result.output
        assert (tmp_path / "regions.json").exists()
        assert served == []

    def test_scan_serves_metrics_by_default(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(cli, scan_args(tmp_path, "--port", "9100"))

        assert result.exit_code == 0, result.output
        ((publisher, config),) = served
        assert config.metrics_port == 9100
        assert publisher.publish_count == 1
        assert b"vol-a" in publisher.render()

    def test_port_in_use(self, runner, tmp_path, use_fake_provider, monkeypatch):
        def busy(publisher, config):
            raise OSError(98, "Address already in use")

        monkeypatch.setattr(cli_module, "serve_metrics", busy)
        result = runner.invoke(cli, scan_args(tmp_path))

        assert result.exit_code == 1
        assert "Cannot serve metrics" in result.output
        assert (tmp_path / "storage.json").exists()

    def test_repeated_region_option(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(
            cli, scan_args(tmp_path, "--no-serve", "--regions", "eu-west-1,eu-west-1")
        )

        assert result.exit_code == 0, result.output
        rows = json.loads((tmp_path / "storage.json").read_text())
        assert [row["ID"] for row in rows] == ["snap-b"]

    def test_explicit_regions_skip_discovery(self, runner, tmp_path, use_fake_provider, served):
        use_fake_provider.regions_error = "must not be called"
        result = runner.invoke(cli, scan_args(tmp_path, "--no-serve", "--regions", "eu-west-1"))

        assert result.exit_code == 0, result.output
        rows = json.loads((tmp_path / "storage.json").read_text())
        assert [row["ID"] for row in rows] == ["snap-b"]
        assert use_fake_provider.list_regions_calls == 0

    def test_partial_failure_is_reported(self, runner, tmp_path, use_fake_provider, served):
        use_fake_provider.failures[("eu-west-1", "snapshot")] = ProviderQueryError(
            "Failed to describe snapshots in eu-west-1: denied"
        )
        result = runner.invoke(cli, scan_args(tmp_path, "--no-serve"))

        assert result.exit_code == 0, result.output
        assert "Errors encountered" in result.output
        assert len(json.loads((tmp_path / "storage.json").read_text())) == 3

    def test_strict_fails_on_partial_failure(self, runner, tmp_path, use_fake_provider, served):
        use_fake_provider.failures[("eu-west-1", "snapshot")] = ProviderQueryError("denied")
        result = runner.invoke(cli, scan_args(tmp_path, "--strict"))

        assert result.exit_code == 1
        assert "1 region(s) failed: eu-west-1" in result.output
        assert (tmp_path / "storage.json").exists()
        assert served == []

    def test_region_discovery_failure(self, runner, tmp_path, use_fake_provider, served):
        use_fake_provider.regions_error = "throttled"
        result = runner.invoke(cli, scan_args(tmp_path, "--no-serve"))

        assert result.exit_code == 1
        assert "throttled" in result.output
        assert not (tmp_path / "storage.json").exists()

    def test_unwritable_report(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(
            cli,
            [
                "scan",
                "--no-serve",
                "--cache-file",
                str(tmp_path / "regions.json"),
                "--output",
                str(tmp_path),
            ],
        )

        assert result.exit_code == 1
        assert "Failed to write report" in result.output

    def test_invalid_concurrency(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(cli, scan_args(tmp_path, "--no-serve", "--max-concurrency", "0"))

        assert result.exit_code == 1
        assert "max_concurrency" in result.output

    def test_empty_regions_option(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(cli, scan_args(tmp_path, "--regions", " , "))
        assert result.exit_code == 2

    def test_settings_from_environment(self, runner, tmp_path, use_fake_provider, served):
        result = runner.invoke(
            cli,
            ["scan", "--cache-file", str(tmp_path / "regions.json")],
            env={
                "STORAGE_USAGE_REPORT_PATH": str(tmp_path / "env.json"),
                "STORAGE_USAGE_METRICS_PORT": "9200",
            },
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "env.json").exists()
        assert served[0][1].metrics_port == 9200

    def test_scan_against_moto(self, runner, tmp_path, tagged_volume, untagged_snapshot, served):
        result = runner.invoke(cli, scan_args(tmp_path, "--no-serve", "--regions", "us-east-1"))

        assert result.exit_code == 0, result.output
        rows = {row["ID"]: row for row in json.loads((tmp_path / "storage.json").read_text())}
        assert rows[tagged_volume]["StorageUsed"] == "10"
        assert rows[tagged_volume]["AttachedInstance"] == "Not Attached"
        assert rows[untagged_snapshot]["AttachedInstance"] == "Volume: data-disk"


class TestRegionsCommand:
    """Tests for `storage-usage regions`."""

    def test_from_cache(self, runner, tmp_path):
        cache = tmp_path / "regions.json"
        cache.write_text(json.dumps([{"RegionName": "us-east-1"}, {"RegionName": "eu-west-1"}]))

        result = runner.invoke(cli, ["regions", "--cache-file", str(cache)])

        assert result.exit_code == 0, result.output
        assert "2 total, from cache" in result.output
        assert "eu-west-1" in result.output

    def test_refresh(self, runner, tmp_path, use_fake_provider):
        cache = tmp_path / "regions.json"
        cache.write_text(json.dumps([{"RegionName": "ap-south-1"}]))

        result = runner.invoke(cli, ["regions", "--cache-file", str(cache), "--refresh"])

        assert result.exit_code == 0, result.output
        assert "from provider" in result.output
        assert "ap-south-1" not in result.output

    def test_discovery_failure(self, runner, tmp_path, use_fake_provider):
        use_fake_provider.regions_error = "no network"
        result = runner.invoke(cli, ["regions", "--cache-file", str(tmp_path / "regions.json")])

        assert result.exit_code == 1
        assert "no network" in result.output


class TestValidateCommand:
    """Tests for `storage-usage validate`."""

    def test_valid_credentials(self, runner, mock_aws_environment):
        result = runner.invoke(cli, ["validate"])

        assert result.exit_code == 0, result.output
        assert "AWS credentials are valid" in result.output
        assert "Account ID: 123456789012" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output
