"""
Pytest configuration and shared fixtures for testing.
"""

import threading
import time

import boto3
import pytest
from moto import mock_aws

from storage_usage.core.aws_client import AWSClient
from storage_usage.core.exceptions import ClientConstructionError, DiscoveryError
from storage_usage.core.models import GIB, SnapshotDescriptor, VolumeDescriptor


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region="us-east-1")


@pytest.fixture
def ec2_client(mock_aws_environment):
    """Create a boto3 EC2 client for setting up test resources."""
    return boto3.client("ec2", region_name="us-east-1")


@pytest.fixture
def tagged_volume(ec2_client):
    """Create a 10 GiB volume named 'data-disk'."""
    response = ec2_client.create_volume(
        AvailabilityZone="us-east-1a",
        Size=10,
        TagSpecifications=[
            {
                "ResourceType": "volume",
                "Tags": [{"Key": "Name", "Value": "data-disk"}],
            }
        ],
    )
    return response["VolumeId"]


@pytest.fixture
def untagged_snapshot(ec2_client, tagged_volume):
    """Create an unnamed snapshot of the tagged volume."""
    response = ec2_client.create_snapshot(VolumeId=tagged_volume)
    return response["SnapshotId"]


class FakeProvider:
    """
    In-memory stand-in for StorageProvider.

    Records how many discovery calls are in flight at once, and lets tests
    inject failures per ``(region, resource_type)``.
    """

    def __init__(self, volumes=None, snapshots=None, names=None, regions=None, delay=0.0):
        self.volumes = volumes or {}
        self.snapshots = snapshots or {}
        self.names = names or {}
        self.regions = regions or []
        self.delay = delay

        self.failures = {}
        self.unreachable = set()
        self.regions_error = None

        self.list_regions_calls = 0
        self.tag_lookups = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    def connect(self, region):
        if region in self.unreachable:
            raise ClientConstructionError(
                f"Failed to create EC2 client for {region}",
                service="ec2",
                region=region,
            )
        return object()

    def list_regions(self, bootstrap_region):
        self.list_regions_calls += 1
        if self.regions_error is not None:
            raise DiscoveryError(self.regions_error, region=bootstrap_region)
        return [{"RegionName": name} for name in self.regions]

    def list_volumes(self, region):
        return self._discover(region, "volume", self.volumes)

    def list_snapshots(self, region, owner_scope="self"):
        return self._discover(region, "snapshot", self.snapshots)

    def resolve_name_tag(self, region, resource_id):
        self.tag_lookups.append(resource_id)
        return self.names.get(resource_id)

    def _discover(self, region, resource_type, store):
        with self._lock:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            failure = self.failures.get((region, resource_type))
            if failure is not None:
                raise failure
            return list(store.get(region, []))
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def fake_provider():
    """
    Two regions: us-east-1 with a named instance's volume, an unattached
    volume and a snapshot; eu-west-1 with one snapshot of a named volume.
    """
    return FakeProvider(
        volumes={
            "us-east-1": [
                VolumeDescriptor("vol-a", 100 * GIB, attached_instance_id="i-1"),
                VolumeDescriptor("vol-b", 50 * GIB),
            ],
        },
        snapshots={
            "us-east-1": [SnapshotDescriptor("snap-a", 10 * GIB, name_tag="nightly")],
            "eu-west-1": [SnapshotDescriptor("snap-b", 20 * GIB, source_volume_id="vol-z")],
        },
        names={"i-1": "web", "vol-z": "db-data"},
        regions=["us-east-1", "eu-west-1"],
    )
