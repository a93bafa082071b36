"""
Tests for the AWS Client module.
"""

import pytest

from storage_usage.core.aws_client import AWSClient
from storage_usage.core.exceptions import CredentialsError


class TestAWSClient:
    """Tests for AWSClient class."""

    def test_client_initialization(self, mock_aws_environment):
        """Test basic client initialization."""
        client = AWSClient(region="us-east-1")
        assert client.region == "us-east-1"
        assert client.profile is None

    def test_client_with_profile(self, mock_aws_environment):
        """Test client initialization with profile."""
        client = AWSClient(region="us-west-2", profile="test-profile")
        assert client.region == "us-west-2"
        assert client.profile == "test-profile"

    def test_get_ec2_client(self, mock_aws_environment):
        """Test getting EC2 client."""
        client = AWSClient(region="us-east-1")
        ec2 = client.get_ec2_client()
        assert ec2 is not None
        assert ec2.meta.region_name == "us-east-1"

    def test_ec2_client_is_cached(self, mock_aws_environment):
        """The same boto3 client is returned on every call."""
        client = AWSClient(region="us-east-1")
        assert client.get_ec2_client() is client.get_ec2_client()

    def test_validate_credentials(self, mock_aws_environment):
        """Test credential validation."""
        client = AWSClient(region="us-east-1")
        assert client.validate_credentials() is True

    def test_get_account_id(self, mock_aws_environment):
        """Test getting account ID."""
        client = AWSClient(region="us-east-1")
        account_id = client.get_account_id()
        assert len(account_id) == 12

    def test_timeout_applies_to_connect_and_read(self, mock_aws_environment):
        """The per-call deadline is set on the botocore config."""
        client = AWSClient(region="us-east-1", max_retries=5, timeout=12)
        ec2 = client.get_ec2_client()

        assert ec2.meta.config.connect_timeout == 12
        assert ec2.meta.config.read_timeout == 12

    def test_max_retries_excludes_first_attempt(self, mock_aws_environment):
        """botocore counts the first attempt on top of the retries."""
        ec2 = AWSClient(region="us-east-1", max_retries=5).get_ec2_client()

        assert ec2.meta.config.retries["total_max_attempts"] == 6
        assert ec2.meta.config.retries["mode"] == "adaptive"


class TestAWSClientErrors:
    """Tests for AWSClient error handling."""

    def test_unknown_profile_raises_credentials_error(self, mock_aws_environment):
        """A profile missing from the shared config fails at session creation."""
        client = AWSClient(region="us-east-1", profile="nonexistent-profile-xyz")

        with pytest.raises(CredentialsError, match="not found"):
            client.get_ec2_client()
