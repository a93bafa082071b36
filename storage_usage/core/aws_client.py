"""
AWS Client Module
=================

Region-bound boto3 session holder used by the storage provider.

Every client built here shares one botocore ``Config``: adaptive retries
with ``max_retries`` retries after the first attempt, and a connect/read
timeout that acts as the deadline of each EC2 call. A call that exceeds
it fails with a botocore timeout error, which the provider reports like
any other failed query.

Example
-------
>>> from storage_usage.core.aws_client import AWSClient
>>>
>>> client = AWSClient(region="eu-west-1", profile="production", timeout=10)
>>> ec2 = client.get_ec2_client()
>>> client.get_account_id()
'123456789012'
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from storage_usage.core.exceptions import (
    AWSClientError,
    ClientConstructionError,
    CredentialsError,
    RegionError,
)

# Module logger
logger = logging.getLogger(__name__)

CREDENTIALS_HINT = (
    "Run 'aws configure', pass --profile, or set AWS_ACCESS_KEY_ID and "
    "AWS_SECRET_ACCESS_KEY"
)
INVALID_KEY_CODES = ("InvalidClientTokenId", "SignatureDoesNotMatch", "ExpiredToken")


def build_config(max_retries: int, timeout: int) -> Config:
    """botocore settings shared by every client of one :class:`AWSClient`."""
    return Config(
        retries={"max_attempts": max_retries, "mode": "adaptive"},
        connect_timeout=timeout,
        read_timeout=timeout,
    )


class AWSClient:
    """
    boto3 session and service clients for a single region.

    Parameters
    ----------
    region : str, default="us-east-1"
        Region every client is bound to.
    profile : str, optional
        Named profile from the shared AWS config files.
    max_retries : int, default=3
        Retries after the first attempt of each API call.
    timeout : int, default=30
        Connect and read deadline per API call, in seconds.

    Notes
    -----
    The session and each service client are built on first use and then
    reused; a lock makes concurrent first use from several dispatcher
    threads safe.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.region = region
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._config = build_config(max_retries, timeout)
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def _open_session(self) -> boto3.Session:
        if self.profile:
            return boto3.Session(region_name=self.region, profile_name=self.profile)
        return boto3.Session(region_name=self.region)

    @property
    def session(self) -> boto3.Session:
        """
        The boto3 session, opened on first access.

        Raises
        ------
        CredentialsError
            If ``profile`` does not exist.
        RegionError
            If no region can be determined.
        """
        with self._lock:
            if self._session is not None:
                return self._session
            try:
                self._session = self._open_session()
            except ProfileNotFound:
                raise CredentialsError(
                    f"AWS profile '{self.profile}' not found",
                    region=self.region,
                    details={"profile": self.profile, "hint": CREDENTIALS_HINT},
                )
            except NoRegionError:
                raise RegionError(f"Invalid or missing region: {self.region}", region=self.region)
            logger.debug(f"Opened boto3 session for {self.region} (profile={self.profile!r})")
            return self._session

    def client(self, service_name: str) -> Any:
        """
        Return the cached boto3 client for ``service_name``.

        Raises
        ------
        CredentialsError
            If no credentials can be found.
        ClientConstructionError
            If botocore rejects the client (unknown region, bad endpoint, ...).
        """
        session = self.session
        with self._lock:
            cached = self._clients.get(service_name)
            if cached is not None:
                return cached
            try:
                built = session.client(service_name, config=self._config)
            except NoCredentialsError:
                raise CredentialsError(
                    "AWS credentials not found",
                    service=service_name,
                    region=self.region,
                    details={"hint": CREDENTIALS_HINT},
                )
            except (BotoCoreError, ValueError) as e:
                raise ClientConstructionError(
                    f"Failed to create {service_name} client: {e}",
                    service=service_name,
                    region=self.region,
                )
            self._clients[service_name] = built
            return built

    def get_ec2_client(self) -> Any:
        return self.client("ec2")

    def caller_identity(self) -> Dict[str, str]:
        """
        STS ``GetCallerIdentity`` for the configured credentials.

        Raises
        ------
        CredentialsError
            If the keys are missing, invalid or expired.
        AWSClientError
            For any other STS failure.
        """
        try:
            return self.client("sts").get_caller_identity()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code in INVALID_KEY_CODES:
                raise CredentialsError(
                    "Invalid AWS credentials",
                    service="sts",
                    details={"error_code": code, "hint": CREDENTIALS_HINT},
                )
            raise AWSClientError(f"GetCallerIdentity failed: {e}", service="sts", region=self.region)
        except BotoCoreError as e:
            raise AWSClientError(f"GetCallerIdentity failed: {e}", service="sts", region=self.region)

    def validate_credentials(self) -> bool:
        """Return True if STS accepts the credentials; raise otherwise."""
        identity = self.caller_identity()
        logger.info(f"Credentials valid for {identity['Arn']}")
        return True

    def get_account_id(self) -> str:
        return self.caller_identity()["Account"]

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"AWSClient(region='{self.region}', profile={self.profile!r}, "
            f"timeout={self.timeout})"
        )
