"""Session provider for AWS clients.

Centralizes boto3 session creation, credential management and client
configuration for the backends. Handles role assumption for cross-account
access.
"""

from typing import Any, Dict, Optional

import boto3  # type: ignore
import structlog
from botocore.client import BaseClient  # type: ignore

logger = structlog.get_logger()


def get_boto3_session(
    session_config: Optional[Dict[str, Any]] = None,
    role_arn: Optional[str] = None,
    session_name: str = "CloudToolsSession",
) -> boto3.Session:
    """Create a boto3 session, optionally assuming a role.

    Args:
        session_config: Optional boto3 session kwargs (e.g., region_name)
        role_arn: Optional role to assume for cross-account access
        session_name: Name for assumed role session

    Returns:
        boto3.Session
    """
    session_config = session_config or {}

    if role_arn:
        sts = boto3.client("sts")
        assumed = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
        creds = assumed["Credentials"]
        return boto3.Session(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            **session_config,
        )

    return boto3.Session(**session_config)


def get_boto3_client(
    service_name: str,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    role_arn: Optional[str] = None,
) -> BaseClient:
    """Create a low-level boto3 client for the given service.

    Args:
        service_name: AWS service name (e.g., 's3')
        session_config: Optional boto3 session kwargs (e.g., region_name)
        client_config: Optional client kwargs (e.g., endpoint_url)
        role_arn: Optional role to assume for cross-account access

    Returns:
        botocore client instance
    """
    session = get_boto3_session(session_config, role_arn)
    return session.client(service_name, **(client_config or {}))


def get_document_client(
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    role_arn: Optional[str] = None,
) -> BaseClient:
    """Create a DynamoDB client that speaks plain Python values.

    The client of a boto3 DynamoDB *resource* serializes request attributes
    and deserializes response attributes automatically, so items, keys and
    cursors are plain dicts instead of {"S": ...} attribute-value maps.
    """
    session = get_boto3_session(session_config, role_arn)
    resource = session.resource("dynamodb", **(client_config or {}))
    return resource.meta.client


class SessionProvider:
    """Centralized provider for AWS session configuration.

    Manages region, endpoint URL and role assumption so each backend does
    not duplicate this code.

    Args:
        region: AWS region for all clients (e.g., 'ca-central-1')
        endpoint_url: Custom endpoint URL (for testing/LocalStack)
        service_role_map: Optional mapping of service name to role ARN
    """

    def __init__(
        self,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        service_role_map: Optional[Dict[str, str]] = None,
    ) -> None:
        self.region = region
        self.endpoint_url = endpoint_url
        self.service_role_map = service_role_map

    def get_role_arn_for_service(self, service_name: str) -> Optional[str]:
        """Role ARN to assume for the given service, if one is configured."""
        if self.service_role_map and service_name in self.service_role_map:
            return self.service_role_map[service_name]
        return None

    def build_client_kwargs(
        self,
        service_name: Optional[str] = None,
        role_arn: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build session and client configuration kwargs for boto3.

        Args:
            service_name: AWS service name used for role lookup
            role_arn: Explicit role ARN; resolved from service_role_map when
                omitted
            endpoint_url: Endpoint overriding the provider's default

        Returns:
            Dict with session_config, client_config and role_arn
        """
        if role_arn is None and service_name:
            role_arn = self.get_role_arn_for_service(service_name)

        session_config = {}
        client_config = {}

        if self.region:
            session_config["region_name"] = self.region
            client_config["region_name"] = self.region

        effective_endpoint = endpoint_url or self.endpoint_url
        if effective_endpoint:
            client_config["endpoint_url"] = effective_endpoint

        logger.debug(
            "built_client_kwargs",
            service_name=service_name,
            session_config=session_config,
            client_config=client_config,
            role_arn=role_arn,
        )
        return {
            "session_config": session_config or None,
            "client_config": client_config or None,
            "role_arn": role_arn,
        }

    def get_client(self, service_name: str, role_arn: Optional[str] = None) -> Any:
        """Low-level boto3 client for `service_name`."""
        kw = self.build_client_kwargs(service_name, role_arn)
        return get_boto3_client(service_name, **kw)

    def get_document_client(
        self, role_arn: Optional[str] = None, endpoint_url: Optional[str] = None
    ) -> Any:
        """DynamoDB document client (plain Python values)."""
        kw = self.build_client_kwargs("dynamodb", role_arn, endpoint_url)
        return get_document_client(**kw)
