"""UCloud API client: request signing, transport retries and lookups."""

import hashlib
from typing import Any, Dict, List, Optional

import requests

from ucloud_network.config.models import ProviderConfig
from ucloud_network.utils.errors import (
    APICallError,
    CredentialError,
    ErrorContext,
    NotFoundError,
)
from ucloud_network.utils.logging import get_logger
from ucloud_network.utils.retry import RetryStrategy

logger = get_logger(__name__)

USER_AGENT = 'ucloud-network/0.1.0'


def encode_params(params: Dict[str, Any]) -> Dict[str, str]:
    """Flatten action parameters into the API's wire form.

    Lists become ``Key.0``, ``Key.1``...; booleans become ``true``/``false``;
    ``None`` values are dropped.

    Args:
        params: Action parameters

    Returns:
        Flat mapping of string keys to string values
    """
    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                encoded[f"{key}.{i}"] = _encode_value(item)
        else:
            encoded[key] = _encode_value(value)
    return encoded


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def sign_params(params: Dict[str, str], private_key: str) -> str:
    """Compute the request signature.

    The signature is the SHA-1 hex digest of every ``key + value`` pair,
    sorted by key, followed by the private key.
    """
    payload = ''.join(f"{key}{params[key]}" for key in sorted(params))
    return hashlib.sha1((payload + private_key).encode('utf-8')).hexdigest()


class UCloudClient:
    """Issues signed API actions against one region with transport retries."""

    def __init__(
        self,
        config: ProviderConfig,
        session: Optional[requests.Session] = None,
        retry_strategy: Optional[RetryStrategy] = None
    ):
        """Initialize API client.

        Args:
            config: Provider connection settings
            session: HTTP session to reuse (a new one is created if omitted)
            retry_strategy: Backoff policy for transient transport errors
        """
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', USER_AGENT)
        self.retry_strategy = retry_strategy or RetryStrategy(max_retries=config.max_retries)

        logger.debug(f"Created UCloud client - Region: {config.region}, "
                     f"Project: {config.project_id or 'default'}, Endpoint: {config.base_url}")

    def invoke(self, action: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call an API action and return its decoded response.

        Args:
            action: API action name, e.g. ``CreateVPC``
            params: Action parameters (lists are flattened automatically)

        Returns:
            Decoded JSON response body

        Raises:
            APICallError: If the response carries a non-zero RetCode or the
                request fails after all transport retries
            CredentialError: If the endpoint rejects the credentials
        """
        request = {
            'Action': action,
            'PublicKey': self.config.public_key,
            'Region': self.config.region,
            'ProjectId': self.config.project_id,
        }
        request.update(params or {})
        form = encode_params(request)
        form['Signature'] = sign_params(form, self.config.private_key)

        logger.debug(f"Invoking {action}")

        try:
            response = self.retry_strategy.execute_with_retry(self._post, form)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status in (401, 403):
                raise CredentialError(
                    f"credentials rejected calling {action} (HTTP {status})",
                    context=ErrorContext(action=action),
                    cause=e
                ) from e
            raise APICallError(
                f"{action} failed with HTTP {status}", action=action, cause=e
            ) from e
        except requests.RequestException as e:
            raise APICallError(f"{action} failed: {e}", action=action, cause=e) from e

        try:
            body = response.json()
        except ValueError as e:
            raise APICallError(
                f"{action} returned a non-JSON response", action=action, cause=e
            ) from e

        ret_code = body.get('RetCode', 0)
        if ret_code != 0:
            message = body.get('Message', 'unknown error')
            raise APICallError(
                f"[RetCode {ret_code}] {message}",
                action=action,
                ret_code=ret_code,
                context=ErrorContext(
                    action=action,
                    request_id=response.headers.get('X-UCLOUD-REQUEST-UUID')
                )
            )

        return body

    def _post(self, form: Dict[str, str]) -> requests.Response:
        response = self.session.post(
            self.config.base_url,
            data=form,
            timeout=self.config.timeout
        )
        response.raise_for_status()
        return response

    def describe_vpc_by_id(self, vpc_id: str) -> Dict[str, Any]:
        """Fetch one VPC record.

        Raises:
            NotFoundError: If no VPC with this id exists
        """
        if not vpc_id:
            raise NotFoundError("vpc id is empty")

        body = self.invoke('DescribeVPC', {'VPCIds': [vpc_id]})
        return self._first(body.get('DataSet'), 'vpc', vpc_id)

    def describe_subnet_by_id(self, subnet_id: str) -> Dict[str, Any]:
        """Fetch one subnet record.

        Raises:
            NotFoundError: If no subnet with this id exists
        """
        if not subnet_id:
            raise NotFoundError("subnet id is empty")

        body = self.invoke('DescribeSubnet', {'SubnetIds': [subnet_id]})
        return self._first(body.get('DataSet'), 'subnet', subnet_id)

    @staticmethod
    def _first(data_set: Optional[List[Dict[str, Any]]], kind: str, resource_id: str) -> Dict[str, Any]:
        if not data_set:
            raise NotFoundError(
                f"{kind} {resource_id!r} is not found",
                context=ErrorContext(resource_id=resource_id, resource_type=kind)
            )
        return data_set[0]

    def close(self):
        """Close the underlying HTTP session."""
        self.session.close()
