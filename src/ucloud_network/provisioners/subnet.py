"""Subnet handler."""

from typing import Any, Dict, Optional

from ucloud_network.config.models import DEFAULT_TAG, SubnetConfig, SubnetState, parse_cidr_block
from ucloud_network.utils.errors import NotFoundError, ProviderError, ErrorContext
from ucloud_network.utils.logging import get_logger, LogContext

from .base import BaseHandler, generate_name, timestamp_to_string

logger = get_logger(__name__)

DEFAULT_NAME_PREFIX = 'tf-subnet-'


class SubnetHandler(BaseHandler[SubnetConfig, SubnetState]):
    """Lifecycle handler for subnets inside a VPC.

    Name and tag are updated in place; every other attribute forces a new
    subnet.
    """

    resource_type = 'subnet'

    def create(self, config: SubnetConfig) -> SubnetState:
        with LogContext(logger, resource_type=self.resource_type, operation='create'):
            network = parse_cidr_block(config.cidr_block)
            request = {
                'VPCId': config.vpc_id,
                'Subnet': str(network.network_address),
                'Netmask': network.prefixlen,
                'SubnetName': config.name or generate_name(DEFAULT_NAME_PREFIX),
                'Tag': config.tag or DEFAULT_TAG,
                'Remark': config.remark or None,
            }

            try:
                response = self.client.invoke('CreateSubnet', request)
            except ProviderError as e:
                raise self.wrap_error(e, f"error on creating subnet, {e}", 'create') from e

            subnet_id = response['SubnetId']
            with LogContext(logger, resource_id=subnet_id):
                logger.info(f"Created subnet {subnet_id} in {config.vpc_id}, waiting for it to initialize")

                try:
                    self.wait_until_available(subnet_id, self.client.describe_subnet_by_id)
                except ProviderError as e:
                    raise self.wrap_error(
                        e, f"error on waiting for subnet {subnet_id!r} complete creating, {e}",
                        'create', subnet_id) from e

                return self._read_existing(subnet_id, 'create')

    def read(self, subnet_id: str) -> Optional[SubnetState]:
        try:
            subnet = self.client.describe_subnet_by_id(subnet_id)
        except NotFoundError:
            logger.info(f"subnet {subnet_id} not found, treating it as deleted")
            return None
        except ProviderError as e:
            raise self.wrap_error(
                e, f"error on reading subnet {subnet_id!r}, {e}", 'read', subnet_id) from e

        return SubnetState(
            id=subnet_id,
            vpc_id=subnet.get('VPCId', ''),
            name=subnet.get('SubnetName', ''),
            tag=subnet.get('Tag') or DEFAULT_TAG,
            remark=subnet.get('Remark'),
            cidr_block=f"{subnet.get('Subnet')}/{subnet.get('Netmask')}",
            create_time=timestamp_to_string(subnet.get('CreateTime')),
        )

    def update(self, subnet_id: str, old: SubnetConfig, new: SubnetConfig) -> SubnetState:
        """Rename or retag the subnet.

        A name left unset in ``new`` keeps the current name.
        """
        attributes: Dict[str, Any] = {}
        if new.name and new.name != old.name:
            attributes['Name'] = new.name
        if new.tag != old.tag:
            attributes['Tag'] = new.tag

        with LogContext(logger, resource_id=subnet_id, resource_type=self.resource_type,
                        operation='update'):
            if attributes:
                try:
                    self.client.invoke('UpdateSubnetAttribute', {'SubnetId': subnet_id, **attributes})
                except ProviderError as e:
                    raise self.wrap_error(
                        e, f"error on UpdateSubnetAttribute to subnet {subnet_id!r}, {e}",
                        'update', subnet_id) from e
                logger.info(f"Updated subnet attributes {sorted(attributes)}")

            return self._read_existing(subnet_id, 'update')

    def delete(self, subnet_id: str) -> None:
        with LogContext(logger, resource_id=subnet_id, resource_type=self.resource_type,
                        operation='delete'):
            if self.read(subnet_id) is None:
                return

            self.delete_and_confirm(
                subnet_id,
                lambda: self.client.invoke('DeleteSubnet', {'SubnetId': subnet_id}),
                self.client.describe_subnet_by_id,
            )
            logger.info(f"Deleted subnet {subnet_id}")

    def _read_existing(self, subnet_id: str, operation: str) -> SubnetState:
        state = self.read(subnet_id)
        if state is None:
            raise NotFoundError(
                f"subnet {subnet_id!r} disappeared during {operation}",
                context=ErrorContext(resource_id=subnet_id, resource_type=self.resource_type,
                                     operation=operation)
            )
        return state
