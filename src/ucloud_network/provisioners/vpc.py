"""VPC handler: network segments managed as a set of CIDR blocks."""

from typing import Any, Dict, Optional

from ucloud_network.config.models import DEFAULT_TAG, NetworkInfo, VPCConfig, VPCState
from ucloud_network.utils.errors import NotFoundError, ProviderError, ErrorContext
from ucloud_network.utils.logging import get_logger, LogContext

from .base import BaseHandler, generate_name, timestamp_to_string
from .validation import validate_network_change

logger = get_logger(__name__)

DEFAULT_NAME_PREFIX = 'tf-vpc-'


class VPCHandler(BaseHandler[VPCConfig, VPCState]):
    """Lifecycle handler for VPCs.

    Only the CIDR block set may change after creation. Blocks are appended
    with ``AddVPCNetwork``; removing blocks overwrites the whole list with
    ``UpdateVPCNetwork`` because the API has no call to drop a single block.
    """

    resource_type = 'vpc'

    def create(self, config: VPCConfig) -> VPCState:
        """Create a VPC and wait until it can be described.

        Args:
            config: Declared VPC configuration

        Returns:
            State of the new VPC
        """
        with LogContext(logger, resource_type=self.resource_type, operation='create'):
            request = {
                'Network': sorted(config.cidr_blocks),
                'Name': config.name or generate_name(DEFAULT_NAME_PREFIX),
                'Tag': config.tag or DEFAULT_TAG,
                'Remark': config.remark or None,
            }

            try:
                response = self.client.invoke('CreateVPC', request)
            except ProviderError as e:
                raise self.wrap_error(e, f"error on creating vpc, {e}", 'create') from e

            vpc_id = response['VPCId']
            with LogContext(logger, resource_id=vpc_id):
                logger.info(f"Created vpc {vpc_id} ({request['Name']}), waiting for it to initialize")

                try:
                    self.wait_until_available(vpc_id, self.client.describe_vpc_by_id)
                except ProviderError as e:
                    raise self.wrap_error(
                        e, f"error on waiting for vpc {vpc_id!r} complete creating, {e}",
                        'create', vpc_id) from e

                state = self._read_existing(vpc_id, 'create')
                if state.remark is None:
                    state.remark = config.remark
                return state

    def read(self, vpc_id: str) -> Optional[VPCState]:
        """Fetch current VPC state.

        Args:
            vpc_id: VPC identifier

        Returns:
            Current state, or None if the VPC no longer exists
        """
        try:
            vpc = self.client.describe_vpc_by_id(vpc_id)
        except NotFoundError:
            logger.info(f"vpc {vpc_id} not found, treating it as deleted")
            return None
        except ProviderError as e:
            raise self.wrap_error(e, f"error on reading vpc {vpc_id!r}, {e}", 'read', vpc_id) from e

        return self._to_state(vpc_id, vpc)

    def update(self, vpc_id: str, old: VPCConfig, new: VPCConfig) -> VPCState:
        """Apply a CIDR block change.

        Args:
            vpc_id: VPC identifier
            old: Previously applied configuration
            new: Newly declared configuration

        Returns:
            Refreshed state

        Raises:
            ValidationError: If the change both adds and removes blocks; no
                API call is made in that case
        """
        change = validate_network_change(old.cidr_blocks, new.cidr_blocks)

        with LogContext(logger, resource_id=vpc_id, resource_type=self.resource_type,
                        operation='update'):
            if change.added:
                self._call(vpc_id, 'AddVPCNetwork', {
                    'VPCId': vpc_id,
                    'Network': sorted(change.added),
                })
                logger.info(f"Added networks {sorted(change.added)}")

            if change.removed:
                # use the new set to overwrite the full list, dropping old networks
                self._call(vpc_id, 'UpdateVPCNetwork', {
                    'VPCId': vpc_id,
                    'Network': sorted(new.cidr_blocks),
                })
                logger.info(f"Removed networks {sorted(change.removed)}")

            return self._read_existing(vpc_id, 'update')

    def delete(self, vpc_id: str) -> None:
        """Delete the VPC, retrying the existence check for up to the delete timeout.

        Deleting a VPC that is already gone succeeds.

        Args:
            vpc_id: VPC identifier
        """
        with LogContext(logger, resource_id=vpc_id, resource_type=self.resource_type,
                        operation='delete'):
            if self.read(vpc_id) is None:
                return

            self.delete_and_confirm(
                vpc_id,
                lambda: self.client.invoke('DeleteVPC', {'VPCId': vpc_id}),
                self.client.describe_vpc_by_id,
            )
            logger.info(f"Deleted vpc {vpc_id}")

    def validate_change(self, old: VPCConfig, new: VPCConfig) -> None:
        validate_network_change(old.cidr_blocks, new.cidr_blocks)

    def _call(self, vpc_id: str, action: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.client.invoke(action, params)
        except ProviderError as e:
            raise self.wrap_error(e, f"error on {action} to vpc {vpc_id!r}, {e}",
                                  'update', vpc_id) from e

    def _read_existing(self, vpc_id: str, operation: str) -> VPCState:
        state = self.read(vpc_id)
        if state is None:
            raise NotFoundError(
                f"vpc {vpc_id!r} disappeared during {operation}",
                context=ErrorContext(resource_id=vpc_id, resource_type=self.resource_type,
                                     operation=operation)
            )
        return state

    @staticmethod
    def _to_state(vpc_id: str, vpc: Dict[str, Any]) -> VPCState:
        return VPCState(
            id=vpc_id,
            name=vpc.get('Name', ''),
            tag=vpc.get('Tag') or DEFAULT_TAG,
            # not part of the DescribeVPC model on every API version
            remark=vpc.get('Remark'),
            cidr_blocks=set(vpc.get('Network') or []),
            network_info=[
                NetworkInfo(cidr_block=item['Network'])
                for item in vpc.get('NetworkInfo') or []
            ],
            create_time=timestamp_to_string(vpc.get('CreateTime')),
            update_time=timestamp_to_string(vpc.get('UpdateTime')),
        )
