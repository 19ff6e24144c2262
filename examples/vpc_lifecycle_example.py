"""Example usage of the VPC and subnet handlers."""

from ucloud_network.config import VPCConfig, SubnetConfig, load_provider_config
from ucloud_network.provisioners import ProviderContext, VPCHandler, SubnetHandler
from ucloud_network.utils import UCloudClient, ProviderError, error_handler, setup_logging


def main():
    """Create a VPC with one subnet, grow the VPC, then tear everything down."""
    setup_logging('info', log_dir=None)

    # Credentials come from UCLOUD_PUBLIC_KEY / UCLOUD_PRIVATE_KEY / UCLOUD_REGION
    context = ProviderContext.from_client(UCloudClient(load_provider_config()))
    vpcs = VPCHandler(context)
    subnets = SubnetHandler(context)

    vpc_config = VPCConfig(cidr_blocks={'192.168.0.0/16'}, tag='example')

    try:
        vpc = vpcs.create(vpc_config)
        print(f"✓ Created {vpc.id} ({vpc.name})")

        subnet = subnets.create(SubnetConfig(vpc_id=vpc.id, cidr_block='192.168.1.0/24'))
        print(f"✓ Created {subnet.id} in {vpc.id}")

        # Adding a block is applied with AddVPCNetwork
        grown = vpc_config.model_copy(update={'cidr_blocks': {'192.168.0.0/16', '10.10.0.0/16'}})
        vpc = vpcs.update(vpc.id, vpc_config, grown)
        print(f"✓ Networks: {', '.join(n.cidr_block for n in vpc.network_info)}")

        subnets.delete(subnet.id)
        vpcs.delete(vpc.id)
        print("✓ Cleaned up")

    except ProviderError as e:
        error_handler.log_error(e)
        print(e.to_user_message())


if __name__ == '__main__':
    main()
