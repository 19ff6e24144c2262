"""Resource lifecycle handlers for UCloud networking."""

from .base import BaseHandler, ProviderContext, ProvisionPlan, ChangeType
from .validation import NetworkChange, validate_network_change
from .vpc import VPCHandler
from .subnet import SubnetHandler

__all__ = [
    'BaseHandler',
    'ProviderContext',
    'ProvisionPlan',
    'ChangeType',
    'NetworkChange',
    'validate_network_change',
    'VPCHandler',
    'SubnetHandler',
]
