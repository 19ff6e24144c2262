"""
Shared test fixtures: an in-memory UCloud API and a fake clock.
"""

import itertools
from typing import Any, Dict, List, Optional, Tuple

import pytest

from ucloud_network.config.models import ProviderConfig, WaitConfig
from ucloud_network.provisioners import ProviderContext
from ucloud_network.utils.client import UCloudClient
from ucloud_network.utils.errors import APICallError

CREATE_TIME = 1546300800  # 2019-01-01T00:00:00Z


class FakeClock:
    """Stands in for the ``time`` module inside the waiter and retry loops."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeUCloudClient(UCloudClient):
    """UCloudClient whose ``invoke`` is served from in-memory records.

    Attributes:
        calls: Every (action, params) pair in call order
        hidden_polls: Number of Describe calls that report a newly created
            record as missing before it becomes visible
        undeletable: Number of Delete calls that succeed without removing
            the record
        failures: Action name -> exception raised when that action is invoked
    """

    def __init__(self):
        super().__init__(ProviderConfig(public_key='pub', private_key='priv', region='cn-bj2'))
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.vpcs: Dict[str, Dict[str, Any]] = {}
        self.subnets: Dict[str, Dict[str, Any]] = {}
        self.hidden_polls = 0
        self.undeletable = 0
        self.failures: Dict[str, Exception] = {}
        self._ids = itertools.count(1)

    def invoke(self, action: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = dict(params or {})
        self.calls.append((action, params))
        if action in self.failures:
            raise self.failures[action]
        return getattr(self, f"_{action}")(params)

    def actions(self) -> List[str]:
        return [action for action, _ in self.calls]

    def mutating_calls(self) -> List[Tuple[str, Dict[str, Any]]]:
        return [(a, p) for a, p in self.calls if not a.startswith('Describe')]

    def add_vpc(self, vpc_id: str, networks, name: str = 'existing', tag: str = 'Default'):
        self.vpcs[vpc_id] = {
            'VPCId': vpc_id,
            'Name': name,
            'Tag': tag,
            'Network': list(networks),
            'NetworkInfo': [{'Network': n, 'SubnetCount': 0} for n in networks],
            'CreateTime': CREATE_TIME,
            'UpdateTime': CREATE_TIME,
        }
        return self.vpcs[vpc_id]

    def add_subnet(self, subnet_id: str, vpc_id: str, subnet: str, netmask: int,
                   name: str = 'existing', tag: str = 'Default'):
        self.subnets[subnet_id] = {
            'SubnetId': subnet_id,
            'VPCId': vpc_id,
            'SubnetName': name,
            'Tag': tag,
            'Subnet': subnet,
            'Netmask': netmask,
            'CreateTime': CREATE_TIME,
        }
        return self.subnets[subnet_id]

    def _describe(self, records: Dict[str, Dict[str, Any]], ids: List[str]) -> Dict[str, Any]:
        if self.hidden_polls > 0:
            self.hidden_polls -= 1
            return {'RetCode': 0, 'TotalCount': 0, 'DataSet': []}
        data = [dict(records[i]) for i in ids if i in records]
        return {'RetCode': 0, 'TotalCount': len(data), 'DataSet': data}

    def _CreateVPC(self, params):
        vpc_id = f"uvnet-{next(self._ids)}"
        record = self.add_vpc(vpc_id, params['Network'], params['Name'], params['Tag'])
        if params.get('Remark'):
            record['Remark'] = params['Remark']
        return {'RetCode': 0, 'VPCId': vpc_id}

    def _DescribeVPC(self, params):
        return self._describe(self.vpcs, params['VPCIds'])

    def _AddVPCNetwork(self, params):
        record = self.vpcs[params['VPCId']]
        record['Network'] = record['Network'] + list(params['Network'])
        record['NetworkInfo'] = [{'Network': n, 'SubnetCount': 0} for n in record['Network']]
        return {'RetCode': 0}

    def _UpdateVPCNetwork(self, params):
        record = self.vpcs[params['VPCId']]
        record['Network'] = list(params['Network'])
        record['NetworkInfo'] = [{'Network': n, 'SubnetCount': 0} for n in record['Network']]
        return {'RetCode': 0}

    def _DeleteVPC(self, params):
        if self.undeletable > 0:
            self.undeletable -= 1
        else:
            self.vpcs.pop(params['VPCId'], None)
        return {'RetCode': 0}

    def _CreateSubnet(self, params):
        subnet_id = f"subnet-{next(self._ids)}"
        record = self.add_subnet(subnet_id, params['VPCId'], params['Subnet'], params['Netmask'],
                                 params['SubnetName'], params['Tag'])
        if params.get('Remark'):
            record['Remark'] = params['Remark']
        return {'RetCode': 0, 'SubnetId': subnet_id}

    def _DescribeSubnet(self, params):
        return self._describe(self.subnets, params['SubnetIds'])

    def _UpdateSubnetAttribute(self, params):
        record = self.subnets[params['SubnetId']]
        if 'Name' in params:
            record['SubnetName'] = params['Name']
        if 'Tag' in params:
            record['Tag'] = params['Tag']
        return {'RetCode': 0}

    def _DeleteSubnet(self, params):
        if self.undeletable > 0:
            self.undeletable -= 1
        else:
            self.subnets.pop(params['SubnetId'], None)
        return {'RetCode': 0}


def api_error(action: str, ret_code: int = 8000, message: str = 'server error') -> APICallError:
    return APICallError(f"[RetCode {ret_code}] {message}", action=action, ret_code=ret_code)


@pytest.fixture
def clock(monkeypatch):
    """Replace sleeping and the monotonic clock in polling code."""
    fake = FakeClock()
    monkeypatch.setattr('ucloud_network.utils.waiter.time', fake)
    monkeypatch.setattr('ucloud_network.utils.retry.time', fake)
    return fake


@pytest.fixture
def fake_client():
    return FakeUCloudClient()


@pytest.fixture
def provider(fake_client, clock):
    return ProviderContext(client=fake_client, waits=WaitConfig())
