"""Pydantic models for provider settings and network resource records."""

import ipaddress
import re
from typing import ClassVar, List, Optional, Set, Tuple

from pydantic import BaseModel, Field, field_validator

DEFAULT_TAG = "Default"
DEFAULT_BASE_URL = "https://api.ucloud.cn"

# Letters, digits, CJK ideographs and - _ .
_NAME_PATTERN = re.compile(r"^[A-Za-z0-9\u4e00-\u9fa5_.\-]{1,63}$")
_TAG_PATTERN = re.compile(r"^[A-Za-z0-9\u4e00-\u9fa5_.\-]{0,63}$")

# Private ranges a VPC or subnet may use, with the smallest allowed network
PRIVATE_NETWORKS = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
)
MAX_PREFIX_LENGTH = 29


def validate_name(value: str) -> str:
    """Validate a resource display name."""
    if not _NAME_PATTERN.match(value):
        raise ValueError(
            f"{value!r} is invalid, name must be 1-63 characters of letters, "
            "digits, chinese characters, '-', '_' or '.'"
        )
    return value


def normalize_tag(value: Optional[str]) -> str:
    """Validate a tag, mapping an empty tag to the default sentinel."""
    if value is None or value == "":
        return DEFAULT_TAG
    if not _TAG_PATTERN.match(value):
        raise ValueError(
            f"{value!r} is invalid, tag must be at most 63 characters of letters, "
            "digits, chinese characters, '-', '_' or '.'"
        )
    return value


def parse_cidr_block(value: str) -> ipaddress.IPv4Network:
    """Parse a private IPv4 CIDR block.

    Raises:
        ValueError: If the block is malformed, has host bits set, or lies
            outside the private address ranges
    """
    try:
        network = ipaddress.IPv4Network(value.strip(), strict=True)
    except ValueError as e:
        raise ValueError(f"{value!r} is not a valid CIDR block: {e}") from None

    for private in PRIVATE_NETWORKS:
        if network.subnet_of(private):
            if not private.prefixlen <= network.prefixlen <= MAX_PREFIX_LENGTH:
                raise ValueError(
                    f"{value!r} is invalid, prefix length must be between "
                    f"{private.prefixlen} and {MAX_PREFIX_LENGTH} within {private}"
                )
            return network

    raise ValueError(
        f"{value!r} is invalid, CIDR block must be within "
        + ", ".join(str(p) for p in PRIVATE_NETWORKS)
    )


def normalize_cidr_block(value: str) -> str:
    """Return the canonical string form of a CIDR block."""
    return str(parse_cidr_block(value))


class WaitConfig(BaseModel):
    """Timeouts for convergence polling and delete verification, in seconds."""

    create_timeout: float = Field(180.0, gt=0)
    create_delay: float = Field(2.0, ge=0)
    poll_interval: float = Field(1.0, gt=0)
    delete_timeout: float = Field(300.0, gt=0)


class ProviderConfig(BaseModel):
    """Connection settings for the UCloud API."""

    public_key: str = Field(..., min_length=1)
    private_key: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1, description="Region, e.g. cn-bj2")
    project_id: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = Field(3, ge=0, le=10)
    timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds")
    waits: WaitConfig = Field(default_factory=WaitConfig)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) endpoint."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")


class VPCConfig(BaseModel):
    """Declared configuration of a VPC."""

    name: Optional[str] = None
    cidr_blocks: Set[str] = Field(..., min_length=1)
    tag: str = DEFAULT_TAG
    remark: Optional[str] = None

    # name, tag and remark cannot change after creation
    FORCE_NEW_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "tag", "remark")

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return validate_name(v) if v else None

    @field_validator("tag", mode="before")
    @classmethod
    def check_tag(cls, v: Optional[str]) -> str:
        return normalize_tag(v)

    @field_validator("cidr_blocks")
    @classmethod
    def check_cidr_blocks(cls, v: Set[str]) -> Set[str]:
        return {normalize_cidr_block(block) for block in v}


class NetworkInfo(BaseModel):
    """One resolved CIDR block of a VPC."""

    cidr_block: str


class VPCState(BaseModel):
    """VPC attributes as reported by the remote service."""

    id: str
    name: str = ""
    tag: str = DEFAULT_TAG
    remark: Optional[str] = None
    cidr_blocks: Set[str] = Field(default_factory=set)
    network_info: List[NetworkInfo] = Field(default_factory=list)
    create_time: Optional[str] = None
    update_time: Optional[str] = None

    def to_config(self) -> VPCConfig:
        """Return the configuration that would reproduce this state.

        Remote values are taken as they are; a name set outside this tool
        need not pass the checks applied to declared input.
        """
        return VPCConfig.model_construct(
            name=self.name or None,
            cidr_blocks=set(self.cidr_blocks),
            tag=self.tag,
            remark=self.remark,
        )


class SubnetConfig(BaseModel):
    """Declared configuration of a subnet."""

    vpc_id: str = Field(..., min_length=1)
    cidr_block: str
    name: Optional[str] = None
    tag: str = DEFAULT_TAG
    remark: Optional[str] = None

    FORCE_NEW_FIELDS: ClassVar[Tuple[str, ...]] = ("vpc_id", "cidr_block", "remark")

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return validate_name(v) if v else None

    @field_validator("tag", mode="before")
    @classmethod
    def check_tag(cls, v: Optional[str]) -> str:
        return normalize_tag(v)

    @field_validator("cidr_block")
    @classmethod
    def check_cidr_block(cls, v: str) -> str:
        return normalize_cidr_block(v)


class SubnetState(BaseModel):
    """Subnet attributes as reported by the remote service."""

    id: str
    vpc_id: str = ""
    name: str = ""
    tag: str = DEFAULT_TAG
    remark: Optional[str] = None
    cidr_block: str = ""
    create_time: Optional[str] = None

    def to_config(self) -> SubnetConfig:
        """Return the configuration that would reproduce this state, unvalidated."""
        return SubnetConfig.model_construct(
            vpc_id=self.vpc_id,
            cidr_block=self.cidr_block,
            name=self.name or None,
            tag=self.tag,
            remark=self.remark,
        )
