"""
Tests for configuration models and provider config loading.
"""

import pytest
from pydantic import ValidationError

from ucloud_network.config import (
    ConfigValidationError,
    SubnetConfig,
    VPCConfig,
    load_provider_config,
)


class TestVPCConfig:
    def test_defaults(self):
        config = VPCConfig(cidr_blocks={"192.168.0.0/16"})
        assert config.name is None
        assert config.tag == "Default"
        assert config.remark is None

    @pytest.mark.parametrize("tag", ["", None])
    def test_empty_tag_becomes_default(self, tag):
        assert VPCConfig(cidr_blocks={"10.0.0.0/8"}, tag=tag).tag == "Default"

    def test_cidr_blocks_are_normalized_and_deduplicated(self):
        config = VPCConfig(cidr_blocks=["10.0.0.0/8", " 10.0.0.0/8", "192.168.0.0/16"])
        assert config.cidr_blocks == {"10.0.0.0/8", "192.168.0.0/16"}

    @pytest.mark.parametrize("block", [
        "10.0.0.1/8",        # host bits set
        "8.8.8.0/24",        # public range
        "172.16.0.0/8",      # wider than the private range
        "192.168.0.0/30",    # smaller than /29
        "not-a-cidr",
    ])
    def test_rejects_invalid_cidr_blocks(self, block):
        with pytest.raises(ValidationError):
            VPCConfig(cidr_blocks={block})

    def test_requires_at_least_one_block(self):
        with pytest.raises(ValidationError):
            VPCConfig(cidr_blocks=set())

    @pytest.mark.parametrize("name", ["prod-vpc", "vpc_1.a", "生产网络"])
    def test_accepts_names(self, name):
        assert VPCConfig(cidr_blocks={"10.0.0.0/8"}, name=name).name == name

    @pytest.mark.parametrize("name", ["has space", "x" * 64, "semi;colon"])
    def test_rejects_names(self, name):
        with pytest.raises(ValidationError):
            VPCConfig(cidr_blocks={"10.0.0.0/8"}, name=name)


def test_subnet_config_normalizes_cidr():
    config = SubnetConfig(vpc_id="uvnet-a", cidr_block="10.0.1.0/24", tag="")
    assert config.cidr_block == "10.0.1.0/24"
    assert config.tag == "Default"


class TestLoadProviderConfig:
    def test_environment_only(self):
        config = load_provider_config(environ={
            "UCLOUD_PUBLIC_KEY": "pub",
            "UCLOUD_PRIVATE_KEY": "priv",
            "UCLOUD_REGION": "cn-bj2",
        })
        assert config.region == "cn-bj2"
        assert config.base_url == "https://api.ucloud.cn"
        assert config.waits.create_timeout == 180
        assert config.waits.delete_timeout == 300

    def test_yaml_then_environment_then_overrides(self, tmp_path):
        path = tmp_path / "ucloud.yaml"
        path.write_text(
            "provider:\n"
            "  public_key: file-pub\n"
            "  private_key: file-priv\n"
            "  region: cn-sh2\n"
            "  base_url: https://api.example.com/\n"
            "  waits:\n"
            "    create_timeout: 60\n"
        )

        config = load_provider_config(
            str(path),
            environ={"UCLOUD_PUBLIC_KEY": "env-pub"},
            region="hk",
            project_id=None,
        )

        assert config.public_key == "env-pub"
        assert config.private_key == "file-priv"
        assert config.region == "hk"
        assert config.project_id is None
        assert config.base_url == "https://api.example.com"
        assert config.waits.create_timeout == 60

    def test_missing_credentials_are_reported(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            load_provider_config(environ={"UCLOUD_REGION": "cn-bj2"})

        message = str(exc_info.value)
        assert "provider -> public_key" in message
        assert "provider -> private_key" in message

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_provider_config(str(tmp_path / "absent.yaml"), environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("provider: [unclosed\n")

        with pytest.raises(ConfigValidationError):
            load_provider_config(str(path), environ={})
