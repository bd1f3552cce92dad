"""Tests for the EC2 autoscaling source."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from auto53.models.errors import ConfigError, InventoryError
from auto53.models.models import Instance
from auto53.source.ec2_autoscaling import AUTOSCALING_GROUP_TAG, AutoScalingGroupSource


def _client_error(code: str, msg: str = "error") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": msg}}, "op")


def _ec2_instance(instance_id, group, public="", private="", state="running", **tags):
    raw = {
        "InstanceId": instance_id,
        "State": {"Name": state},
        "Tags": [{"Key": AUTOSCALING_GROUP_TAG, "Value": group}]
        + [{"Key": k, "Value": v} for k, v in tags.items()],
    }
    if public:
        raw["PublicIpAddress"] = public
    if private:
        raw["PrivateIpAddress"] = private
    return raw


@pytest.fixture
def source():
    client = MagicMock()
    return AutoScalingGroupSource(client=client), client


def _pages(client, *pages):
    client.get_paginator.return_value.paginate.return_value = [
        {"Reservations": [{"Instances": list(instances)}]} for instances in pages
    ]


class TestAutoScalingGroups:
    def test_groups_built_from_tags(self, source):
        src, client = source
        _pages(
            client,
            [_ec2_instance("i-1", "asg1", public="1.1.1.1", private="10.0.0.1", Name="web")],
            [_ec2_instance("i-2", "asg2", private="10.0.0.2", state="stopped")],
        )

        groups = asyncio.run(src.auto_scaling_groups(["asg1", "asg2", "asg1"]))

        assert list(groups) == ["asg1", "asg2"]
        assert groups["asg1"].instances == [
            Instance(
                id="i-1",
                public_ip="1.1.1.1",
                private_ip="10.0.0.1",
                tags={AUTOSCALING_GROUP_TAG: "asg1", "Name": "web"},
                running=True,
            )
        ]
        stopped = groups["asg2"].instances[0]
        assert stopped.public_ip == ""
        assert stopped.running is False

        client.get_paginator.assert_called_once_with("describe_instances")
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": f"tag:{AUTOSCALING_GROUP_TAG}", "Values": ["asg1", "asg2"]}]
        )

    def test_empty_group_present(self, source):
        src, client = source
        _pages(client)
        groups = asyncio.run(src.auto_scaling_groups(["asg1"]))
        assert groups["asg1"].instances == []

    def test_no_groups_skips_ec2(self, source):
        src, client = source
        assert asyncio.run(src.auto_scaling_groups([])) == {}
        client.get_paginator.assert_not_called()

    def test_empty_group_name(self, source):
        src, _ = source
        with pytest.raises(ConfigError):
            asyncio.run(src.auto_scaling_groups([""]))

    def test_unknown_group(self, source):
        src, client = source
        _pages(client, [_ec2_instance("i-1", "other")])
        with pytest.raises(InventoryError):
            asyncio.run(src.auto_scaling_groups(["asg1"]))

    def test_client_error(self, source):
        src, client = source
        client.get_paginator.return_value.paginate.side_effect = _client_error("UnauthorizedOperation")
        with pytest.raises(InventoryError):
            asyncio.run(src.auto_scaling_groups(["asg1"]))

    def test_connection_error(self, source):
        src, client = source
        client.get_paginator.return_value.paginate.side_effect = EndpointConnectionError(
            endpoint_url="https://ec2.us-east-1.amazonaws.com"
        )
        with pytest.raises(InventoryError, match="asg1"):
            asyncio.run(src.auto_scaling_groups(["asg1"]))

    def test_missing_credentials(self, source):
        src, client = source
        client.get_paginator.return_value.paginate.side_effect = NoCredentialsError()
        with pytest.raises(InventoryError):
            asyncio.run(src.auto_scaling_groups(["asg1"]))

    def test_default_client(self):
        with patch("auto53.source.ec2_autoscaling.boto3") as mock_boto:
            src = AutoScalingGroupSource(region="eu-west-1")
        assert src.client is mock_boto.client.return_value
        args, kwargs = mock_boto.client.call_args
        assert args == ("ec2",)
        assert kwargs["region_name"] == "eu-west-1"
