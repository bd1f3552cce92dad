"""Tests for the Route53 provider."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from auto53.models.errors import RecordSourceError
from auto53.models.models import (
    ChangeAction,
    ChangeDirective,
    Record,
    Zone,
    ZoneChangeBatch,
)
from auto53.provider.route53 import Route53Provider


def _client_error(code: str, msg: str = "error") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": msg}}, "op")


def _a(name, *ips, **extra):
    record_set = {
        "Name": name,
        "Type": "A",
        "TTL": 300,
        "ResourceRecords": [{"Value": ip} for ip in ips],
    }
    record_set.update(extra)
    return record_set


SOA = {"Name": "example.com.", "Type": "SOA", "TTL": 900, "ResourceRecords": [{"Value": "ns"}]}


@pytest.fixture
def svc():
    client = MagicMock()
    return Route53Provider(client=client), client


def _paginate(client, *pages):
    client.get_paginator.return_value.paginate.return_value = list(pages)


class TestZones:
    def test_success(self, svc):
        provider, client = svc
        _paginate(
            client,
            {"HostedZones": [{"Id": "/hostedzone/Z1", "Name": "example.com.", "Config": {"PrivateZone": False}}]},
            {"HostedZones": [{"Id": "/hostedzone/Z2", "Name": "example.com.", "Config": {"PrivateZone": True}}]},
        )
        zones = asyncio.run(provider.zones())
        assert [(z.id, z.name, z.private) for z in zones] == [
            ("Z1", "example.com", False),
            ("Z2", "example.com", True),
        ]

    def test_error(self, svc):
        provider, client = svc
        client.get_paginator.return_value.paginate.side_effect = _client_error("AccessDenied")
        with pytest.raises(RecordSourceError):
            asyncio.run(provider.zones())

    def test_transport_error(self, svc):
        provider, client = svc
        client.get_paginator.return_value.paginate.side_effect = NoCredentialsError()
        with pytest.raises(RecordSourceError):
            asyncio.run(provider.zones())


class TestZoneRecords:
    def test_plain_a_records_only(self, svc):
        provider, client = svc
        _paginate(
            client,
            {
                "ResourceRecordSets": [
                    SOA,
                    _a("example.com.", "9.9.9.9"),
                    _a("inst1-asg1.example.com.", "1.1.1.1"),
                    {"Name": "www.example.com.", "Type": "CNAME", "ResourceRecords": [{"Value": "x"}]},
                ]
            },
            {
                "ResourceRecordSets": [
                    _a("aaa.example.com.", "1.1.1.1", "1.1.1.2"),
                    _a("\\052.example.com.", "3.3.3.3"),
                    {"Name": "lb.example.com.", "Type": "A", "AliasTarget": {"DNSName": "elb"}},
                    _a("w.example.com.", "4.4.4.4", SetIdentifier="blue", Weight=10),
                ]
            },
        )

        records = asyncio.run(provider.zone_records(Zone(id="Z1", name="example.com")))

        zone = Zone(id="Z1")
        assert records == [
            Record(zone=zone, name="inst1-asg1", ips=["1.1.1.1"]),
            Record(zone=zone, name="aaa", ips=["1.1.1.1", "1.1.1.2"]),
            Record(zone=zone, name="*", ips=["3.3.3.3"]),
        ]
        assert records[0].zone.name == "example.com"
        client.get_paginator.return_value.paginate.assert_called_once_with(HostedZoneId="Z1")

    def test_zone_name_from_soa(self, svc):
        provider, client = svc
        _paginate(client, {"ResourceRecordSets": [SOA, _a("a.example.com.", "1.1.1.1")]})
        records = asyncio.run(provider.zone_records(Zone(id="Z1")))
        assert records[0].fqdn == "a.example.com."

    def test_missing_soa(self, svc):
        provider, client = svc
        _paginate(client, {"ResourceRecordSets": [_a("a.example.com.", "1.1.1.1")]})
        with pytest.raises(RecordSourceError):
            asyncio.run(provider.zone_records(Zone(id="Z1")))

    def test_error(self, svc):
        provider, client = svc
        client.get_paginator.return_value.paginate.side_effect = _client_error("NoSuchHostedZone")
        with pytest.raises(RecordSourceError, match="Z1"):
            asyncio.run(provider.zone_records(Zone(id="Z1")))

    def test_transport_error(self, svc):
        provider, client = svc
        client.get_paginator.return_value.paginate.side_effect = EndpointConnectionError(
            endpoint_url="https://route53.amazonaws.com"
        )
        with pytest.raises(RecordSourceError, match="Z1"):
            asyncio.run(provider.zone_records(Zone(id="Z1")))

    def test_octal_escapes_decoded(self, svc):
        provider, client = svc
        _paginate(
            client,
            {
                "ResourceRecordSets": [
                    SOA,
                    _a("\\052.dev.example.com.", "1.1.1.1"),
                    _a("db\\137primary.example.com.", "2.2.2.2"),
                    _a("a\\100b.example.com.", "3.3.3.3"),
                ]
            },
        )
        records = asyncio.run(provider.zone_records(Zone(id="Z1")))
        assert [r.name for r in records] == ["*.dev", "db_primary", "a@b"]

    def test_names_lowercased(self, svc):
        provider, client = svc
        _paginate(client, {"ResourceRecordSets": [SOA, _a("Web.Example.com.", "1.1.1.1")]})
        records = asyncio.run(provider.zone_records(Zone(id="Z1")))
        assert records == [Record(zone=Zone(id="Z1"), name="web", ips=["1.1.1.1"])]

    def test_observed_ttl(self, svc):
        provider, client = svc
        _paginate(
            client,
            {"ResourceRecordSets": [SOA, _a("a.example.com.", "1.1.1.1", TTL=60)]},
        )
        records = asyncio.run(provider.zone_records(Zone(id="Z1")))
        assert records[0].ttl == 60

    def test_records_lists_each_zone_once(self, svc):
        provider, client = svc
        _paginate(client, {"ResourceRecordSets": [SOA, _a("a.example.com.", "1.1.1.1")]})
        zone = Zone(id="Z1", name="example.com")
        records = asyncio.run(provider.records([zone, zone, Zone(id="Z1", name="other")]))
        assert len(records) == 1
        assert client.get_paginator.return_value.paginate.call_count == 1


class TestSubmit:
    def _batch(self):
        return ZoneChangeBatch(
            zone=Zone(id="Z1", name="example.com"),
            changes=[
                ChangeDirective(ChangeAction.DELETE, "a.example.com.", ["1.1.1.1"]),
                ChangeDirective(ChangeAction.CREATE, "a.example.com.", ["2.2.2.2", "2.2.2.3"]),
            ],
        )

    def test_change_batch_shape(self):
        change_batch = Route53Provider.change_batch(self._batch())
        assert change_batch["Comment"] == self._batch().comment
        assert change_batch["Changes"][1] == {
            "Action": "CREATE",
            "ResourceRecordSet": {
                "Name": "a.example.com.",
                "Type": "A",
                "TTL": 300,
                "ResourceRecords": [{"Value": "2.2.2.2"}, {"Value": "2.2.2.3"}],
            },
        }
        assert change_batch["Changes"][0]["Action"] == "DELETE"

    def test_success(self, svc):
        provider, client = svc
        client.change_resource_record_sets.return_value = {"ChangeInfo": {"Id": "/change/C1"}}

        change_id = asyncio.run(provider.submit(self._batch()))

        assert change_id == "/change/C1"
        client.change_resource_record_sets.assert_called_once_with(
            HostedZoneId="Z1", ChangeBatch=Route53Provider.change_batch(self._batch())
        )

    def test_dry_run(self):
        client = MagicMock()
        provider = Route53Provider(client=client, dry_run=True)
        assert asyncio.run(provider.submit(self._batch())) is None
        client.change_resource_record_sets.assert_not_called()

    def test_error_propagates(self, svc):
        provider, client = svc
        client.change_resource_record_sets.side_effect = _client_error("InvalidChangeBatch")
        with pytest.raises(ClientError):
            asyncio.run(provider.submit(self._batch()))

    def test_default_client(self):
        with patch("auto53.provider.route53.boto3") as mock_boto:
            provider = Route53Provider()
        assert provider.client is mock_boto.client.return_value
        assert mock_boto.client.call_args[0] == ("route53",)
