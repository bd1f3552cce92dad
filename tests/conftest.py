"""Shared fixtures for auto53 tests."""

import pytest

from auto53.models.models import AutoScalingGroup, Instance, NamingRule, Record, Zone


@pytest.fixture
def zone():
    return Zone(id="zone123", name="apex1")


@pytest.fixture
def other_zone():
    return Zone(id="zone456", name="apex2")


@pytest.fixture
def asg1():
    return AutoScalingGroup(
        name="asg1",
        instances=[
            Instance(id="inst1", public_ip="1.1.1.1", private_ip="10.0.0.1", running=True),
            Instance(id="inst2", public_ip="1.1.1.2", private_ip="10.0.0.2", running=True),
        ],
    )


@pytest.fixture
def rule_factory(zone):
    def make(record, group="asg1", private=False, rule_zone=None):
        return NamingRule(
            auto_scaling_group=group,
            zone=rule_zone or zone,
            record=record,
            private=private,
        )

    return make


@pytest.fixture
def record_factory(zone):
    def make(name, *ips, record_zone=None):
        return Record(zone=record_zone or zone, name=name, ips=list(ips))

    return make
