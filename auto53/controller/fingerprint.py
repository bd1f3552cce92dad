"""
Content fingerprinting for DNS records.

A fingerprint identifies a record by its zone, its name and the *set* of its
addresses: reordering or repeating addresses does not change it. Fingerprints
are computed on demand and never stored, so a record mutated after hashing
simply yields a new fingerprint on the next call.
"""

import hashlib
import json
from typing import Iterable


def canonical_form(zone_key: str, name: str, ips: Iterable[str]) -> bytes:
    """
    Serialize a record identity into a stable byte string.

    Args:
        zone_key: Hosted zone ID, or name when the zone has no ID yet
        name: Record name relative to the zone
        ips: Record addresses, in any order, possibly repeated

    Returns:
        bytes: Canonical encoding
    """
    payload = {"zone": zone_key, "name": name, "ips": sorted(set(ips))}
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def fingerprint(record) -> int:
    """
    Compute the 64-bit content fingerprint of a record.

    Args:
        record: Record to fingerprint

    Returns:
        int: Unsigned 64-bit fingerprint
    """
    digest = hashlib.sha256(
        canonical_form(record.zone.key, record.name, record.ips)
    ).digest()
    return int.from_bytes(digest[:8], "big")
