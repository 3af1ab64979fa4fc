"""Serialization capabilities derived from structure roles.

Role structures take their capability straight from :data:`ROLE_CAPABILITIES`.
Generic structs and enums have no role, so they inherit the union of the
capabilities of every item that references them, computed to a fixed point
so that capability flows through chains of nested references. A generic item
that nothing references can be sent and received.
"""

from __future__ import annotations

import logging

from restify.analyzer.scope import EndpointScope, Item, item_references
from restify.models import Capability, DataStructure, StructRole

logger = logging.getLogger(__name__)

ROLE_CAPABILITIES: dict[StructRole, Capability] = {
    StructRole.HEADER: Capability(encode=True, decode=True),
    StructRole.REQUEST: Capability(encode=True),
    StructRole.RESPONSE: Capability(decode=True),
    StructRole.REQRES: Capability(encode=True, decode=True),
    StructRole.QUERY: Capability(encode=True, url_encoded=True),
}
"""Fixed capability of each reserved role."""


def _inherits(item: Item) -> bool:
    return not isinstance(item, DataStructure) or item.role == StructRole.GENERIC


def assign_capabilities(scope: EndpointScope) -> None:
    """Set ``capability`` on every item of the scope's endpoint, in place.

    Unresolvable references are skipped; reference resolution reports them.
    """
    referenced: set[int] = set()
    edges: list[tuple[Item, Item]] = []
    for method, item in scope.items():
        if _inherits(item):
            item.capability = Capability()
        else:
            item.capability = ROLE_CAPABILITIES[item.role].model_copy()
        for ref in item_references(item):
            resolved = scope.resolve(ref.name, method)
            if resolved is None:
                continue
            referenced.add(id(resolved.item))
            if _inherits(resolved.item):
                edges.append((item, resolved.item))

    for _, item in scope.items():
        if _inherits(item) and id(item) not in referenced:
            item.capability = Capability(encode=True, decode=True)

    rounds = 0
    changed = True
    while changed:
        changed = False
        rounds += 1
        for source, target in edges:
            if target.capability.merge(source.capability):
                changed = True

    # Reference cycles that no role item reaches.
    for _, item in scope.items():
        cap = item.capability
        if _inherits(item) and not (cap.encode or cap.decode):
            item.capability = Capability(encode=True, decode=True)

    logger.debug(
        "Capabilities for endpoint %s settled after %d round(s)", scope.endpoint.name, rounds
    )
