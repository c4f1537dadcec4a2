"""Ownership resolution: which service is the system of record for a resource ID.

There is exactly one catalog scan (``OwnershipResolver.match``). Owner lookup,
the handler registry's catalog fallback and the lookup orchestrator all go
through it, so they can't disagree about who owns an ID.
"""

import logging
from dataclasses import dataclass, field

from oncall.catalog.matcher import matches
from oncall.catalog.models import ResourcePattern, ServiceRecord
from oncall.catalog.store import CatalogStore

logger = logging.getLogger(__name__)

NO_OWNER_ERROR = "No service found that owns this resource pattern"


@dataclass(frozen=True)
class PatternMatch:
    """The owning service and the resource pattern that matched."""

    service: ServiceRecord
    resource: ResourcePattern


@dataclass(frozen=True)
class Resolution:
    owner: ServiceRecord | None
    related: list[ServiceRecord] = field(default_factory=list)


class OwnershipResolver:
    """Maps resource IDs to owning services using the catalog's resource patterns.

    Scans every service on each call. Catalogs are tens to low hundreds of
    services and lookups are agent-paced, so no index is kept.
    """

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    @staticmethod
    def _first_match(services: list[ServiceRecord], resource_id: str) -> PatternMatch | None:
        for service in services:
            for resource in service.resources:
                if matches(resource.pattern, resource_id):
                    return PatternMatch(service=service, resource=resource)
        return None

    def snapshot(self) -> list[ServiceRecord]:
        """The catalog in iteration order, read once from the store."""
        return self.store.list_services()

    def match(self, resource_id: str, services: list[ServiceRecord] | None = None) -> PatternMatch | None:
        """First pattern match in catalog order, or None.

        Pass ``services`` (from ``snapshot``) to answer several questions from
        one catalog read; otherwise the store is read here.

        Raises:
            CatalogUnavailableError: If the store can't be read.
        """
        if services is None:
            services = self.snapshot()
        found = self._first_match(services, resource_id)
        if found is None:
            logger.debug("No catalog pattern matches %s", resource_id)
        else:
            logger.debug(
                "%s matched pattern %r owned by %s", resource_id, found.resource.pattern, found.service.name
            )
        return found

    def find_owner(self, resource_id: str) -> str | None:
        found = self.match(resource_id)
        return found.service.name if found else None

    def resolve(self, resource_id: str) -> Resolution:
        """Owner plus its one-hop blast radius.

        A service is related when it declares an internal dependency on the
        owner, or the owner declares one on it. Order follows the catalog.
        """
        services = self.snapshot()
        found = self.match(resource_id, services)
        if found is None:
            return Resolution(owner=None)
        return Resolution(owner=found.service, related=self.related_services(found.service, services))

    @staticmethod
    def related_services(owner: ServiceRecord, services: list[ServiceRecord]) -> list[ServiceRecord]:
        """Services one internal dependency edge away from ``owner``, in either direction."""
        return [
            service
            for service in services
            if service.name != owner.name and (service.depends_on(owner.name) or owner.depends_on(service.name))
        ]
