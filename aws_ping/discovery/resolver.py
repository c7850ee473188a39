"""EC2-backed membership resolution for the AWS_PING discovery protocol."""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..config import AppConfig
from ..exceptions import AddressConstructionWarning, CloudApiError
from .aws_client import build_ec2_client
from .filters import parse_filters, parse_tag_names
from .metadata import InstanceIdentityResolver
from .models import AttributeFilter, InstanceIdentity, MemberAddress
from .tags import get_instance_tags

logger = logging.getLogger(__name__)

TAG_FILTER_PREFIX = "tag:"


class MembershipResolver:
    """Answers "which addresses belong to this cluster?" from EC2 describe-instances.

    All state is fixed at construction; resolve_members() only reads it, so
    concurrent rounds need no locking.

    With no tag names and no filters configured the query is unfiltered and
    every instance visible to the credentials becomes a member.
    """

    name = "AWS_PING"

    def __init__(
        self,
        ec2: Any,
        port: int,
        identity: InstanceIdentity | None = None,
        filters: tuple[AttributeFilter, ...] = (),
        tag_names: tuple[str, ...] | None = None,
    ):
        if tag_names is not None and identity is None:
            raise ValueError("tag_names requires the local instance identity")
        self._ec2 = ec2
        self._port = port
        self._identity = identity
        self._filters = tuple(filters)
        self._tag_names = tag_names

    @classmethod
    def from_config(cls, config: AppConfig) -> MembershipResolver:
        """Initialization: parse discovery criteria, resolve identity, build the EC2 client.

        Raises ConfigurationError or IdentityResolutionError; either must abort startup.
        """
        discovery = config.discovery
        filters = tuple(parse_filters(discovery.filters)) if discovery.filters is not None else ()
        tag_names = parse_tag_names(discovery.tag_names) if discovery.tag_names is not None else None

        identity = InstanceIdentityResolver(config.metadata).resolve()
        ec2 = build_ec2_client(config.aws)

        logger.info(
            "AWS_PING initialized with %d filters and %s tag names",
            len(filters), len(tag_names) if tag_names is not None else "no",
        )
        return cls(ec2, discovery.port, identity=identity, filters=filters, tag_names=tag_names)

    @property
    def port(self) -> int:
        return self._port

    @property
    def identity(self) -> InstanceIdentity | None:
        return self._identity

    @property
    def filters(self) -> tuple[AttributeFilter, ...]:
        return self._filters

    @property
    def tag_names(self) -> tuple[str, ...] | None:
        return self._tag_names

    def is_dynamic(self) -> bool:
        return True

    def supports_parallel_discovery(self) -> bool:
        return True

    def build_filter_set(self) -> list[AttributeFilter]:
        """Tag-derived filters for the local instance followed by the explicit filters."""
        filters: list[AttributeFilter] = []

        if self._tag_names is not None:
            for tag in get_instance_tags(self._ec2, self._identity.instance_id):
                if tag.key in self._tag_names:
                    filters.append(AttributeFilter(name=TAG_FILTER_PREFIX + tag.key, values=(tag.value,)))

        filters.extend(self._filters)
        return filters

    def resolve_members(self, cluster_name: str) -> list[MemberAddress]:
        """Run one discovery round. Raises CloudApiError if EC2 cannot be queried."""
        filters: list[AttributeFilter] = []
        try:
            filters = self.build_filter_set()
            if not filters:
                logger.warning(
                    "No discovery filters for cluster %s; every visible instance will be a member",
                    cluster_name,
                    extra={"cluster": cluster_name},
                )
            members = self._describe_members(filters)
        except CloudApiError:
            logger.error(
                "Discovery round failed for cluster %s",
                cluster_name,
                extra={"cluster": cluster_name, "filter_count": len(filters)},
            )
            raise

        logger.info(
            "Resolved %d members for cluster %s",
            len(members), cluster_name,
            extra={"cluster": cluster_name, "filter_count": len(filters), "total_members": len(members)},
        )
        return members

    def _describe_members(self, filters: list[AttributeFilter]) -> list[MemberAddress]:
        members: list[MemberAddress] = []

        # Reservations group instances by launch request; members are spread across all of them.
        paginator = self._ec2.get_paginator("describe_instances")
        try:
            for page in paginator.paginate(Filters=[f.to_request() for f in filters]):
                for reservation in page.get("Reservations", []):
                    for raw in reservation.get("Instances", []):
                        try:
                            members.append(MemberAddress.from_ip(raw.get("PrivateIpAddress"), self._port))
                        except AddressConstructionWarning as exc:
                            logger.warning(
                                "Could not build address for instance %s (image %s): %s",
                                raw.get("InstanceId"), raw.get("ImageId"), exc,
                                extra={"instance_id": raw.get("InstanceId")},
                            )
        except (BotoCoreError, ClientError) as exc:
            raise CloudApiError(f"describe_instances failed: {exc}") from exc

        return members
