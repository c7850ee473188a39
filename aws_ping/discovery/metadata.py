"""Resolve the local instance's identity from the EC2 instance metadata service."""

from __future__ import annotations

import logging

import requests

from ..config import MetadataConfig
from ..exceptions import IdentityResolutionError
from .models import InstanceIdentity

logger = logging.getLogger(__name__)

INSTANCE_ID_PATH = "instance-id"
LOCAL_ADDRESS_PATH = "local-ipv4s"


class InstanceIdentityResolver:
    """Fetches instance-id and local-ipv4s from the metadata endpoint."""

    def __init__(self, config: MetadataConfig):
        base = config.base_uri
        self._base = base if base.endswith("/") else base + "/"
        self._timeout = config.timeout

    def resolve(self) -> InstanceIdentity:
        """Perform both metadata lookups with a session scoped to this call."""
        with requests.Session() as session:
            instance_id = self._get(session, INSTANCE_ID_PATH)
            local_ipv4s = self._get(session, LOCAL_ADDRESS_PATH)

        # local-ipv4s lists one address per line when several are assigned
        lines = [line.strip() for line in local_ipv4s.splitlines() if line.strip()]
        if not instance_id or not lines:
            raise IdentityResolutionError("Metadata service returned an empty identity")

        identity = InstanceIdentity(instance_id=instance_id, local_address=lines[0])
        logger.info(
            "Resolved instance identity %s (%s)",
            identity.instance_id, identity.local_address,
            extra={"instance_id": identity.instance_id},
        )
        return identity

    def _get(self, session: requests.Session, path: str) -> str:
        url = f"{self._base}{path}"
        logger.debug("GET %s", url)

        try:
            resp = session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise IdentityResolutionError(f"Metadata request for {path} failed: {exc}", path=path) from exc

        if resp.status_code != 200:
            raise IdentityResolutionError(
                f"HTTP {resp.status_code} from metadata service for {path}",
                status_code=resp.status_code,
                path=path,
            )

        return resp.text.strip()
