"""Look up the tags attached to a single EC2 instance."""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import CloudApiError
from .models import Tag

logger = logging.getLogger(__name__)

INSTANCE_NOT_FOUND = "InvalidInstanceID.NotFound"


def get_instance_tags(ec2: Any, instance_id: str) -> list[Tag]:
    """Return every tag on ``instance_id``. Empty when it has none or is not found.

    Not cached: tags may change while the process runs.
    """
    try:
        response = ec2.describe_instances(InstanceIds=[instance_id])
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == INSTANCE_NOT_FOUND:
            logger.debug("Instance %s not found, no tags", instance_id)
            return []
        raise CloudApiError(f"Tag lookup for {instance_id} failed: {exc}") from exc
    except BotoCoreError as exc:
        raise CloudApiError(f"Tag lookup for {instance_id} failed: {exc}") from exc

    tags: list[Tag] = []
    for reservation in response.get("Reservations", []):
        for raw in reservation.get("Instances", []):
            tags.extend(Tag.from_response(t) for t in raw.get("Tags") or [])

    logger.debug("Instance %s has %d tags", instance_id, len(tags))
    return tags
