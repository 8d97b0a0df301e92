from __future__ import annotations

import logging

from wagon.common.config import DEFAULT_LIST_PAGE_SIZE
from wagon.infra.storage.client import ObjectSummary, StorageClient

logger = logging.getLogger("wagon.storage")


def list_all_objects(
    client: StorageClient,
    bucket: str,
    *,
    page_size: int = DEFAULT_LIST_PAGE_SIZE,
) -> dict[str, ObjectSummary]:
    """Scan the whole bucket, following continuation tokens until exhausted.

    Every call is a fresh scan; nothing is cached. Backend errors propagate
    unchanged.
    """
    objects: dict[str, ObjectSummary] = {}
    token: str | None = None
    pages = 0
    while True:
        listing = client.list_objects(
            bucket=bucket, max_keys=page_size, continuation_token=token
        )
        pages += 1
        for summary in listing.objects:
            objects[summary.key] = summary
        token = listing.next_continuation_token
        if token is None:
            break

    logger.debug(
        "bucket_listed bucket=%s pages=%s objects=%s",
        bucket,
        pages,
        len(objects),
        extra={"extra": {"bucket": bucket, "pages": pages, "objects": len(objects)}},
    )
    return objects
