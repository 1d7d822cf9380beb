"""One bounded unit of import work for a single source."""

from __future__ import annotations

import logging
from collections.abc import Callable

from youtube_exporter.domain.models.export import BatchOutcome
from youtube_exporter.domain.models.source import Source
from youtube_exporter.domain.services.source_client import SourceClient
from youtube_exporter.domain.services.source_registry import SourceRegistry
from youtube_exporter.domain.services.video_store import VideoStore

logger = logging.getLogger(__name__)


class BatchExecutor:
    """
    Imports the next page of one source.

    The executor fetches the page at the source's cursor, stores its videos
    and only then moves the cursor. A failing fetch raises before anything
    is written, so the same page is requested again on the next attempt.
    """

    def __init__(
        self,
        client_factory: Callable[[str], SourceClient],
        registry: SourceRegistry,
        video_store: VideoStore,
    ) -> None:
        """
        Initialize the batch executor.

        Args:
            client_factory: Builds the remote client acting for a given user
            registry: Registry holding the source cursors
            video_store: Store receiving the imported videos
        """
        self.client_factory = client_factory
        self.registry = registry
        self.video_store = video_store

    async def run_batch(self, source: Source) -> BatchOutcome:
        """
        Fetch, store and advance one page of ``source``.

        Returns:
            BatchOutcome with the number of new videos and whether pages remain

        Raises:
            SourceNotFoundError: If the source vanished remotely
            AuthenticationError: If the user's credential is unusable
            QuotaExceededError: If the remote API ran out of quota
            APIError: For transient remote failures
        """
        client = self.client_factory(source.user_id)
        page = await client.fetch_page(source.kind, source.external_id, source.cursor)

        imported = self.video_store.upsert_page(source, page.items)
        updated = self.registry.advance(
            source.id,
            page.next_cursor,
            len(page.items),
            page.total_results or None,
        )

        logger.info(
            f"Imported {imported} new of {len(page.items)} videos from {updated}"
        )
        return BatchOutcome(
            records_imported=imported,
            has_more=page.has_more,
            cost_consumed=client.page_cost,
            items_seen=len(page.items),
        )
