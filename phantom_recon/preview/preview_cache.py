"""
Per-category sample preview cache for an open result view.

Each category (common, left exclusive, right exclusive) is fetched at most
once while the view is open. A missing blob marks the category with a
permanent error and it is never requested again; other failures are
recorded and retried on the next ``ensure_loaded``.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

from phantom_recon.api.exceptions import PhantomApiError, NotFoundError
from phantom_recon.api.phantom_client import PhantomClient
from phantom_recon.parser.sample_decoder import SampleDecoder, SampleFormat
from phantom_recon.schema.models import (
    PreviewCategory,
    PreviewCategoryState,
    PreviewData,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)

FILE_NOT_FOUND = "File not found"


class PreviewCache:
    """Fetch-once cache of decoded sample previews."""

    def __init__(
        self,
        client: PhantomClient,
        decoder: Optional[SampleDecoder] = None,
        max_workers: int = 3,
    ):
        self.client = client
        self.decoder = decoder or SampleDecoder()
        self.max_workers = max_workers
        self.result: Optional[ReconciliationResult] = None
        self.field_map: Optional[Dict[str, str]] = None
        self.active_category: Optional[PreviewCategory] = None

        self._states: Dict[PreviewCategory, PreviewCategoryState] = {
            category: PreviewCategoryState() for category in PreviewCategory
        }
        self._locks: Dict[PreviewCategory, threading.Lock] = {
            category: threading.Lock() for category in PreviewCategory
        }
        self._view_lock = threading.Lock()
        self._generation = 0

    # ------------------------------------------------------------------
    # View lifecycle
    # ------------------------------------------------------------------

    def open(
        self,
        result: ReconciliationResult,
        field_map: Optional[Dict[str, str]] = None,
    ) -> PreviewCategory:
        """Open a result view; returns the initially active category."""
        self._new_generation()
        self.result = result
        self.field_map = field_map
        self.active_category = self.select_initial_category(result)
        return self.active_category

    def close(self) -> None:
        """Close the view. Fetches still in flight will be discarded."""
        self._new_generation()
        self.result = None
        self.field_map = None
        self.active_category = None

    @staticmethod
    def select_initial_category(
        result: ReconciliationResult,
        current: Optional[PreviewCategory] = None,
    ) -> PreviewCategory:
        """
        Pick the category to show.

        Keeps ``current`` if it has a sample; otherwise the first category
        with a sample in priority order (common, left, right).
        """
        if current is not None and result.sample_path(current):
            return current

        for category in PreviewCategory.in_priority_order():
            if result.sample_path(category):
                return category

        return current or PreviewCategory.COMMON

    def activate(self, category: PreviewCategory) -> PreviewCategoryState:
        """Switch the active category (tab) and load it."""
        if self.result is None:
            return self.state(category)

        self.active_category = self.select_initial_category(self.result, PreviewCategory(category))
        return self.load_active()

    def load_active(self) -> PreviewCategoryState:
        """Ensure the active category is loaded."""
        if self.result is None or self.active_category is None:
            return PreviewCategoryState()

        category = self.active_category
        return self.ensure_loaded(category, self.result.sample_path(category))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def ensure_loaded(self, category: PreviewCategory, s3_path: Optional[str]) -> PreviewCategoryState:
        """
        Fetch and decode a category's sample unless that is pointless.

        No fetch happens when there is no locator, the category already has
        data, is currently loading, or has a permanent error.

        Returns:
            Copy of the category state after the attempt
        """
        category = PreviewCategory(category)
        if not s3_path:
            return self.state(category)

        lock = self._locks[category]
        with lock:
            state = self._states[category]
            if state.permanent_error or state.loading or state.data is not None:
                return state.copy()
            state.loading = True
            state.error = None
            generation = self._generation

        logger.debug(f"Loading {category.value} preview from {s3_path}")

        try:
            lines = self.client.get_preview(s3_path)
            data = self._build_data("\n".join(str(line) for line in lines))
        except NotFoundError:
            return self._finish(
                category,
                generation,
                PreviewCategoryState(error=FILE_NOT_FOUND, permanent_error=True),
            )
        except (PhantomApiError, ValueError) as e:
            logger.warning(f"Error fetching {category.value} preview: {e}")
            return self._finish(category, generation, PreviewCategoryState(error=str(e)))
        except Exception as e:
            logger.error(f"Unexpected error loading {category.value} preview: {e}")
            return self._finish(category, generation, PreviewCategoryState(error=str(e)))

        logger.info(f"Loaded {category.value} preview ({len(data.raw_text)} chars)")
        return self._finish(category, generation, PreviewCategoryState(data=data))

    def prefetch_all(self) -> Dict[PreviewCategory, PreviewCategoryState]:
        """Load every category with a sample concurrently."""
        if self.result is None:
            return self.states()

        result = self.result
        targets = [
            (category, result.sample_path(category))
            for category in PreviewCategory.in_priority_order()
            if result.sample_path(category)
        ]
        if targets:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as executor:
                futures = [executor.submit(self.ensure_loaded, c, p) for c, p in targets]
                for future in futures:
                    future.result()

        return self.states()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def state(self, category: PreviewCategory) -> PreviewCategoryState:
        category = PreviewCategory(category)
        with self._locks[category]:
            return self._states[category].copy()

    def states(self) -> Dict[PreviewCategory, PreviewCategoryState]:
        return {category: self.state(category) for category in PreviewCategory}

    def _build_data(self, text: str) -> PreviewData:
        sample_format = self.decoder.classify(text)
        if sample_format == SampleFormat.RAW:
            return PreviewData(is_compact_encoding=False, parsed_table=None, raw_text=text)

        return PreviewData(
            is_compact_encoding=sample_format == SampleFormat.COMPACT,
            parsed_table=self.decoder.decode(text, self.field_map),
            raw_text=text,
        )

    def _finish(
        self,
        category: PreviewCategory,
        generation: int,
        new_state: PreviewCategoryState,
    ) -> PreviewCategoryState:
        """Store a fetch outcome unless the view changed meanwhile."""
        with self._locks[category]:
            if generation != self._generation:
                logger.debug(f"Discarding {category.value} preview from a closed view")
                return self._states[category].copy()
            self._states[category] = new_state
            return new_state.copy()

    def _new_generation(self) -> None:
        with self._view_lock:
            self._generation += 1
        for category in PreviewCategory:
            with self._locks[category]:
                self._states[category] = PreviewCategoryState()
