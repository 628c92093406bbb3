from __future__ import annotations

from country_directory.collector.sources import RecordSource, SourceError
from country_directory.pipelines.filters import FilterCriteria, FilterEngine, normalize_region
from country_directory.pipelines.state import LIST_UNAVAILABLE_MESSAGE, PipelineStatus, error_message
from country_directory.transforms.countries import CountryRecord
from country_directory.utils.logging import get_logger


logger = get_logger(component="directory_pipeline")


class DirectoryPipeline:
    """
    List view state: IDLE -> LOADING -> READY(set) | FAILED(error).

    READY and FAILED are terminal; reload by creating a new instance.
    Criteria changes re-derive the filtered view synchronously and never
    touch the network.
    """

    def __init__(self, source: RecordSource, *, criteria: FilterCriteria | None = None) -> None:
        self._source = source
        self._engine = FilterEngine()
        self._criteria = criteria or FilterCriteria()
        self._status = PipelineStatus.IDLE
        self._records: tuple[CountryRecord, ...] | None = None
        self._view: tuple[CountryRecord, ...] | None = None
        self._error: SourceError | None = None
        self._closed = False

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def loading(self) -> bool:
        return self._status == PipelineStatus.LOADING

    @property
    def error(self) -> SourceError | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return error_message(self._error, unavailable=LIST_UNAVAILABLE_MESSAGE)

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def records(self) -> tuple[CountryRecord, ...] | None:
        """Canonical (unfiltered) set; None until READY."""
        return self._records

    @property
    def view(self) -> tuple[CountryRecord, ...] | None:
        """Filtered set; None until loaded. Empty on FAILED or when nothing matches."""
        return self._view

    async def start(self) -> None:
        if self._status != PipelineStatus.IDLE:
            raise RuntimeError(f"DirectoryPipeline already started (status={self._status.value})")
        self._status = PipelineStatus.LOADING

        try:
            records = await self._source.fetch_all()
        except SourceError as e:
            if self._closed:
                logger.debug("directory_result_discarded", reason="closed")
                return
            self._error = e
            self._status = PipelineStatus.FAILED
            self._view = ()
            logger.error("directory_load_failed", error=str(e))
            return

        if self._closed:
            logger.debug("directory_result_discarded", reason="closed")
            return
        self._records = records
        self._status = PipelineStatus.READY
        self._derive()
        logger.info("directory_ready", rows=len(records))

    def close(self) -> None:
        """Drop any in-flight result; the owning view has gone away."""
        self._closed = True

    def set_search_text(self, text: str) -> None:
        self._criteria = FilterCriteria(search_text=text or "", region=self._criteria.region)
        self._derive()

    def set_region(self, region: str | None) -> None:
        self._criteria = FilterCriteria(search_text=self._criteria.search_text, region=normalize_region(region))
        self._derive()

    def _derive(self) -> None:
        if self._records is None:
            return
        self._view = self._engine.apply(self._records, self._criteria)
