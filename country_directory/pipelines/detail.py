from __future__ import annotations

from country_directory.collector.sources import RecordSource, SourceError
from country_directory.pipelines.borders import BorderEntry, resolve_borders
from country_directory.pipelines.state import DETAIL_UNAVAILABLE_MESSAGE, PipelineStatus, error_message
from country_directory.transforms.countries import CountryRecord
from country_directory.utils.logging import get_logger


logger = get_logger(component="detail_pipeline")


class DetailPipeline:
    """
    Detail view state: IDLE -> LOADING -> READY(record, borders) | FAILED(error).

    Each load() bumps a request generation; a response that arrives for an
    older generation (code changed, or pipeline closed) is discarded.
    """

    def __init__(self, source: RecordSource) -> None:
        self._source = source
        self._generation = 0
        self._code: str | None = None
        self._status = PipelineStatus.IDLE
        self._record: CountryRecord | None = None
        self._borders: tuple[BorderEntry, ...] = ()
        self._error: SourceError | None = None

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def loading(self) -> bool:
        return self._status == PipelineStatus.LOADING

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def record(self) -> CountryRecord | None:
        return self._record

    @property
    def borders(self) -> tuple[BorderEntry, ...]:
        return self._borders

    @property
    def error(self) -> SourceError | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return error_message(self._error, unavailable=DETAIL_UNAVAILABLE_MESSAGE)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def load(self, code: str) -> None:
        self._generation += 1
        generation = self._generation
        self._code = code
        self._status = PipelineStatus.LOADING
        self._record = None
        self._borders = ()
        self._error = None

        try:
            rec = await self._source.fetch_one(code)
        except SourceError as e:
            if not self._is_current(generation):
                logger.debug("detail_result_discarded", code=code, stage="fetch_one")
                return
            self._error = e
            self._status = PipelineStatus.FAILED
            logger.warning("detail_load_failed", code=code, error=str(e))
            return

        if not self._is_current(generation):
            logger.debug("detail_result_discarded", code=code, stage="fetch_one")
            return

        borders = await resolve_borders(self._source, rec)
        if not self._is_current(generation):
            logger.debug("detail_result_discarded", code=code, stage="borders")
            return

        self._record = rec
        self._borders = borders
        self._status = PipelineStatus.READY
        logger.info("detail_ready", code=code, borders=len(borders))

    def close(self) -> None:
        # Invalidate whatever is in flight.
        self._generation += 1
