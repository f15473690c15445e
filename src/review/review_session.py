"""Review state for one pull request, with last-request-wins handling of async results."""

from enum import Enum, auto
import logging
from typing import Any, Callable, Dict, List, Set

from diff import DiffError, DiffParser, Hunk
from intent import (
    AnalysisResult, EmptyInputError, IntentAnalyzer, IntentError, IntentHunkSplitter, IntentRefiner
)
from pull_request import PullRequest, PullRequestDiffFetcher, PullRequestError

from review.request_epoch import RequestEpoch


class ReviewSessionEvent(Enum):
    """Events that can be emitted by the ReviewSession class."""
    HUNKS_CHANGED = auto()      # When the hunk list is replaced
    ANALYSIS_CHANGED = auto()   # When the analysis is replaced, refined or cleared
    ERROR = auto()              # When an error is set or dismissed
    LOADING_CHANGED = auto()    # When the session starts or stops waiting on work


class ReviewSession:
    """
    Owns the hunks and analysis of the pull request under review.

    There are two independent request streams, one for the diff and one for the analysis,
    each with its own RequestEpoch.  A result is applied only if its stream has not moved
    on since the request started; otherwise it is dropped.  Replacing the hunks always
    invalidates the analysis stream because an analysis describes one specific hunk set.
    """

    def __init__(
        self,
        fetcher: PullRequestDiffFetcher,
        analyzer: IntentAnalyzer,
        refiner: IntentRefiner,
        splitter: IntentHunkSplitter,
        model: str | None = None,
        lang: str | None = None
    ) -> None:
        """
        Initialize the session.

        Args:
            fetcher: Source of pull request diffs
            analyzer: Intent analyzer
            refiner: Intent group refiner
            splitter: Large hunk splitter
            model: Optional engine model hint for every engine operation
            lang: Optional response language hint for every engine operation
        """
        self._logger = logging.getLogger("ReviewSession")
        self._fetcher = fetcher
        self._analyzer = analyzer
        self._refiner = refiner
        self._splitter = splitter
        self._parser = DiffParser()
        self._model = model
        self._lang = lang

        self._diff_epoch = RequestEpoch()
        self._analysis_epoch = RequestEpoch()

        self._repo: str | None = None
        self._pull_request: PullRequest | None = None
        self._hunks: List[Hunk] = []
        self._analysis: AnalysisResult | None = None
        self._engine_log = ""
        self._from_cache = False
        self._error: Exception | None = None
        self._pending = 0

        # Callbacks for events
        self._callbacks: Dict[ReviewSessionEvent, Set[Callable]] = {
            event: set() for event in ReviewSessionEvent
        }

    @property
    def repo(self) -> str | None:
        """Repository of the selected pull request."""
        return self._repo

    @property
    def pull_request(self) -> PullRequest | None:
        """The selected pull request."""
        return self._pull_request

    @property
    def hunks(self) -> List[Hunk]:
        """Hunks of the selected pull request's diff."""
        return list(self._hunks)

    @property
    def analysis(self) -> AnalysisResult | None:
        """The current analysis, if any."""
        return self._analysis

    @property
    def engine_log(self) -> str:
        """Raw engine transcript for the current analysis and its refinements."""
        return self._engine_log

    @property
    def from_cache(self) -> bool:
        """Whether the current analysis was served from the cache."""
        return self._from_cache

    @property
    def error(self) -> Exception | None:
        """The most recent error, until dismissed or superseded."""
        return self._error

    @property
    def loading(self) -> bool:
        """Whether any operation is in flight."""
        return self._pending > 0

    def register_callback(self, event: ReviewSessionEvent, callback: Callable) -> None:
        """
        Register a callback for a specific event.

        Args:
            event: The event to register for
            callback: Async callable to invoke when the event occurs
        """
        self._callbacks[event].add(callback)

    def unregister_callback(self, event: ReviewSessionEvent, callback: Callable) -> None:
        """
        Unregister a callback for a specific event.

        Args:
            event: The event to unregister from
            callback: The callback function to remove
        """
        if callback in self._callbacks[event]:
            self._callbacks[event].remove(callback)

    async def _trigger_event(self, event: ReviewSessionEvent, *args: Any, **kwargs: Any) -> None:
        """
        Trigger all callbacks registered for an event.

        Args:
            event: The event to trigger
            *args: Arguments to pass to callbacks
            **kwargs: Keyword arguments to pass to callbacks
        """
        for callback in list(self._callbacks[event]):
            try:
                await callback(*args, **kwargs)

            except Exception:
                self._logger.exception("Error in callback for %s", event)

    async def _set_error(self, error: Exception | None) -> None:
        self._error = error
        await self._trigger_event(ReviewSessionEvent.ERROR, error)

    async def _clear_error(self) -> None:
        if self._error is not None:
            await self._set_error(None)

    async def _start_loading(self) -> None:
        self._pending += 1
        if self._pending == 1:
            await self._trigger_event(ReviewSessionEvent.LOADING_CHANGED, True)

    async def _stop_loading(self) -> None:
        self._pending -= 1
        if self._pending == 0:
            await self._trigger_event(ReviewSessionEvent.LOADING_CHANGED, False)

    async def _clear_analysis(self) -> None:
        self._analysis = None
        self._engine_log = ""
        self._from_cache = False
        await self._trigger_event(ReviewSessionEvent.ANALYSIS_CHANGED, None)

    def _analysis_context(self) -> str | None:
        """Build the free text context given to the engine from the pull request."""
        if self._pull_request is None:
            return None

        context = self._pull_request.title
        if self._pull_request.body:
            context += "\n\n" + self._pull_request.body

        return context

    async def select_pull_request(self, repo: str, pull_request: PullRequest) -> bool:
        """
        Select a pull request and load its hunks.

        Args:
            repo: Repository in "owner/repo" form
            pull_request: Pull request to review

        Returns:
            True if the hunks were applied, False if the request failed or was superseded
        """
        epoch = self._diff_epoch.begin()
        self._analysis_epoch.invalidate()
        self._repo = repo
        self._pull_request = pull_request
        self._hunks = []
        await self._clear_error()
        await self._trigger_event(ReviewSessionEvent.HUNKS_CHANGED, self.hunks)
        await self._clear_analysis()

        await self._start_loading()
        try:
            diff_text = await self._fetcher.fetch_diff(repo, pull_request)
            hunks = self._parser.parse(diff_text)

        except (PullRequestError, DiffError) as e:
            if not self._diff_epoch.is_current(epoch):
                self._logger.debug("Dropping stale diff failure for %s#%d", repo, pull_request.number)
                return False

            self._logger.warning("Failed to load %s#%d: %s", repo, pull_request.number, str(e))
            self._hunks = []
            await self._set_error(e)
            return False

        finally:
            await self._stop_loading()

        if not self._diff_epoch.is_current(epoch):
            self._logger.debug("Dropping stale diff for %s#%d", repo, pull_request.number)
            return False

        self._hunks = hunks
        await self._trigger_event(ReviewSessionEvent.HUNKS_CHANGED, self.hunks)
        return True

    async def clear_selection(self) -> None:
        """Deselect the pull request, superseding everything in flight."""
        self._diff_epoch.invalidate()
        self._analysis_epoch.invalidate()
        self._repo = None
        self._pull_request = None
        self._hunks = []
        await self._trigger_event(ReviewSessionEvent.HUNKS_CHANGED, self.hunks)
        await self._clear_analysis()

    async def run_analysis(self, force: bool = False) -> bool:
        """
        Analyze the current hunks.

        A failure sets the error but leaves the hunks untouched.

        Args:
            force: If True, bypass the cache

        Returns:
            True if the analysis was applied
        """
        if not self._hunks:
            await self._set_error(EmptyInputError("No hunks to analyze."))
            return False

        epoch = self._analysis_epoch.begin()
        hunks = list(self._hunks)
        await self._clear_error()

        await self._start_loading()
        try:
            response = await self._analyzer.analyze(
                hunks, self._analysis_context(), self._model, self._lang, force
            )

        except IntentError as e:
            if not self._analysis_epoch.is_current(epoch):
                self._logger.debug("Dropping stale analysis failure (epoch %d)", epoch)
                return False

            self._engine_log = (e.error_details or {}).get("engine_log", "")
            await self._set_error(e)
            return False

        finally:
            await self._stop_loading()

        if not self._analysis_epoch.is_current(epoch):
            self._logger.debug("Dropping stale analysis (epoch %d)", epoch)
            return False

        self._analysis = response.result
        self._engine_log = response.engine_log
        self._from_cache = response.from_cache
        await self._trigger_event(ReviewSessionEvent.ANALYSIS_CHANGED, self._analysis)
        return True

    async def refine_group(self, group_id: str, force: bool = False) -> bool:
        """
        Refine one group of the current analysis into sub-groups.

        Refinements do not start a new analysis request, so refinements of different
        groups may run at the same time.  Any of them is dropped if the analysis is
        replaced or reset before it finishes.

        Args:
            group_id: ID of the group to refine
            force: If True, bypass the cache

        Returns:
            True if the sub-groups were spliced into the analysis
        """
        group = self._analysis.find_group(group_id) if self._analysis is not None else None
        if group is None:
            await self._set_error(IntentError(f"No group '{group_id}' in the current analysis."))
            return False

        epoch = self._analysis_epoch.current()
        hunks = list(self._hunks)
        await self._clear_error()

        await self._start_loading()
        try:
            response = await self._refiner.refine(hunks, group, self._model, self._lang, force)

        except IntentError as e:
            if not self._analysis_epoch.is_current(epoch):
                self._logger.debug("Dropping stale refinement failure for '%s'", group_id)
                return False

            await self._set_error(e)
            return False

        finally:
            await self._stop_loading()

        if not self._analysis_epoch.is_current(epoch) or self._analysis is None:
            self._logger.debug("Dropping stale refinement of '%s'", group_id)
            return False

        if self._analysis.find_group(group_id) is None:
            self._logger.debug("Group '%s' was already replaced, dropping refinement", group_id)
            return False

        self._analysis = self._analysis.with_refined_group(group_id, response.sub_groups)
        self._engine_log += response.engine_log
        await self._trigger_event(ReviewSessionEvent.ANALYSIS_CHANGED, self._analysis)
        return True

    async def split_large_hunks(self, force: bool = False) -> bool:
        """
        Split the current hunks' large hunks into sub-hunks.

        On success the hunks are replaced and the analysis, which described the old hunks,
        is cleared.

        Args:
            force: If True, bypass the cache

        Returns:
            True if the hunks were replaced
        """
        if not self._hunks:
            await self._set_error(EmptyInputError("No hunks to split."))
            return False

        epoch = self._diff_epoch.current()
        hunks = list(self._hunks)
        await self._clear_error()

        await self._start_loading()
        try:
            response = await self._splitter.split_large_hunks(hunks, self._model, self._lang, force)

        except IntentError as e:
            if not self._diff_epoch.is_current(epoch):
                self._logger.debug("Dropping stale split failure")
                return False

            await self._set_error(e)
            return False

        finally:
            await self._stop_loading()

        if not self._diff_epoch.is_current(epoch) or self._hunks != hunks:
            self._logger.debug("Dropping stale split")
            return False

        if list(response.hunks) == hunks:
            return False

        self._analysis_epoch.invalidate()
        self._hunks = list(response.hunks)
        await self._trigger_event(ReviewSessionEvent.HUNKS_CHANGED, self.hunks)
        await self._clear_analysis()
        self._engine_log = response.engine_log
        return True

    async def reset_analysis(self) -> None:
        """Discard the analysis and supersede any analysis or refinement in flight."""
        self._analysis_epoch.invalidate()
        await self._clear_analysis()

    async def dismiss_error(self) -> None:
        """Clear the current error."""
        await self._clear_error()
