"""Engine-guided splitting of large hunks into semantic sub-hunks."""

import json
import logging
from typing import Dict, List, Sequence

from content_cache import CacheNamespace, ContentCache, split_cache_key
from diff import DiffSplitError, Hunk, replace_hunk, split_hunk, verify_split

from intent.intent_decoder import decode_split_plans, load_json_object
from intent.intent_engine import EngineRequest, IntentEngine
from intent.intent_exceptions import EmptyInputError, IntentError, IntentValidationError
from intent.intent_prompts import build_split_prompt
from intent.intent_schemas import SPLIT_SCHEMA
from intent.intent_types import SplitPlan, SplitResponse


class IntentHunkSplitter:
    """
    Splits hunks that are too large to review comfortably.

    The engine only proposes line ranges.  The ranges must tile each hunk exactly and the
    resulting children must reconstruct their parent line for line, otherwise the whole
    result is rejected.
    """

    DEFAULT_THRESHOLD = 100
    INPUT_FILENAME = "large_hunks.json"
    OUTPUT_FILENAME = "split_result.json"

    def __init__(self, engine: IntentEngine, cache: ContentCache, threshold: int = DEFAULT_THRESHOLD) -> None:
        """
        Initialize the splitter.

        Args:
            engine: Classification engine to invoke on a cache miss
            cache: Cache for verified results
            threshold: Hunks with more lines than this are candidates for splitting
        """
        self._engine = engine
        self._cache = cache
        self._threshold = threshold
        self._logger = logging.getLogger("IntentHunkSplitter")

    @property
    def threshold(self) -> int:
        """Line count above which a hunk is split."""
        return self._threshold

    def large_hunks(self, hunks: Sequence[Hunk]) -> List[Hunk]:
        """Get the hunks with more lines than the threshold."""
        return [hunk for hunk in hunks if len(hunk.lines) > self._threshold]

    async def split_large_hunks(
        self,
        hunks: Sequence[Hunk],
        model: str | None = None,
        lang: str | None = None,
        force: bool = False
    ) -> SplitResponse:
        """
        Split every large hunk in a hunk list.

        Args:
            hunks: Current hunk list
            model: Optional engine model hint
            lang: Optional response language hint
            force: If True, skip the cache read and overwrite any cached entry

        Returns:
            The new hunk list, the raw engine log, and whether it came from the cache

        Raises:
            EmptyInputError: If there are no hunks
            EngineError: If the engine is unavailable or fails
            SchemaError: If the engine output cannot be decoded
            IntentValidationError: If a proposed split is not an exact tiling of its hunk
        """
        if not hunks:
            raise EmptyInputError("No hunks to split.")

        large = self.large_hunks(hunks)
        if not large:
            return SplitResponse(hunks=tuple(hunks), engine_log="", from_cache=False)

        key = split_cache_key(hunks, self._threshold, model, lang)

        if not force:
            cached = self._read_cache(key, large)
            if cached is not None:
                self._logger.info("Split of %d large hunks served from cache", len(large))
                return cached

        request = EngineRequest(
            label="split",
            prompt=build_split_prompt(lang),
            input_files={self.INPUT_FILENAME: json.dumps([hunk.to_dict() for hunk in large])},
            schema=SPLIT_SCHEMA,
            output_filename=self.OUTPUT_FILENAME,
            model=model
        )
        output = await self._engine.run(request)
        log = output.format_log("split")

        try:
            plans = decode_split_plans(load_json_object(output.output_text, self.OUTPUT_FILENAME))
            new_hunks = self._apply_plans(hunks, large, plans)

        except IntentError as e:
            self._logger.warning("Rejected split output: %s", str(e))
            e.error_details = {**(e.error_details or {}), "engine_log": log}
            raise

        log += f"[split] large={len(large)} split={len(plans)} hunks={len(new_hunks)}\n"
        self._cache.put(
            CacheNamespace.SPLIT,
            key,
            {"hunks": [hunk.to_dict() for hunk in new_hunks], "engineLog": log}
        )
        return SplitResponse(hunks=tuple(new_hunks), engine_log=log, from_cache=False)

    def _apply_plans(self, hunks: Sequence[Hunk], large: Sequence[Hunk], plans: Sequence[SplitPlan]) -> List[Hunk]:
        """
        Apply split plans to a hunk list.

        Large hunks without a plan are left whole.

        Raises:
            IntentValidationError: If a plan names an unknown hunk, repeats a hunk, or has
                ranges that do not tile the hunk
        """
        large_by_id: Dict[str, Hunk] = {hunk.id: hunk for hunk in large}
        seen = set()
        result = list(hunks)

        for plan in plans:
            parent = large_by_id.get(plan.original_hunk_id)
            if parent is None:
                raise IntentValidationError(
                    f"Split names '{plan.original_hunk_id}', which is not a large input hunk",
                    error_details={"hunk_id": plan.original_hunk_id}
                )

            if parent.id in seen:
                raise IntentValidationError(
                    f"Hunk '{parent.id}' is split more than once",
                    error_details={"hunk_id": parent.id}
                )

            seen.add(parent.id)
            ranges = [(sub.start_line_index, sub.end_line_index) for sub in plan.sub_hunks]
            titles = [sub.title for sub in plan.sub_hunks]

            try:
                children = split_hunk(parent, ranges, titles)
                result = replace_hunk(result, parent.id, children)
                verify_split(parent, result)

            except DiffSplitError as e:
                raise IntentValidationError(str(e), e.error_details) from e

        return result

    def _read_cache(self, key: str, large: Sequence[Hunk]) -> SplitResponse | None:
        """
        Read and re-verify a cached split.

        Returns:
            The cached response, or None on a miss or an unusable entry
        """
        payload = self._cache.get(CacheNamespace.SPLIT, key)
        if payload is None:
            return None

        try:
            if not isinstance(payload, dict) or not isinstance(payload.get("hunks"), list):
                raise TypeError("cached split is not an object with hunks")

            new_hunks = [Hunk.from_dict(entry) for entry in payload["hunks"]]
            for parent in large:
                if any(hunk.id == parent.id for hunk in new_hunks):
                    continue

                verify_split(parent, new_hunks)

            log = payload.get("engineLog", "")
            if not isinstance(log, str):
                raise TypeError("cached engine log is not a string")

        except (DiffSplitError, TypeError, KeyError, ValueError) as e:
            self._logger.warning("Ignoring unusable cached split %s: %s", key, str(e))
            return None

        return SplitResponse(hunks=tuple(new_hunks), engine_log=log, from_cache=True)
