"""Intent analysis of a full hunk set."""

import json
import logging
from typing import List, Sequence

from content_cache import CacheNamespace, ContentCache, analysis_cache_key
from diff import Hunk

from intent.intent_decoder import decode_analysis, load_json_object
from intent.intent_engine import EngineRequest, IntentEngine
from intent.intent_exceptions import EmptyInputError, IntentError
from intent.intent_prompts import build_analysis_prompt
from intent.intent_schemas import ANALYSIS_SCHEMA
from intent.intent_types import AnalysisResponse
from intent.intent_validator import validate_analysis


class IntentAnalyzer:
    """
    Groups a hunk set by change intent using an external engine.

    Results are validated strictly before they are returned or cached: a result that
    loses, duplicates or invents a single hunk ID is rejected, never repaired.  Nothing is
    retried; callers re-run with force=True to bypass the cache.
    """

    OUTPUT_FILENAME = "analysis.json"

    def __init__(self, engine: IntentEngine, cache: ContentCache) -> None:
        """
        Initialize the analyzer.

        Args:
            engine: Classification engine to invoke on a cache miss
            cache: Cache for validated results
        """
        self._engine = engine
        self._cache = cache
        self._logger = logging.getLogger("IntentAnalyzer")

    async def analyze(
        self,
        hunks: Sequence[Hunk],
        context: str | None = None,
        model: str | None = None,
        lang: str | None = None,
        force: bool = False
    ) -> AnalysisResponse:
        """
        Analyze a hunk set.

        Args:
            hunks: Hunks to group
            context: Optional free text for the engine, such as the PR description
            model: Optional engine model hint
            lang: Optional response language hint
            force: If True, skip the cache read and overwrite any cached entry

        Returns:
            Validated analysis, the raw engine log, and whether it came from the cache

        Raises:
            EmptyInputError: If there are no hunks
            EngineError: If the engine is unavailable or fails
            SchemaError: If the engine output cannot be decoded
            IntentValidationError: If the output breaks coverage or enumeration rules
        """
        if not hunks:
            raise EmptyInputError("No hunks to analyze.")

        hunk_ids = [hunk.id for hunk in hunks]
        key = analysis_cache_key(hunks, context, model, lang)

        if not force:
            cached = self._read_cache(key, hunk_ids)
            if cached is not None:
                self._logger.info("Analysis of %d hunks served from cache", len(hunks))
                return cached

        request = EngineRequest(
            label="analysis",
            prompt=build_analysis_prompt(len(hunks), context, lang),
            input_files={"hunks.json": json.dumps([hunk.to_dict() for hunk in hunks])},
            schema=ANALYSIS_SCHEMA,
            output_filename=self.OUTPUT_FILENAME,
            model=model
        )
        output = await self._engine.run(request)
        log = output.format_log("analysis")

        try:
            result = decode_analysis(load_json_object(output.output_text, self.OUTPUT_FILENAME))
            validate_analysis(result, hunk_ids)

        except IntentError as e:
            self._logger.warning("Rejected analysis output: %s", str(e))
            e.error_details = {**(e.error_details or {}), "engine_log": log}
            raise

        log += f"[analysis] hunks={len(hunks)} groups={len(result.groups)}\n"
        self._cache.put(CacheNamespace.ANALYSIS, key, {"result": result.to_dict(), "engineLog": log})
        return AnalysisResponse(result=result, engine_log=log, from_cache=False)

    def _read_cache(self, key: str, hunk_ids: List[str]) -> AnalysisResponse | None:
        """
        Read and re-validate a cached analysis.

        Returns:
            The cached response, or None on a miss or an unusable entry
        """
        payload = self._cache.get(CacheNamespace.ANALYSIS, key)
        if payload is None:
            return None

        try:
            if not isinstance(payload, dict) or not isinstance(payload.get("result"), dict):
                raise TypeError("cached analysis is not an object")

            result = decode_analysis(payload["result"])
            validate_analysis(result, hunk_ids)
            log = payload.get("engineLog", "")
            if not isinstance(log, str):
                raise TypeError("cached engine log is not a string")

        except (IntentError, TypeError) as e:
            self._logger.warning("Ignoring unusable cached analysis %s: %s", key, str(e))
            return None

        return AnalysisResponse(result=result, engine_log=log, from_cache=True)
