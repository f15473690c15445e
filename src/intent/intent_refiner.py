"""Refinement of one intent group into sub-groups."""

from dataclasses import replace
import json
import logging
from typing import List, Protocol, Sequence, Tuple

from content_cache import CacheNamespace, ContentCache, refine_cache_key
from diff import Hunk

from intent.intent_decoder import decode_groups, load_json_object
from intent.intent_engine import EngineRequest, IntentEngine
from intent.intent_exceptions import EmptyInputError, IntentError
from intent.intent_prompts import build_refine_prompt
from intent.intent_schemas import REFINE_SCHEMA
from intent.intent_types import IntentGroup, RefineResponse
from intent.intent_validator import validate_refinement


class RefinableGroup(Protocol):
    """Anything with the group fields refinement needs (IntentGroup or RefineTarget)."""

    id: str
    title: str
    hunk_ids: Tuple[str, ...]


class IntentRefiner:
    """
    Splits one intent group into finer sub-groups using an external engine.

    Only the group's own hunks are sent to the engine and used for the cache key, so the
    same group refined from two different analyses shares a cache entry.  Every hunk of
    the group must land in exactly one sub-group.
    """

    OUTPUT_FILENAME = "refine.json"

    def __init__(self, engine: IntentEngine, cache: ContentCache) -> None:
        """
        Initialize the refiner.

        Args:
            engine: Classification engine to invoke on a cache miss
            cache: Cache for validated results
        """
        self._engine = engine
        self._cache = cache
        self._logger = logging.getLogger("IntentRefiner")

    async def refine(
        self,
        hunks: Sequence[Hunk],
        target_group: RefinableGroup,
        model: str | None = None,
        lang: str | None = None,
        force: bool = False
    ) -> RefineResponse:
        """
        Refine a group.

        Sub-group IDs in the response are "<group id>.1", "<group id>.2", ... in the
        order the engine returned them.

        Args:
            hunks: The current hunk set (only the group's hunks are used)
            target_group: Group to refine
            model: Optional engine model hint
            lang: Optional response language hint
            force: If True, skip the cache read and overwrite any cached entry

        Returns:
            Validated sub-groups, the raw engine log, and whether they came from the cache

        Raises:
            EmptyInputError: If the group's hunks are not in the hunk set
            EngineError: If the engine is unavailable or fails
            SchemaError: If the engine output cannot be decoded
            IntentValidationError: If the output breaks coverage or enumeration rules
        """
        target_ids = list(dict.fromkeys(target_group.hunk_ids))
        by_id = {hunk.id: hunk for hunk in hunks}
        group_hunks = [by_id[hunk_id] for hunk_id in target_ids if hunk_id in by_id]
        if not group_hunks:
            raise EmptyInputError("No hunks found for this group.")

        if len(group_hunks) != len(target_ids):
            unknown = [hunk_id for hunk_id in target_ids if hunk_id not in by_id]
            raise EmptyInputError(
                f"Group '{target_group.id}' references hunks that are not in the hunk set: {unknown}",
                error_details={"unknown": unknown}
            )

        key = refine_cache_key(group_hunks, model, lang)

        if not force:
            cached = self._read_cache(key, target_ids)
            if cached is not None:
                self._logger.info("Refinement of '%s' served from cache", target_group.id)
                return self._renumbered(cached[0], cached[1], target_group.id, True)

        request = EngineRequest(
            label="refine",
            prompt=build_refine_prompt(target_group.id, target_group.title, lang),
            input_files={"hunks.json": json.dumps([hunk.to_dict() for hunk in group_hunks])},
            schema=REFINE_SCHEMA,
            output_filename=self.OUTPUT_FILENAME,
            model=model
        )
        output = await self._engine.run(request)
        log = output.format_log("refine")

        try:
            sub_groups = decode_groups(load_json_object(output.output_text, self.OUTPUT_FILENAME))
            validate_refinement(sub_groups, target_ids)

        except IntentError as e:
            self._logger.warning("Rejected refinement of '%s': %s", target_group.id, str(e))
            e.error_details = {**(e.error_details or {}), "engine_log": log}
            raise

        log += f"[refine] group=\"{target_group.title}\" sub-groups={len(sub_groups)}\n"
        self._cache.put(
            CacheNamespace.REFINE,
            key,
            {"groups": [group.to_dict() for group in sub_groups], "engineLog": log}
        )
        return self._renumbered(sub_groups, log, target_group.id, False)

    def _renumbered(
        self,
        sub_groups: Sequence[IntentGroup],
        log: str,
        group_id: str,
        from_cache: bool
    ) -> RefineResponse:
        """Give sub-groups IDs derived from the refined group so they stay unique after splicing."""
        renumbered = tuple(
            replace(group, id=f"{group_id}.{index + 1}") for index, group in enumerate(sub_groups)
        )
        return RefineResponse(sub_groups=renumbered, engine_log=log, from_cache=from_cache)

    def _read_cache(self, key: str, target_ids: List[str]) -> Tuple[Tuple[IntentGroup, ...], str] | None:
        """
        Read and re-validate a cached refinement.

        Returns:
            Tuple of (sub-groups, engine log), or None on a miss or an unusable entry
        """
        payload = self._cache.get(CacheNamespace.REFINE, key)
        if payload is None:
            return None

        try:
            if not isinstance(payload, dict):
                raise TypeError("cached refinement is not an object")

            sub_groups = decode_groups(payload)
            validate_refinement(sub_groups, target_ids)
            log = payload.get("engineLog", "")
            if not isinstance(log, str):
                raise TypeError("cached engine log is not a string")

        except (IntentError, TypeError) as e:
            self._logger.warning("Ignoring unusable cached refinement %s: %s", key, str(e))
            return None

        return sub_groups, log
