"""
Validation orchestration: run every field validator plus the whole-form
validator and merge their results into one error tree keyed by path.

Merge order:
1. Field results in registry order (a field without a validator contributes None).
2. The whole-form result last, so it overrides field results for the same path.
3. When anything was asynchronous, the asynchronous results are overlaid on the
   synchronous tree once all of them settle, in the same order.

If every validator answered synchronously, run_validations() returns the tree.
Otherwise it returns a pending asyncio.Task resolving to the tree.
"""
import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from formstate.field_registry import FieldRegistry
from formstate.paths import MISSING, get_path, merge_trees

logger = logging.getLogger(__name__)

# (path, result) for a field; (None, tree) for the whole-form validator
ValidationEntry = Tuple[Optional[str], Any]
ErrorTree = Dict[str, Any]


def is_pending(result: Any) -> bool:
    """True for an unsettled asynchronous result."""
    return inspect.isawaitable(result)


def overlay_errors(tree: ErrorTree, overlay: Any) -> ErrorTree:
    """Apply ``overlay`` on top of ``tree`` in place.

    Field entries sit in ``tree`` under their literal dotted path, which
    get_path reads before any nesting, so a flat key the overlay also covers
    is rewritten with the overlay's value rather than left to shadow it.
    """
    if not overlay:
        return tree
    for key in [k for k in tree if '.' in k]:
        value = get_path(overlay, key)
        if value is not MISSING:
            tree[key] = value
    return merge_trees(tree, overlay)


def concatenate_errors(entries: List[ValidationEntry]) -> ErrorTree:
    """Fold entries into one tree; later entries win for overlapping paths.

    Field results are stored flat under their own path so that fields whose
    paths nest inside each other ("a" and "a.b") keep separate errors.
    """
    tree: ErrorTree = {}
    for path, result in entries:
        if path is None:
            overlay_errors(tree, result)
        else:
            tree[path] = result
    return tree


class ValidationOrchestrator:
    """Produces the merged error tree for a registry and optional form validator."""

    def __init__(
        self,
        registry: FieldRegistry,
        form_validator: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ):
        self._registry = registry
        self.form_validator = form_validator

    def run_validations(self) -> Union[ErrorTree, 'asyncio.Task[ErrorTree]']:
        values = self._registry.get_values()

        sync_entries: List[ValidationEntry] = []
        async_entries: List[ValidationEntry] = []

        for field in self._registry.fields():
            if callable(field.validator):
                result = field.validator(field.value)
                if is_pending(result):
                    async_entries.append((field.path, result))
                else:
                    sync_entries.append((field.path, result))
            else:
                # Every field contributes an entry so stale errors get cleared
                sync_entries.append((field.path, None))

        if callable(self.form_validator):
            result = self.form_validator(values)
            if is_pending(result):
                async_entries.append((None, result))
            else:
                sync_entries.append((None, result))

        if not async_entries:
            logger.debug(f"Validated {len(sync_entries)} entries synchronously")
            return concatenate_errors(sync_entries)

        logger.debug(
            f"Validation pending: {len(async_entries)} async, {len(sync_entries)} sync entries"
        )
        return asyncio.ensure_future(self._settle(sync_entries, async_entries))

    async def _settle(
        self,
        sync_entries: List[ValidationEntry],
        async_entries: List[ValidationEntry],
    ) -> ErrorTree:
        resolved = await asyncio.gather(
            *(self._resolve(path, pending) for path, pending in async_entries)
        )
        errors = concatenate_errors(sync_entries)
        return overlay_errors(errors, concatenate_errors(list(resolved)))

    @staticmethod
    async def _resolve(path: Optional[str], pending: Any) -> ValidationEntry:
        # Keep the originating path attached to the settled result
        return path, await pending
