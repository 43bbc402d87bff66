"""
"Today's recipe" selection.

A fresh pick is ``candidates[day_ordinal % len(candidates)]`` so the same
catalog snapshot yields the same recipe all day. The pick is persisted and
reused across restarts while its date key is today and the recipe is still
eligible. Skipping chooses at random, preferring recipes not shown recently.
"""

import logging
import random
import threading
from typing import Optional, Sequence

from dailydish.clock import Clock
from dailydish.models import DailyPickState, Recipe
from dailydish.preferences import PreferencesStore

log = logging.getLogger(__name__)

RECENT_HISTORY_SIZE = 14


def pick_index(ordinal: int, count: int) -> int:
    return ordinal % count


def push_recent(recent: list[str], recipe_id: str, limit: int = RECENT_HISTORY_SIZE) -> list[str]:
    """Move ``recipe_id`` to the front of the history, keeping at most ``limit`` ids."""
    return ([recipe_id] + [r for r in recent if r != recipe_id])[:limit]


def _recipe_key(recipe: Recipe) -> str:
    # Catalog recipes always carry an id; fall back for unsaved ones
    return recipe.id or recipe.title


class DailyPickEngine:
    """Single writer of the persisted ``DailyPickState`` for one installation."""

    def __init__(
        self,
        store: PreferencesStore,
        clock: Clock,
        rng: Optional[random.Random] = None,
        history_size: int = RECENT_HISTORY_SIZE,
    ):
        self._store = store
        self._clock = clock
        self._rng = rng or random.Random()
        self._history_size = history_size
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self, candidates: Sequence[Recipe]) -> Optional[Recipe]:
        """Return today's pick from ``candidates``, or None when there are none."""
        if not candidates:
            log.info("No eligible recipes; leaving daily pick untouched")
            return None

        with self._lock:
            state = self._store.load_pick_state()
            today = self._clock.date_key()

            if state.picked_date_key == today and state.picked_recipe_id:
                for recipe in candidates:
                    if _recipe_key(recipe) == state.picked_recipe_id:
                        return recipe
                log.info(
                    "Stored pick %s is no longer eligible, picking again",
                    state.picked_recipe_id,
                )

            recipe = candidates[pick_index(self._clock.day_ordinal(), len(candidates))]
            self._store.save_pick_state(
                state.model_copy(
                    update={"picked_recipe_id": _recipe_key(recipe), "picked_date_key": today}
                )
            )
            log.info("Picked %s for %s", _recipe_key(recipe), today)
            return recipe

    # ------------------------------------------------------------------
    # Skip
    # ------------------------------------------------------------------

    def skip(self, candidates: Sequence[Recipe], current: Recipe) -> Recipe:
        """Replace ``current`` with a random other candidate.

        Recipes in the recent history are avoided while any alternative
        exists. With a single candidate the current pick is returned as-is.
        """
        with self._lock:
            state = self._store.load_pick_state()
            current_key = _recipe_key(current)
            recent = set(state.recent_recipe_ids)

            pool = [
                r for r in candidates
                if _recipe_key(r) != current_key and _recipe_key(r) not in recent
            ]
            if not pool:
                pool = [r for r in candidates if _recipe_key(r) != current_key]
            if not pool:
                log.info("Only one eligible recipe, skip is a no-op")
                return current

            choice = self._rng.choice(pool)
            self._store.save_pick_state(
                DailyPickState(
                    picked_recipe_id=_recipe_key(choice),
                    picked_date_key=self._clock.date_key(),
                    recent_recipe_ids=push_recent(
                        state.recent_recipe_ids, current_key, self._history_size
                    ),
                )
            )
            log.info("Skipped %s, now showing %s", current_key, _recipe_key(choice))
            return choice

    def state(self) -> DailyPickState:
        with self._lock:
            return self._store.load_pick_state()
