from __future__ import annotations

from typing import Dict

from .schemas import Route, OTHER_ID, clean_rate

OTHER_TEXT = "Other"


def _consumed(route: Route) -> float:
    # Negative readings count as zero, as they do in reconcile.
    return max(clean_rate(route.rate), 0.0)


def group_consumers(consumer_routes: Dict[str, Route], hide_below: float = 0.0,
                    max_branches: int = 0) -> Dict[str, Route]:
    """Fold small or excess consumer branches into a single "other" branch.

    Two passes, both feeding the same bucket:
    - threshold: rates below hide_below (when > 0) are folded;
    - max branches: when more than max_branches - 1 branches survive, the
      smallest routes of the original set are folded until at most
      max_branches named branches remain. Routes folded by the threshold
      pass are skipped so nothing is counted twice.

    The bucket is appended last, and only if something was folded.
    """
    folded = set()
    other_rate = 0.0

    if hide_below > 0:
        for key, route in consumer_routes.items():
            rate = _consumed(route)
            if rate < hide_below:
                other_rate += rate
                folded.add(key)

    if max_branches > 0:
        remaining = len(consumer_routes) - len(folded)
        if remaining > max_branches - 1:
            ascending = sorted(consumer_routes.items(), key=lambda kv: _consumed(kv[1]))
            for key, route in ascending:
                if remaining <= max_branches:
                    break
                if key in folded:
                    continue
                other_rate += _consumed(route)
                folded.add(key)
                remaining -= 1

    grouped = {key: route for key, route in consumer_routes.items() if key not in folded}
    if folded:
        grouped[OTHER_ID] = Route(rate=other_rate, id=OTHER_ID, text=OTHER_TEXT)
    return grouped
