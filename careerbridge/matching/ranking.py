from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


def rank_by_score(items: Sequence[T], score_of: Callable[[T], Optional[float]]) -> List[T]:
    """
    Descending score. Ties keep their listing order (sorted() is stable);
    items without a score follow every scored item, also in listing order.
    """
    scored = [i for i in items if score_of(i) is not None]
    unscored = [i for i in items if score_of(i) is None]
    scored = sorted(scored, key=lambda i: score_of(i), reverse=True)  # type: ignore[arg-type, return-value]
    return scored + unscored
