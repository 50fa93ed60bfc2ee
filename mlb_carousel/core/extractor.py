"""
Projects a schedule document into the ordered list of games that have recap content.
"""

import logging
from typing import Any, Dict, List, Mapping

from mlb_carousel.exceptions import MissingMetadataError
from mlb_carousel.models.schedule import ScheduleItem

log = logging.getLogger(__name__)


def _get_recap(game: Mapping[str, Any]) -> Mapping[str, Any] | None:
    node: Any = game
    for key in ("content", "editorial", "recap", "mlb"):
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node if isinstance(node, Mapping) else None


def extract_photos(recap: Mapping[str, Any]) -> Dict[str, str]:
    """
    Builds the resolution -> URL map from a recap's image cuts.

    Cuts come either keyed by resolution (`{"684x385": {"src": ...}}`) or as a
    list of objects carrying `width`, `height` and `src`. The first cut seen
    for a resolution wins; cuts without a source URL are dropped.
    """
    image = recap.get("image") or recap.get("photo")
    cuts = (image.get("cuts") if isinstance(image, Mapping) else None) or {}
    photos: Dict[str, str] = {}

    if isinstance(cuts, Mapping):
        for key, cut in cuts.items():
            src = cut.get("src") if isinstance(cut, Mapping) else cut
            if isinstance(src, str) and src:
                photos.setdefault(str(key), src)
    elif isinstance(cuts, list):
        for cut in cuts:
            if not isinstance(cut, Mapping):
                continue
            src = cut.get("src")
            width, height = cut.get("width"), cut.get("height")
            if isinstance(src, str) and src and width and height:
                photos.setdefault(f"{width}x{height}", src)

    return photos


def build_item(game: Mapping[str, Any]) -> ScheduleItem | None:
    """Returns the item for a game, or None when it carries no recap."""
    recap = _get_recap(game)
    if recap is None:
        return None
    if game.get("gamePk") is None:
        log.debug("Skipping a recap with no gamePk.")
        return None
    try:
        game_pk = int(game["gamePk"])
    except (TypeError, ValueError):
        log.debug(f"Skipping a recap with a malformed gamePk: {game['gamePk']!r}")
        return None
    return ScheduleItem(
        id=game_pk,
        date=str(game.get("gameDate", "")),
        headline=recap.get("headline") or "",
        subhead=recap.get("subhead") or "",
        blurb=recap.get("blurb") or "",
        photos=extract_photos(recap),
    )


def extract_items(document: Mapping[str, Any]) -> List[ScheduleItem]:
    """
    Returns the games of the first date bucket that have recap content, in order.

    Games without a recap are skipped silently; they are not failures.

    Raises:
        MissingMetadataError: If the document has no date buckets.
    """
    buckets = document.get("dates") or []
    if not buckets:
        raise MissingMetadataError()

    if len(buckets) > 1:
        log.debug(f"Schedule has {len(buckets)} date buckets; using the first.")

    games = buckets[0].get("games") or []
    items = [item for item in (build_item(game) for game in games) if item]

    skipped = len(games) - len(items)
    if skipped:
        log.debug(f"Skipped {skipped} games without recap content.")
    return items
