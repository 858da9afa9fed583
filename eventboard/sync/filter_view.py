"""Client-side text filter over the cached event collection."""

from collections.abc import Iterable

from ..models import Event

# Attributes searched in addition to the title
TEXT_FIELDS = ("description", "location", "date")


def searchable_text(event: Event) -> list[str]:
    """Textual fields of an event that a query is matched against."""
    texts = [event.title]
    for name in TEXT_FIELDS:
        value = event.attributes.get(name)
        if isinstance(value, str):
            texts.append(value)
    return texts


def matches(event: Event, needle: str) -> bool:
    """Check whether a casefolded needle occurs in any searchable field."""
    return any(needle in text.casefold() for text in searchable_text(event))


def filter_events(events: Iterable[Event], query: str) -> list[Event]:
    """Return the events matching a query, in their original order.

    Matching is a case-insensitive substring test against the title and the
    ``TEXT_FIELDS`` attributes. An empty or whitespace-only query returns
    every event.

    Args:
        events: Events to filter. Not modified.
        query: Free-text query from the search bar.

    Returns:
        New list with the matching events.
    """
    needle = (query or "").strip().casefold()
    if not needle:
        return list(events)
    return [event for event in events if matches(event, needle)]
