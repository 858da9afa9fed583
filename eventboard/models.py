"""Event record returned by the remote event service."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Event:
    """A single event shown as a card in the grid.

    Only ``id`` and ``title`` are interpreted. Every other wire field is kept
    in ``attributes`` and passed back unchanged by ``to_dict``.
    """

    id: Any  # Stable identity from the remote service, None if absent
    title: str
    attributes: dict[str, Any] = field(default_factory=dict)
    has_id: bool = field(default=True, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Event":
        """Build an Event from a decoded JSON object.

        Args:
            data: Mapping decoded from the wire.

        Returns:
            Parsed Event.

        Raises:
            TypeError: If ``data`` is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Event must be a JSON object, got {type(data).__name__}")

        title = data.get("title")
        return cls(
            id=data.get("id"),
            title="" if title is None else str(title),
            attributes={k: v for k, v in data.items() if k not in ("id", "title")},
            has_id="id" in data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the wire shape.

        ``id`` is only emitted when the wire object carried one.
        """
        result: dict[str, Any] = {}
        if self.has_id:
            result["id"] = self.id
        result["title"] = self.title
        result.update(self.attributes)
        return result

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a field by wire name."""
        if name == "id":
            return self.id
        if name == "title":
            return self.title
        return self.attributes.get(name, default)
