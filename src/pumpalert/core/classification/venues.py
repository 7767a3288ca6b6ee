"""Trading venue filter for secondary listings."""

from collections.abc import Iterable

from pumpalert.constants.thresholds import DEFAULT_VENUE_DENYLIST


class VenueFilter:
    """Accepts or rejects a DEX id.

    The deny set always wins. When an allow set is given, only venues in
    it pass; an empty allow set accepts every venue not denied.
    """

    def __init__(
        self,
        allow: Iterable[str] | None = None,
        deny: Iterable[str] | None = None,
    ) -> None:
        self.allow = frozenset(v.lower() for v in allow or ())
        self.deny = frozenset(
            v.lower() for v in (DEFAULT_VENUE_DENYLIST if deny is None else deny)
        )

    def accepts(self, dex_id: str) -> bool:
        venue = dex_id.lower()
        if not venue or venue in self.deny:
            return False
        return not self.allow or venue in self.allow
