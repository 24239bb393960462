"""Resolve grocery item links for the browser view."""

import httpx

from muscle_math.domain.profile import SupportedStore
from muscle_math.domain.suggestions import GroceryItem, PartialGroceryItem

_SEARCH_TEMPLATES: dict[SupportedStore, tuple[str, str]] = {
    SupportedStore.MEIJER: ("https://www.meijer.com/shopping/search.html", "text"),
    SupportedStore.TARGET: ("https://www.target.com/s", "searchTerm"),
    SupportedStore.COSTCO: ("https://www.costco.com/CatalogSearch", "keyword"),
    SupportedStore.ALDI: ("https://www.aldi.us/results", "q"),
    SupportedStore.WALMART: ("https://www.walmart.com/search", "q"),
    SupportedStore.KROGER: ("https://www.kroger.com/search", "query"),
    SupportedStore.WHOLE_FOODS: ("https://www.wholefoodsmarket.com/search", "text"),
    SupportedStore.TRADER_JOES: ("https://www.traderjoes.com/home/search", "q"),
}
_FALLBACK_SEARCH = ("https://www.google.com/search", "q")


def resolve_link(raw: str | None) -> str | None:
    """Return a usable http(s) URL, or None when no link is available."""
    if raw is None or not raw.strip():
        return None
    try:
        url = httpx.URL(raw.strip())
    except httpx.InvalidURL:
        return None
    if url.scheme not in {"http", "https"} or not url.host:
        return None
    return str(url)


def store_search_url(store: str, query: str) -> str:
    """Build a search results URL for ``query`` at ``store``."""
    supported = SupportedStore.lookup(store)
    if supported is None:
        base, param = _FALLBACK_SEARCH
        query = f"{store.strip()} {query}".strip()
    else:
        base, param = _SEARCH_TEMPLATES[supported]
    return str(httpx.URL(base, params={param: query}))


def item_link(item: PartialGroceryItem | GroceryItem, store: str) -> str | None:
    """Return the item's own link, falling back to a store search by name."""
    resolved = resolve_link(item.url)
    if resolved is not None:
        return resolved
    if item.name and item.name.strip():
        return store_search_url(store, item.name.strip())
    return None
