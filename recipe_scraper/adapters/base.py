from dataclasses import dataclass, field, asdict   # dataclass creates lightweight, readable data objects
from typing import Optional, Dict, Any, List        # type hints for optional fields and generic lists
from urllib.parse import urljoin, urlparse, urlunparse

UNKNOWN_TITLE = "Unknown Recipe"                   # Title sentinel; a record carrying it is never saved
NO_STEPS = "No detailed instructions available"    # Placeholder step when nothing could be read
DEFAULT_PREP_TIME = "15 mins"
DEFAULT_COOK_TIME = "20 mins"
DEFAULT_SERVINGS = 4


@dataclass
class Ingredient:                                  # One ingredient line split into two parts
    quantity: str                                  # "2 cups" (empty when no leading amount was found)
    item: str                                      # "flour"


@dataclass
class ExtractedRecord:                             # Represents one scraped recipe (unified schema)
    title: str                                     # Recipe name (required, must not be the sentinel)
    description: str                               # Short summary or the site's default text
    ingredients: List[Ingredient] = field(default_factory=list)
    steps: List[str] = field(default_factory=lambda: [NO_STEPS])
    image_url: str = ""                            # Hero image URL ("" if none)
    prep_time: str = DEFAULT_PREP_TIME             # Display string, e.g. "1h 30 mins"
    cook_time: str = DEFAULT_COOK_TIME
    servings: int = DEFAULT_SERVINGS
    source_url: Optional[str] = None               # Set by the item scraper, never by extractors

    @property
    def is_valid(self) -> bool:
        title = (self.title or "").strip()
        return bool(title) and title != UNKNOWN_TITLE and len(self.ingredients) > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_url(href: str, base: str) -> str:
    """Absolute URL without query/fragment and without a trailing slash."""
    parts = urlparse(urljoin(base, href))
    path = parts.path.rstrip("/") or "/"
    return urlunparse((parts.scheme, parts.netloc.lower(), path, "", "", ""))


class SiteAdapter:                                 # Base class for all site-specific adapters
    name: str = "base"                             # Human-readable adapter name (override per site)
    site_name: str = ""                            # Brand used in titles ("| Tasty") and default texts
    domains: List[str] = []                        # Domain patterns handled by this adapter
    base_url: str = ""

    RECIPE_LINK: str = "a[href]"                   # Anchors on listing pages that point at recipes
    LOAD_MORE: str = ""                            # "Load more" control on listing pages ("" = none)
    TITLE_READY: str = "h1"                        # Element that signals a recipe page has rendered

    def tag_url(self, tag: str) -> str:            # Listing page for one collection tag
        raise NotImplementedError

    def is_recipe_url(self, url: str) -> bool:     # Filters anchors that match RECIPE_LINK too loosely
        return True

    def default_description(self) -> str:
        return f"A delicious recipe from {self.site_name or self.name}"
