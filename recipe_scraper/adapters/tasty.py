from urllib.parse import urlparse

from recipe_scraper.adapters.base import SiteAdapter


class TastyAdapter(SiteAdapter):
    name = "tasty"
    site_name = "Tasty"
    domains = ["tasty.co"]
    base_url = "https://tasty.co"

    RECIPE_LINK = "a[href*='/recipe/']"
    LOAD_MORE = "button:has-text('Load More'), button:has-text('Show More')"
    TITLE_READY = "h1, .recipe-name, [data-testid='recipe-name']"

    def tag_url(self, tag: str) -> str:
        return f"{self.base_url}/tag/{tag}"

    def is_recipe_url(self, url: str) -> bool:
        # /recipe/<slug> only; the bare /recipe index and /compilation pages are not items
        segments = [s for s in urlparse(url).path.split("/") if s]
        return len(segments) >= 2 and segments[0] == "recipe"

    def default_description(self) -> str:
        return "A delicious recipe from Tasty.co"
