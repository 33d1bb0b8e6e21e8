class ScraperError(Exception):
    """Base class for every error raised by the recipe scraper."""


class TransientFetchError(ScraperError):
    """Navigation failed or timed out while rendering a page."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class ExtractionValidationError(ScraperError):
    """Title or ingredients still missing after the whole fallback chain ran."""

    def __init__(self, url: str, title: str, ingredient_count: int):
        self.url = url
        self.title = title
        self.ingredient_count = ingredient_count
        super().__init__(
            f'Failed to extract essential recipe data - Title: "{title}", '
            f"Ingredients: {ingredient_count}"
        )


class PersistenceError(ScraperError):
    """The record store could not be reached."""


class DiscoveryError(ScraperError):
    """URL discovery produced nothing usable; the run cannot continue."""
