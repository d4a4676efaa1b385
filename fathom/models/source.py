"""Source document data model."""

from __future__ import annotations

from dataclasses import dataclass

# Wire names for the fields the client reads in camelCase.
_WIRE_NAMES = {
    "published_date": "publishedDate",
    "site_name": "siteName",
}


@dataclass(frozen=True)
class SourceDocument:
    """A web page returned by the search provider for one turn."""

    url: str
    title: str
    description: str | None = None
    content: str | None = None
    markdown: str | None = None
    published_date: str | None = None
    author: str | None = None
    image: str | None = None
    favicon: str | None = None
    site_name: str | None = None

    @property
    def text(self) -> str:
        """The best available body text, markdown preferred."""
        return self.markdown or self.content or ""

    def to_dict(self) -> dict:
        data: dict = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if value is not None:
                data[_WIRE_NAMES.get(name, name)] = value
        return data
