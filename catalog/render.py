"""
Card rendering.

Cards are built as BeautifulSoup tags. Record fields only ever reach the tree
through `.string` assignment or attribute values, both of which the serializer
escapes, so a description containing "<script>" renders as text.

Card shape:
    <article class="card">
      <h2>{name}</h2>
      <p>{description}</p>
      <p>{creation_info}</p>
      <a href="{link}">Learn more</a>
    </article>

Public API:
    CardContainer(link_label).render(records)
    CardContainer.to_html() → str
    render_page(container, query) → str
"""

import copy
import logging
from collections.abc import Sequence
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from catalog.models import Record

DEFAULT_LINK_LABEL = "Learn more"
SAFE_SCHEMES       = {"", "http", "https", "mailto"}

log = logging.getLogger(__name__)


def safe_href(link: str) -> str:
    """Return link unchanged unless its scheme could execute script."""
    try:
        scheme = urlsplit(link.strip()).scheme.lower()
    except ValueError:
        log.warning("Dropping unparseable link: %r", link)
        return "#"
    if scheme in SAFE_SCHEMES:
        return link
    log.warning("Dropping link with disallowed scheme %r: %r", scheme, link)
    return "#"


def build_card(soup: BeautifulSoup, record: Record, link_label: str = DEFAULT_LINK_LABEL) -> Tag:
    article = soup.new_tag("article", attrs={"class": "card"})

    title = soup.new_tag("h2")
    title.string = record.name
    article.append(title)

    description = soup.new_tag("p")
    description.string = record.description
    article.append(description)

    created = soup.new_tag("p")
    created.string = record.creation_info
    article.append(created)

    anchor = soup.new_tag("a", attrs={"href": safe_href(record.link)})
    anchor.string = link_label
    article.append(anchor)

    return article


class CardContainer:
    """The element that holds the rendered cards. Each render replaces all of its children."""

    def __init__(self, link_label: str = DEFAULT_LINK_LABEL):
        self.link_label = link_label
        self._soup   = BeautifulSoup("", "html.parser")
        self.element = self._soup.new_tag("section", attrs={"class": "card-container"})

    def render(self, records: Sequence[Record]) -> None:
        # Cards are built before the container is cleared.
        cards = []
        for record in records:
            log.debug("Rendering card: %r", record)
            cards.append(build_card(self._soup, record, self.link_label))

        self.element.clear()
        for card in cards:
            self.element.append(card)

    @property
    def cards(self) -> list[Tag]:
        return self.element.find_all("article", recursive=False)

    def titles(self) -> list[str]:
        return [card.h2.get_text() for card in self.cards]

    def to_html(self) -> str:
        return str(self.element)


# ---------------------------------------------------------------------------
# Full page
# ---------------------------------------------------------------------------

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Programming Languages</title>
<style>
  body { font-family: sans-serif; margin: 0; background: #f4f4f6; }
  header { padding: 1rem 2rem; background: #1e1e2e; color: #fff; }
  header input { width: 100%; max-width: 32rem; padding: .5rem; font-size: 1rem; }
  .card-container { display: grid; gap: 1rem; padding: 2rem;
                    grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr)); }
  .card { background: #fff; border-radius: 8px; padding: 1rem;
          box-shadow: 0 1px 3px rgba(0, 0, 0, .15); }
</style>
</head>
<body>
<header>
  <h1>Programming Languages</h1>
  <form method="get" action="/">
    <input type="search" name="q" placeholder="Search by name or description" autocomplete="off">
  </form>
</header>
<main><section class="card-container"></section></main>
<script>
  const box = document.querySelector("header input");
  const container = document.querySelector(".card-container");
  let latest = 0;

  box.addEventListener("input", async () => {
    const ticket = ++latest;
    try {
      const resp = await fetch("/cards?q=" + encodeURIComponent(box.value));
      if (!resp.ok || ticket !== latest) return;
      const tpl = document.createElement("template");
      tpl.innerHTML = await resp.text();
      if (ticket !== latest) return;
      container.replaceChildren(...tpl.content.firstElementChild.childNodes);
    } catch (err) {
      console.error("Search request failed:", err);
    }
  });
</script>
</body>
</html>
"""


def render_page(container: CardContainer, query: str = "") -> str:
    """Return the full search page with the container's current cards and the query in the box."""
    page = BeautifulSoup(PAGE_TEMPLATE, "html.parser")
    page.select_one("header input")["value"] = query
    page.select_one("section.card-container").replace_with(copy.copy(container.element))
    return str(page)
