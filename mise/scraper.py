"""Recipe import from arbitrary web pages.

The page is fetched once and searched for a schema.org ``Recipe`` node in its
JSON-LD blocks. Pages without one fall back to CSS selectors: dedicated ones
for chefkoch.de and a generic pass over common microdata and class names.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from .config import get_settings
from .normalize import (
    ParsedIngredient,
    is_http_url,
    parse_duration,
    parse_ingredient_line,
    parse_yield,
)

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Imported Recipe"
DEFAULT_PORTIONS = 4
FALLBACK_PREP_TIME = 30

GENERIC_INGREDIENT_SELECTORS = [
    "[itemprop=recipeIngredient]",
    "[itemprop=ingredients]",
    ".wprm-recipe-ingredient",
    ".ingredients li",
    ".ingredient-list li",
]
GENERIC_STEP_SELECTORS = [
    "[itemprop=recipeInstructions] li",
    "[itemprop=recipeInstructions]",
    ".wprm-recipe-instruction-text",
    ".instructions li",
    ".preparation li",
]


class RecipeImportError(Exception):
    """The page was fetched but holds no usable recipe, or the URL is invalid."""


class RecipeFetchError(RecipeImportError):
    """The page could not be downloaded."""


@dataclass
class ScrapedRecipe:
    name: str = DEFAULT_NAME
    portions: int = DEFAULT_PORTIONS
    prep_time: int = 0
    image: Optional[str] = None
    steps: List[str] = field(default_factory=list)
    ingredients: List[ParsedIngredient] = field(default_factory=list)


def _clean_text(value: Any) -> str:
    text = str(value or "")
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text(" ")
    return " ".join(text.split())


def validate_url(url: str) -> str:
    url = (url or "").strip()
    if not is_http_url(url):
        raise RecipeImportError("Only http and https URLs can be imported")
    return url


def _read_capped(resp: httpx.Response, max_bytes: int) -> str:
    chunks = []
    size = 0
    for chunk in resp.iter_bytes():
        size += len(chunk)
        if size > max_bytes:
            raise RecipeFetchError("Page too large")
        chunks.append(chunk)
    encoding = resp.encoding or "utf-8"
    return b"".join(chunks).decode(encoding, errors="replace")


def fetch_html(url: str, client: Optional[httpx.Client] = None) -> str:
    """Download a page, giving up once it grows past ``import_max_bytes``."""
    settings = get_settings()
    url = validate_url(url)
    headers = {"User-Agent": settings.import_user_agent}
    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=settings.import_timeout, follow_redirects=True)
    try:
        with client.stream("GET", url, headers=headers) as resp:
            resp.raise_for_status()
            return _read_capped(resp, settings.import_max_bytes)
    except httpx.HTTPStatusError as e:
        raise RecipeFetchError(f"Failed to fetch: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise RecipeFetchError(f"Failed to fetch: {e}") from e
    finally:
        if own_client:
            client.close()


# --- JSON-LD -------------------------------------------------------------


def _is_recipe_type(value: Any) -> bool:
    if isinstance(value, list):
        return any(_is_recipe_type(v) for v in value)
    if not isinstance(value, str):
        return False
    # "Recipe", "schema:Recipe", "http://schema.org/Recipe"
    return re.split(r"[/:]", value)[-1] == "Recipe"


def find_recipe_node(data: Any) -> Optional[dict]:
    if isinstance(data, list):
        for item in data:
            found = find_recipe_node(item)
            if found:
                return found
        return None
    if not isinstance(data, dict):
        return None
    if _is_recipe_type(data.get("@type")):
        return data
    if "@graph" in data:
        return find_recipe_node(data["@graph"])
    return None


def _parse_image(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _instruction_text(inst: Any) -> str:
    if isinstance(inst, str):
        return _clean_text(inst)
    if not isinstance(inst, dict):
        return ""
    if inst.get("text"):
        return _clean_text(inst["text"])
    if inst.get("itemListElement"):
        elements = inst["itemListElement"]
        if not isinstance(elements, list):
            elements = [elements]
        return " ".join(t for t in (_instruction_text(e) for e in elements) if t)
    return ""


def _parse_instructions(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        if "<" in value:
            value = BeautifulSoup(value, "html.parser").get_text("\n")
        return [" ".join(s.split()) for s in re.split(r"\n+", value) if s.strip()]
    if isinstance(value, dict):
        value = [value]
    if isinstance(value, list):
        return [s for s in (_instruction_text(i) for i in value) if s.strip()]
    return []


def recipe_from_json_ld(data: dict) -> ScrapedRecipe:
    ingredients = []
    raw_ingredients = data.get("recipeIngredient") or data.get("ingredients") or []
    if isinstance(raw_ingredients, str):
        raw_ingredients = [raw_ingredients]
    if isinstance(raw_ingredients, list):
        for ing in raw_ingredients:
            text = _clean_text(ing)
            if text:
                ingredients.append(parse_ingredient_line(text))

    return ScrapedRecipe(
        name=_clean_text(data.get("name")) or DEFAULT_NAME,
        portions=parse_yield(data.get("recipeYield"), DEFAULT_PORTIONS),
        prep_time=parse_duration(
            data.get("totalTime") or data.get("prepTime") or data.get("cookTime")
        ),
        image=_parse_image(data.get("image")),
        steps=_parse_instructions(data.get("recipeInstructions")),
        ingredients=ingredients,
    )


# --- selector fallback ---------------------------------------------------


def _first_h1(soup: BeautifulSoup) -> str:
    h1 = soup.find("h1")
    return _clean_text(h1.get_text()) if h1 else ""


def _img_src(img, base_url: str) -> Optional[str]:
    if img is None:
        return None
    src = img.get("src") or img.get("data-src")
    return urljoin(base_url, src) if src else None


def _scrape_chefkoch(soup: BeautifulSoup, url: str) -> ScrapedRecipe:
    ingredients = []
    for row in soup.select("table.ingredients tr"):
        cells = [_clean_text(td.get_text()) for td in row.find_all("td")]
        text = " ".join(c for c in cells if c)
        # section headers such as "Für den Teig:"
        if text and ":" not in text:
            ingredients.append(parse_ingredient_line(text))

    steps = []
    for el in soup.select(".ds-box p, .preparation-text"):
        text = _clean_text(el.get_text())
        if len(text) > 20:
            steps.append(text)

    return ScrapedRecipe(
        name=_first_h1(soup) or DEFAULT_NAME,
        portions=DEFAULT_PORTIONS,
        prep_time=FALLBACK_PREP_TIME,
        image=_img_src(soup.select_one("img.ds-image, .recipe-image img"), url),
        steps=steps,
        ingredients=ingredients,
    )


def _select_texts(soup: BeautifulSoup, selectors: List[str]) -> List[str]:
    for selector in selectors:
        texts = [_clean_text(el.get_text()) for el in soup.select(selector)]
        texts = [t for t in texts if t]
        if texts:
            return texts
    return []


def _scrape_generic(soup: BeautifulSoup, url: str) -> ScrapedRecipe:
    name = _first_h1(soup)
    if not name:
        og_title = soup.find("meta", attrs={"property": "og:title"})
        name = _clean_text(og_title.get("content")) if og_title else ""

    image = None
    og_image = soup.find("meta", attrs={"property": "og:image"})
    if og_image and og_image.get("content"):
        image = urljoin(url, og_image["content"])

    portions = DEFAULT_PORTIONS
    yield_el = soup.select_one("[itemprop=recipeYield]")
    if yield_el is not None:
        portions = parse_yield(yield_el.get("content") or yield_el.get_text())

    prep_time = FALLBACK_PREP_TIME
    time_el = soup.select_one("[itemprop=totalTime], [itemprop=prepTime]")
    if time_el is not None:
        prep_time = parse_duration(time_el.get("content") or time_el.get_text()) or prep_time

    return ScrapedRecipe(
        name=name,
        portions=portions,
        prep_time=prep_time,
        image=image,
        steps=_select_texts(soup, GENERIC_STEP_SELECTORS),
        ingredients=[
            parse_ingredient_line(t)
            for t in _select_texts(soup, GENERIC_INGREDIENT_SELECTORS)
        ],
    )


def scrape_with_selectors(soup: BeautifulSoup, url: str) -> ScrapedRecipe:
    host = (urlparse(url).hostname or "").lower()
    if host == "chefkoch.de" or host.endswith(".chefkoch.de"):
        return _scrape_chefkoch(soup, url)

    recipe = _scrape_generic(soup, url)
    if not (recipe.name or recipe.ingredients or recipe.steps):
        raise RecipeImportError("Could not parse recipe from URL")
    recipe.name = recipe.name or DEFAULT_NAME
    return recipe


def _page_image(image: Optional[str], url: str) -> Optional[str]:
    if not image:
        return None
    image = urljoin(url, image)
    return image if is_http_url(image) else None


def extract_recipe(html: str, url: str) -> ScrapedRecipe:
    recipe = _extract(html, url)
    recipe.image = _page_image(recipe.image, url)
    return recipe


def _extract(html: str, url: str) -> ScrapedRecipe:
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("skipping malformed JSON-LD block on %s", url)
            continue
        node = find_recipe_node(data)
        if node:
            return recipe_from_json_ld(node)
    logger.info("no JSON-LD recipe on %s, falling back to selectors", url)
    return scrape_with_selectors(soup, url)


def scrape_recipe(url: str, client: Optional[httpx.Client] = None) -> ScrapedRecipe:
    html = fetch_html(url, client=client)
    recipe = extract_recipe(html, url)
    logger.info(
        "imported %r from %s: %d ingredients, %d steps",
        recipe.name, url, len(recipe.ingredients), len(recipe.steps),
    )
    return recipe
