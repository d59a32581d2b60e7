import logging
from pathlib import Path
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from .. import crud, export, models, schemas
from ..auth import current_user
from ..config import get_settings
from ..db import get_db
from ..scraper import RecipeFetchError, RecipeImportError, scrape_recipe
from ..translate import TRANSLATIONS, allergen_name, translate_text
from .deps import download, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])
pages = APIRouter(tags=["pages"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))

IMPORT_CATEGORY = "Mains"


def get_http_client():
    settings = get_settings()
    client = httpx.Client(timeout=settings.import_timeout, follow_redirects=True)
    try:
        yield client
    finally:
        client.close()


def _split_codes(values: Optional[List[str]]) -> List[str]:
    codes = []
    for value in values or []:
        codes.extend(c for c in value.split(",") if c.strip())
    return codes


def _page_links(request: Request, page: int, page_size: int, total: int) -> str:
    last = max(1, -(-total // page_size))
    links = []

    def link(p: int, rel: str):
        url = request.url.include_query_params(page=p, page_size=page_size)
        links.append(f'<{url}>; rel="{rel}"')

    link(1, "first")
    if page > 1:
        link(page - 1, "prev")
    if page < last:
        link(page + 1, "next")
    link(last, "last")
    return ", ".join(links)


@router.get("", response_model=List[schemas.Recipe])
def list_recipes(
    request: Request,
    response: Response,
    q: Optional[str] = None,
    category: Optional[str] = None,
    exclude_allergen: Optional[List[str]] = Query(None),
    page: Optional[int] = Query(None, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    """List recipes by name.

    Without ``page`` every match is returned; with it, the slice is
    described by ``Link`` and ``X-Total-Count`` headers.
    """
    skip, limit = 0, None
    if page is not None:
        skip, limit = (page - 1) * page_size, page_size
    recipes, total = crud.get_recipes(
        db,
        skip=skip,
        limit=limit,
        q=q,
        category=category,
        exclude_allergens=_split_codes(exclude_allergen),
    )
    if page is not None:
        response.headers["X-Total-Count"] = str(total)
        response.headers["Link"] = _page_links(request, page, page_size, total)
    return recipes


@router.post("", response_model=schemas.RecipeDetail, status_code=status.HTTP_201_CREATED)
def create_recipe(
    payload: schemas.RecipeCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    recipe = crud.create_recipe(db, payload)
    return _detail(recipe)


@router.post(
    "/import", response_model=schemas.RecipeDetail, status_code=status.HTTP_201_CREATED
)
def import_recipe(
    payload: schemas.RecipeImport,
    db: Session = Depends(get_db),
    client: httpx.Client = Depends(get_http_client),
    user: models.User = Depends(current_user),
):
    if not payload.url or not payload.url.strip():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="URL is required")
    try:
        scraped = scrape_recipe(payload.url, client=client)
    except RecipeFetchError as e:
        logger.warning("recipe import from %s failed: %s", payload.url, e)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except RecipeImportError as e:
        logger.warning("recipe import from %s failed: %s", payload.url, e)
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(e))

    recipe = crud.create_recipe(
        db,
        schemas.RecipeCreate(
            name=scraped.name,
            category=payload.category or IMPORT_CATEGORY,
            portions=scraped.portions,
            prep_time=scraped.prep_time,
            image=scraped.image,
            source_url=payload.url.strip(),
            steps=scraped.steps,
            allergens=[],
            ingredients_list=[
                schemas.IngredientCreate(name=i.name, amount=i.amount, unit=i.unit)
                for i in scraped.ingredients
            ],
        ),
    )
    return _detail(recipe)


def _detail(recipe: models.Recipe) -> schemas.RecipeDetail:
    detail = schemas.RecipeDetail.model_validate(recipe)
    detail.ingredients_list = [schemas.Ingredient.model_validate(i) for i in recipe.ingredients]
    return detail


def _get_or_404(db: Session, recipe_id: int) -> models.Recipe:
    recipe = crud.get_recipe(db, recipe_id)
    if not recipe:
        raise not_found("Recipe not found")
    return recipe


@router.get("/{recipe_id}", response_model=schemas.RecipeDetail)
def get_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    return _detail(_get_or_404(db, recipe_id))


@router.put("/{recipe_id}", response_model=schemas.RecipeDetail)
def update_recipe(
    recipe_id: int,
    payload: schemas.RecipeUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    recipe = crud.update_recipe(db, recipe_id, payload)
    if not recipe:
        raise not_found("Recipe not found")
    return _detail(recipe)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    if not crud.delete_recipe(db, recipe_id):
        raise not_found("Recipe not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{recipe_id}/ingredients", response_model=List[schemas.Ingredient])
def list_ingredients(
    recipe_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    _get_or_404(db, recipe_id)
    return crud.get_ingredients(db, recipe_id)


@router.get("/{recipe_id}/export/{fmt}")
def export_recipe(
    recipe_id: int,
    fmt: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    recipe = _get_or_404(db, recipe_id)
    try:
        content, media_type, filename = export.render_recipe(
            recipe, crud.get_ingredients(db, recipe_id), fmt.lower()
        )
    except ValueError as e:
        logger.warning("recipe %s export as %r rejected: %s", recipe_id, fmt, e)
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(e))
    return download(content, media_type, filename)


@pages.get("/recipes/{recipe_id}", response_class=HTMLResponse)
def view_recipe(
    request: Request,
    recipe_id: int,
    lang: Optional[str] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    """Printable recipe card."""
    recipe = _get_or_404(db, recipe_id)
    lang = (lang or get_settings().default_lang).lower()
    if lang not in TRANSLATIONS:
        lang = get_settings().default_lang

    def t(key: str) -> str:
        return translate_text(key, lang)

    return templates.TemplateResponse(
        request,
        "recipe.html",
        {
            "recipe": recipe,
            "ingredients": recipe.ingredients,
            "allergens": [(code, allergen_name(code, lang)) for code in recipe.allergens or []],
            "format_amount": export.format_amount if lang == "de" else "{:g}".format,
            "lang": lang,
            "t": t,
        },
    )
