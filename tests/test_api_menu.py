from datetime import date, timedelta

from mise import models
from mise.routers.menu import shopping_list


def day(offset=0):
    return (date.today() + timedelta(days=offset)).isoformat()


def make_recipe(client, name, portions, ingredients):
    res = client.post(
        "/api/recipes",
        json={"name": name, "category": "Mains", "portions": portions, "ingredientsList": ingredients},
    )
    assert res.status_code == 201, res.text
    return res.json()["id"]


def plan(client, recipe_id, portions, offset=0, meal="lunch", **extra):
    payload = {"date": day(offset), "meal": meal, "recipeId": recipe_id, "portions": portions}
    payload.update(extra)
    return client.post("/api/menu-plans", json=payload)


def test_menu_plan_crud(user_client):
    rid = make_recipe(user_client, "Tafelspitz", 4, [])
    res = plan(user_client, rid, 10, course="main_meat")
    assert res.status_code == 201
    entry = res.json()
    assert entry["course"] == "main_meat"

    assert plan(user_client, None, 5, meal="dinner", notes="Buffet").status_code == 201
    assert plan(user_client, rid, 0).status_code == 422
    assert plan(user_client, rid, 2, meal="brunch").status_code == 422

    res = plan(user_client, 999, 2)
    assert res.status_code == 400
    assert res.json()["detail"] == "Recipe not found"

    assert len(user_client.get("/api/menu-plans").json()) == 2

    res = user_client.put(f"/api/menu-plans/{entry['id']}", json={"portions": 12, "notes": "ohne Kren"})
    assert res.json()["portions"] == 12
    assert user_client.put(f"/api/menu-plans/{entry['id']}", json={"recipeId": 999}).status_code == 400
    assert user_client.get(f"/api/menu-plans/{entry['id']}").json()["notes"] == "ohne Kren"

    assert user_client.delete(f"/api/menu-plans/{entry['id']}").status_code == 204
    assert user_client.get(f"/api/menu-plans/{entry['id']}").status_code == 404


def test_shopping_list_scales_and_merges(user_client):
    pancakes = make_recipe(
        user_client,
        "Palatschinken",
        4,
        [
            {"name": "Mehl", "amount": 200, "unit": "g"},
            {"name": "Eier", "amount": 2, "unit": "Stück"},
        ],
    )
    sauce = make_recipe(
        user_client,
        "Béchamel",
        2,
        [
            {"name": "mehl", "amount": 100, "unit": "g"},
            {"name": "Milch", "amount": 1, "unit": "l"},
        ],
    )
    plan(user_client, pancakes, 8)
    plan(user_client, sauce, 2, offset=1)
    plan(user_client, sauce, 2, offset=30)

    items = user_client.get("/api/menu-plans/shopping-list").json()
    assert items == [
        {"name": "Eier", "amount": 4.0, "unit": "Stück"},
        {"name": "Mehl", "amount": 500.0, "unit": "g"},
        {"name": "Milch", "amount": 1.0, "unit": "l"},
    ]


def test_shopping_list_keeps_units_apart():
    recipe = models.Recipe(name="Suppe", category="Soups", portions=3, allergens=[], steps=[])
    recipe.ingredients = [
        models.Ingredient(name="Karotten", amount=1, unit="kg"),
        models.Ingredient(name="Karotten", amount=2, unit="Stück"),
    ]
    plans = [
        models.MenuPlan(recipe=recipe, portions=1),
        models.MenuPlan(recipe=None, portions=50),
    ]
    items = shopping_list(plans)
    assert [(i.name, i.amount, i.unit) for i in items] == [
        ("Karotten", 0.67, "Stück"),
        ("Karotten", 0.33, "kg"),
    ]


def test_deleting_recipe_keeps_plan(user_client):
    rid = make_recipe(user_client, "Gulasch", 4, [])
    plan_id = plan(user_client, rid, 4).json()["id"]

    user_client.delete(f"/api/recipes/{rid}")
    res = user_client.get(f"/api/menu-plans/{plan_id}")
    assert res.status_code == 200
    assert res.json()["recipeId"] is None


def test_menu_plan_export(user_client):
    rid = make_recipe(user_client, "Kaiserschmarrn", 2, [])
    plan(user_client, rid, 20, meal="dinner", course="dessert")
    plan(user_client, rid, 10, meal="breakfast")

    pdf = user_client.get("/api/menu-plans/export")
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")
    assert f"Menuplan_{day(0)}_{day(7)}.pdf" in pdf.headers["content-disposition"]

    xlsx = user_client.get("/api/menu-plans/export", params={"format": "XLSX"})
    assert xlsx.status_code == 200
    assert xlsx.content.startswith(b"PK")
    assert f"Menuplan_{day(0)}_{day(7)}.xlsx" in xlsx.headers["content-disposition"]
