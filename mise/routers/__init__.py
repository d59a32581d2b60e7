from . import admin, auth, dashboard, guests, haccp, menu, recipes, schedule, seed

ROUTERS = [
    auth.router,
    admin.router,
    recipes.router,
    recipes.pages,
    haccp.router,
    guests.router,
    schedule.router,
    menu.router,
    dashboard.router,
    seed.router,
]
