import argparse
from pathlib import Path

from mise.db import SessionLocal, init_db
from mise.recipes import BUNDLED_RECIPES, load_recipes
from mise.seed import seed_recipes


def main():
    parser = argparse.ArgumentParser(description="Import recipes from a JSON file.")
    parser.add_argument("path", nargs="?", default=str(BUNDLED_RECIPES))
    args = parser.parse_args()

    init_db()
    p = Path(args.path)
    if not p.exists():
        print(f"{p} not found")
        return
    db = SessionLocal()
    try:
        added = seed_recipes(db, load_recipes(p))
    finally:
        db.close()
    print(f"Imported {added} recipes")


if __name__ == "__main__":
    main()
