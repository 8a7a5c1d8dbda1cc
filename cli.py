import json
from pathlib import Path
from typing import List, Optional

import pandas

from api import cover_url, describe_record
from config import APP_DIR, setup_logging
from library import Library
from models import BookRecord
from stats import format_top_terms
from stores import DuplicateError, ValidationError

PAGE_SIZE = 10
EXPORT_COLUMNS = ["key", "title", "authors", "first_publish_year", "cover_url"]
DEFAULT_EXPORT_PATH = APP_DIR / "favorites.csv"

MENU = """
Commands:
  s  search the catalog          r  random recommendation
  f  list favorites              x  remove a favorite
  p  set profile                 t  show top searches
  e  export favorites to CSV     q  quit
"""


def favorites_frame(records: List[BookRecord]) -> pandas.DataFrame:
    rows = [
        {
            "key": record.key,
            "title": record.title,
            "authors": record.authors,
            "first_publish_year": record.first_publish_year,
            "cover_url": cover_url(record.cover_i) or "",
        }
        for record in records
    ]
    frame = pandas.DataFrame(rows, columns=EXPORT_COLUMNS)
    frame["first_publish_year"] = frame["first_publish_year"].astype("Int64")
    return frame


def export_favorites(records: List[BookRecord], path: Path) -> Path:
    """Write favorites to a CSV spreadsheet and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    favorites_frame(records).to_csv(path, index=False)
    return path


def print_record_fields(record: BookRecord) -> None:
    print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False, sort_keys=True))


RESULT_PROMPT = "Number to add to favorites, 'd <number>' for details, 'n' next page, 's' skip: "


def pick_record(records: List[BookRecord], text: str) -> Optional[BookRecord]:
    """Resolve a 1-based number typed by the user, or None when it is not one."""
    text = text.strip()
    if not text.isdigit() or not 1 <= int(text) <= len(records):
        return None
    return records[int(text) - 1]


def choose_result(records: List[BookRecord]) -> Optional[BookRecord]:
    """Page through ``records`` until the user picks one or skips."""
    if not records:
        print("No books found.")
        return None

    pages = [records[start : start + PAGE_SIZE] for start in range(0, len(records), PAGE_SIZE)]
    page_number = 0
    show_page = True
    while page_number < len(pages):
        if show_page:
            first = page_number * PAGE_SIZE + 1
            print("\n\n".join(describe_record(r, i) for i, r in enumerate(pages[page_number], start=first)))
            show_page = False

        command, _, argument = input(RESULT_PROMPT).strip().partition(" ")
        command = command.lower()
        if command == "s":
            return None
        if command == "n":
            page_number += 1
            show_page = True
        elif command == "d":
            record = pick_record(records, argument)
            if record:
                print_record_fields(record)
            else:
                print("Give the number of a listed book, e.g. 'd 2'.")
        else:
            chosen = pick_record(records, command)
            if chosen:
                return chosen
            print("That is not one of the listed books.")

    print("No more results to show.")
    return None


def add_to_favorites(library: Library, record: BookRecord) -> None:
    try:
        library.favorites.add_favorite(record)
    except DuplicateError:
        print("Already added.")
        return
    print(f"Added '{record.title}' to favorites.")


def show_results(library: Library, query: Optional[str]) -> None:
    filter_mode = "hasCover" if input("Only books with covers? (y/n): ").strip().lower() in {"y", "yes"} else "all"
    try:
        if query is None:
            outcome = library.recommend(filter_mode)
        else:
            outcome = library.search(query, filter_mode)
    except ValidationError as error:
        print(error)
        return
    print(f"\nResults for '{outcome.query}'  (top searches: {format_top_terms(outcome.top_terms)})")
    chosen = choose_result(outcome.results)
    if chosen:
        add_to_favorites(library, chosen)


def show_favorites(library: Library) -> List[BookRecord]:
    favorites = library.favorites.list_favorites()
    if not favorites:
        print("No favorites yet.")
    for idx, record in enumerate(favorites, start=1):
        print(describe_record(record, idx))
    return favorites


def remove_favorite(library: Library) -> None:
    favorites = show_favorites(library)
    if not favorites:
        return
    record = pick_record(favorites, input("Number of the favorite to remove: "))
    if record is None:
        print("That is not one of the listed favorites.")
        return
    library.favorites.remove_favorite(record.key)
    print(f"Removed '{record.title}'.")


def edit_profile(library: Library) -> None:
    current = library.profiles.get_profile()
    if current:
        print(f"Current profile: {current.name} (preferred genre: {current.genre})")
    name = input("Your name: ").strip()
    genre = input("Preferred genre: ")
    try:
        library.profiles.set_profile(name, genre)
    except ValidationError:
        print("Fill both fields.")
        return
    print("Saved!")


def interactive_session(library: Optional[Library] = None) -> None:
    """Run the interactive bookshelf session."""
    library = library or Library.open()

    profile = library.profiles.get_profile()
    if profile:
        print(f"\nWelcome back, {profile.name}. Preferred genre: {profile.genre}")
    else:
        print("\nNo profile saved.")
    print(f"Top searches: {format_top_terms(library.top_terms())}")

    while True:
        print(MENU)
        command = input("> ").strip().lower()
        if command in {"q", "quit"}:
            break
        if command == "s":
            show_results(library, input("Search term: "))
        elif command == "r":
            show_results(library, None)
        elif command == "f":
            show_favorites(library)
        elif command == "x":
            remove_favorite(library)
        elif command == "p":
            edit_profile(library)
        elif command == "t":
            print(f"Top searches: {format_top_terms(library.top_terms())}")
        elif command == "e":
            target = input(f"Export path [{DEFAULT_EXPORT_PATH}]: ").strip() or DEFAULT_EXPORT_PATH
            written = export_favorites(library.favorites.list_favorites(), Path(target))
            print(f"Favorites written to {written}")
        else:
            print("Please enter a valid option.")

    library.close()
    print("\nSession complete.")


if __name__ == "__main__":
    setup_logging()
    interactive_session()
