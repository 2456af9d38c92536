"""
Schema migration example for docquery.

Shows how documents written by an older revision of a class are moved to a
legacy class, and how fields are renamed and removed in place. Data is kept
in a msgpack snapshot between runs.
"""

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from config import Settings, StoreConfig
from docquery import DataclassCodec, Field, Identifiable, Session


codec = DataclassCodec()


@codec.register
@dataclass
class Person(Identifiable):
    revision: ClassVar[int] = 2

    name: str
    last_name: str = ""


@codec.register
@dataclass
class PersonV1(Identifiable):
    revision: ClassVar[int] = 1

    name: str
    surname: str = ""


def main():
    snapshot = Path(tempfile.mkdtemp(prefix="docquery_")) / "people.snapshot"
    settings = Settings(store=StoreConfig(snapshot_path=str(snapshot)))

    print("1. Writing revision 1 documents...")
    with Session.from_config(settings, codec=codec) as session:
        raw = session.collection("people").store_collection
        for name, surname in [("Ada", "Lovelace"), ("Alan", "Turing")]:
            raw.insert({"class": "Person", "revision": 1, "name": name, "surname": surname})
    print(f"   Snapshot: {snapshot}")

    print("\n2. Moving revision 1 to PersonV1...")
    with Session.from_config(settings, codec=codec) as session:
        people = session.collection("people")
        print(f"   Modified: {people.replace_revision_class(1, 'PersonV1')}")
        print(f"   Re-run modified: {people.replace_revision_class(1, 'PersonV1')}")
        for person in people.query().sort(Field("name", str).ascending()):
            print(f"   {person}")

    print("\n3. Upgrading fields...")
    with Session.from_config(settings, codec=codec) as session:
        people = session.collection("people")
        print(f"   Renamed: {people.rename_field('surname', 'last_name')}")
        print(f"   Removed: {people.remove_field('nickname')}")


if __name__ == "__main__":
    main()
