"""
Basic usage example for docquery.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from docquery import Field, Identifiable, Session, or_
from docquery.storage import MemoryDocumentStore


class Level(Enum):
    JUNIOR = "junior"
    SENIOR = "senior"


@dataclass
class Address:
    city: str
    street: str = ""


@dataclass
class Person(Identifiable):
    name: str
    age: int = 0
    level: Level = Level.JUNIOR
    address: Optional[Address] = None
    tags: List[str] = field(default_factory=list)


NAME = Field("name", str)
AGE = Field("age", int)
LEVEL = Field("level", Level)
ADDRESS = Field("address", Address)
CITY = Field("city", str)


def main():
    print("=" * 60)
    print("docquery Basic Usage Example")
    print("=" * 60)

    # 1. Create session
    print("\n1. Creating session...")
    session = Session(MemoryDocumentStore())
    session.codec.register(Address)
    session.codec.register(Person)

    people = session.collection("people")
    print(f"   Created: {people}")

    # 2. Insert objects
    print("\n2. Inserting people...")
    for person in [
        Person("Ada", 36, Level.SENIOR, Address("Paris"), ["math"]),
        Person("Grace", 45, Level.SENIOR, Address("New York")),
        Person("Alan", 41, Level.JUNIOR, Address("London"), ["math", "crypto"]),
        Person("Linus", 28),
        Person("Barbara", 36, Level.JUNIOR, Address("Paris")),
    ]:
        people.insert(person)
    print(f"   Collection size: {people.size}")

    # 3. Indexes
    print("\n3. Creating indexes...")
    print(f"   Indexes: {people.create_indexes([NAME, AGE])}")

    # 4. Filter and sort
    print("\n4. Seniors or people over 40, oldest first...")
    query = (
        people.query()
        .filter(or_(LEVEL.eq(Level.SENIOR), AGE.gt(40)))
        .sort(AGE.descending(), NAME.ascending())
    )
    for person in query:
        print(f"   {person.name} ({person.age}, {person.level.value})")

    # 5. Embedded documents
    print("\n5. People living in Paris...")
    parisians = people.query().filter(ADDRESS.sub(CITY.eq("Paris")))
    print(f"   {sorted(p.name for p in parisians)}")

    # 6. Pagination and counting
    print("\n6. Third youngest...")
    youngest = people.query().sort(AGE.ascending(), NAME.ascending())
    print(f"   {[p.name for p in youngest.skip(2).limit(1)]}")
    print(f"   Count with skip=3: {youngest.skip(3).count()}")

    # 7. Projection and ids
    print("\n7. Names only, and ids...")
    print(f"   {[p.name for p in people.query().fields(NAME).sort(NAME.ascending())]}")
    print(f"   Ids: {list(people.query().sort(NAME.ascending()).limit(2).ids())}")

    # 8. Explain
    print("\n8. Compiled query...")
    print(people.compiler.compile(query).explain())

    session.close()
    print("\n" + "=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
