"""
Pytest fixtures for docquery tests.
"""

import pytest
from dataclasses import dataclass, field
from enum import Enum
from types import SimpleNamespace
from typing import ClassVar, List, Optional

from docquery import DataclassCodec, Field, Identifiable, Session
from docquery.storage import MemoryDocumentStore


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: crosses several components")
    config.addinivalue_line("markers", "requires_persistence: writes snapshots to disk")


class Level(Enum):
    JUNIOR = "junior"
    SENIOR = "senior"


@dataclass
class Address:
    city: str
    street: str = ""


@dataclass
class Person(Identifiable):
    revision: ClassVar[int] = 2

    name: str
    age: int = 0
    level: Level = Level.JUNIOR
    address: Optional[Address] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class LegacyPerson(Identifiable):
    revision: ClassVar[int] = 1

    name: str
    surname: str = ""


@pytest.fixture
def models() -> SimpleNamespace:
    """Dataclasses used as stored objects."""
    return SimpleNamespace(
        Level=Level,
        Address=Address,
        Person=Person,
        LegacyPerson=LegacyPerson,
    )


@pytest.fixture
def fields() -> SimpleNamespace:
    """Typed fields matching the Person model."""
    return SimpleNamespace(
        name=Field("name", str),
        age=Field("age", int),
        level=Field("level", Level),
        address=Field("address", Address),
        city=Field("city", str),
        tags=Field("tags", str),
    )


@pytest.fixture
def codec() -> DataclassCodec:
    """Codec with the test models registered."""
    codec = DataclassCodec()
    codec.register(Address)
    codec.register(Person)
    codec.register(LegacyPerson)
    return codec


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def session(store, codec) -> Session:
    return Session(store, codec=codec)


@pytest.fixture
def people(session):
    """Empty 'people' collection."""
    return session.collection("people")


@pytest.fixture
def sample_people() -> List[Person]:
    """Five people with duplicate ages, a missing address and two cities."""
    return [
        Person("Ada", 36, Level.SENIOR, Address("Paris"), ["math"]),
        Person("Grace", 45, Level.SENIOR, Address("New York")),
        Person("Alan", 41, Level.JUNIOR, Address("London"), ["math", "crypto"]),
        Person("Linus", 28, Level.JUNIOR),
        Person("Barbara", 36, Level.JUNIOR, Address("Paris")),
    ]


@pytest.fixture
def populated(people, sample_people):
    """'people' collection holding ``sample_people``."""
    for person in sample_people:
        people.insert(person)
    return people
