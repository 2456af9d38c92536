"""
Unit tests for DataclassCodec.
"""

import uuid
import pytest
from dataclasses import dataclass
from typing import Set, Tuple

from config.settings import SchemaConfig
from docquery.codec import DataclassCodec
from docquery.core.exceptions import SerializationError, ValidationError
from docquery.core.identifiable import Identifiable


class TestRegistry:
    """Class registration tests."""

    def test_register_decorator(self):
        codec = DataclassCodec()

        @codec.register
        @dataclass
        class Point:
            x: int
            y: int

        assert codec.resolve("Point") is Point

    def test_register_with_name(self):
        """Test registering under a custom discriminator."""
        codec = DataclassCodec()

        @codec.register(name="PointV1")
        @dataclass
        class Point:
            x: int

        assert codec.class_name(Point) == "PointV1"
        assert "PointV1" in codec.registered()

    def test_register_non_dataclass(self):
        codec = DataclassCodec()

        with pytest.raises(ValidationError):
            codec.register(dict)

    def test_name_conflict(self):
        """Test two classes cannot share a discriminator."""
        codec = DataclassCodec()

        @dataclass
        class A:
            x: int

        @dataclass
        class B:
            x: int

        codec.register(A, name="Shape")
        codec.register(A, name="Shape")

        with pytest.raises(ValidationError, match="already registered"):
            codec.register(B, name="Shape")

    def test_unknown_discriminator(self, codec):
        with pytest.raises(SerializationError, match="Unknown class"):
            codec.resolve("Nope")


class TestEncoding:
    """Object to document tests."""

    def test_identifiable_document(self, codec, models):
        """Test id, class and revision are written."""
        person = models.Person(
            "Ada", 36, models.Level.SENIOR, models.Address("Paris"), ["math"]
        )
        document = codec.to_document(person)

        assert document == {
            "_id": person.id,
            "class": "Person",
            "revision": 2,
            "name": "Ada",
            "age": 36,
            "level": "senior",
            "address": {"class": "Address", "city": "Paris", "street": ""},
            "tags": ["math"],
        }

    def test_schema_field_names(self, models):
        """Test the schema decides the reserved field names."""
        codec = DataclassCodec(SchemaConfig(id_field="id", class_field="kind"))
        document = codec.to_document(models.LegacyPerson("Ada"))

        assert set(document) == {"id", "kind", "revision", "name", "surname"}

    def test_to_value(self, codec, models):
        assert codec.to_value(models.Level.JUNIOR) == "junior"
        assert codec.to_value((1, 2)) == [1, 2]
        assert codec.to_value({"k": models.Level.SENIOR}) == {"k": "senior"}
        assert codec.to_value(5) == 5

    def test_not_a_dataclass(self, codec):
        with pytest.raises(SerializationError):
            codec.to_document({"name": "Ada"})


class TestDecoding:
    """Document to object tests."""

    def test_round_trip(self, codec, models):
        person = models.Person(
            "Grace", 45, models.Level.SENIOR, models.Address("New York", "5th"), ["navy"]
        )

        assert codec.from_document(codec.to_document(person)) == person

    def test_partial_document(self, codec, models):
        """Test projected documents decode with defaults for missing fields."""
        person_id = uuid.uuid4()
        person = codec.from_document({"_id": person_id, "class": "Person", "name": "Ada"})

        assert person == models.Person("Ada", id=person_id)

    def test_missing_required_field(self, codec):
        with pytest.raises(SerializationError, match="required field 'name'"):
            codec.from_document({"class": "Person", "age": 3})

    def test_partial_document_without_required_field(self, codec, models):
        """Test required fields left out of a projection decode as None."""
        person = codec.from_document({"class": "Person", "age": 3}, partial=True)

        assert isinstance(person, models.Person)
        assert person.name is None
        assert person.age == 3

    def test_missing_discriminator(self, codec):
        with pytest.raises(SerializationError):
            codec.from_document({"name": "Ada"})

    def test_invalid_enum_value(self, codec):
        with pytest.raises(SerializationError):
            codec.from_document({"class": "Person", "name": "Ada", "level": "boss"})

    def test_string_uuid_coerced(self, codec):
        """Test ids stored as strings come back as UUIDs."""
        person_id = uuid.uuid4()
        person = codec.from_document(
            {"_id": str(person_id), "class": "LegacyPerson", "name": "Ada"}
        )

        assert person.id == person_id

    def test_collection_types(self):
        """Test tuples and sets are rebuilt from stored lists."""
        codec = DataclassCodec()

        @codec.register
        @dataclass
        class Bag(Identifiable):
            pair: Tuple[int, int] = (0, 0)
            labels: Set[str] = frozenset()

        bag = Bag(pair=(1, 2), labels={"a", "b"})
        restored = codec.from_document(codec.to_document(bag))

        assert restored.pair == (1, 2)
        assert restored.labels == {"a", "b"}
