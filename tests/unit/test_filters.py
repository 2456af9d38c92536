"""
Unit tests for the filter algebra.
"""

import re
import pytest

from docquery.core.exceptions import ValidationError
from docquery.query.filters import (
    Field,
    FieldFilter,
    FilterKind,
    Operator,
    SortDirection,
    SortSpec,
    SubFilter,
    and_,
    or_,
    filter_from_dict,
)


class TestField:
    """Field definition tests."""

    def test_create_field(self):
        """Test creating a typed field."""
        age = Field("age", int)

        assert age.name == "age"
        assert age.type is int

    def test_untyped_field_accepts_anything(self):
        """Test default object type."""
        f = Field("anything")

        assert f.accepts(1)
        assert f.accepts("text")
        assert f.accepts([1, 2])

    def test_float_field_accepts_int(self):
        """Test ints are compatible with float fields."""
        price = Field("price", float)

        assert price.accepts(3)
        assert not price.accepts(True)

    def test_int_field_rejects_bool(self):
        """Test bools are not compatible with int fields."""
        age = Field("age", int)

        assert age.accepts(3)
        assert not age.accepts(True)
        with pytest.raises(ValidationError):
            age.eq(False)

    @pytest.mark.parametrize("name", ["", "$where", "a..b", "bad\x00name"])
    def test_invalid_names(self, name):
        """Test rejection of invalid field names."""
        with pytest.raises(ValidationError):
            Field(name)

    def test_dotted_name_allowed(self):
        """Test dotted paths are valid names."""
        assert Field("addr.city").name == "addr.city"

    def test_fields_are_immutable(self):
        """Test fields cannot be changed after creation."""
        f = Field("age", int)

        with pytest.raises(AttributeError):
            f.name = "other"

    def test_sort_specs(self):
        """Test building sort specs."""
        age = Field("age", int)

        assert age.ascending() == SortSpec(age, SortDirection.ASCENDING)
        assert age.descending().direction is SortDirection.DESCENDING
        assert int(SortDirection.DESCENDING) == -1


class TestFieldFilter:
    """FieldFilter construction tests."""

    def test_builders(self):
        """Test each builder sets the right operator."""
        age = Field("age", int)

        assert age.eq(1).operator is Operator.EQUAL
        assert age.ne(1).operator is Operator.NOT_EQUAL
        assert age.lt(1).operator is Operator.LESS_THAN
        assert age.gt(1).operator is Operator.GREATER_THAN
        assert age.lte(1).operator is Operator.LESS_OR_EQUAL
        assert age.gte(1).operator is Operator.GREATER_OR_EQUAL
        assert age.exists().operator is Operator.EXISTS
        assert age.in_([1, 2]).operator is Operator.IN
        assert Field("name", str).regex("^A").operator is Operator.REGEX
        assert Field("addr").sub(age.eq(1)).operator is Operator.SUBFILTER

    def test_kind_tag(self):
        """Test the variant tag."""
        assert Field("a").eq(1).kind is FilterKind.FIELD
        assert and_(Field("a").eq(1)).kind is FilterKind.SUB

    def test_incompatible_value_rejected(self):
        """Test value type must match the field type."""
        age = Field("age", int)

        with pytest.raises(ValidationError, match="not compatible"):
            age.eq("thirty")

        with pytest.raises(ValidationError):
            age.gt(None)

    def test_none_allowed_for_equality(self):
        """Test None can be compared for (in)equality."""
        age = Field("age", int)

        assert age.eq(None).value is None
        assert age.ne(None).value is None

    def test_in_normalizes_to_tuple(self):
        """Test in values are stored as a tuple."""
        f = Field("age", int).in_([3, 1, 2])

        assert f.value == (3, 1, 2)

    def test_in_requires_sequence(self):
        """Test in rejects strings and scalars."""
        with pytest.raises(ValidationError):
            Field("name", str).in_("abc")

        with pytest.raises(ValidationError):
            FieldFilter(Field("age", int), Operator.IN, 5)

    def test_in_checks_members(self):
        """Test in members must match the field type."""
        with pytest.raises(ValidationError):
            Field("age", int).in_([1, "two"])

    def test_exists_requires_bool(self):
        """Test exists value type."""
        with pytest.raises(ValidationError):
            FieldFilter(Field("age"), Operator.EXISTS, 1)

    def test_regex_accepts_pattern(self):
        """Test regex takes strings or compiled patterns."""
        pattern = re.compile("^A", re.IGNORECASE)

        assert Field("name", str).regex(pattern).value is pattern

        with pytest.raises(ValidationError):
            Field("name", str).regex(42)

    def test_subfilter_requires_filter(self):
        """Test subfilter value must be a Filter."""
        with pytest.raises(ValidationError):
            Field("addr").sub({"city": "Paris"})

    def test_repr(self):
        """Test readable repr."""
        assert repr(Field("age", int).lt(30)) == "FieldFilter(age lessThan 30)"


class TestComposition:
    """Boolean composition tests."""

    def test_and_operator(self):
        """Test & builds an AND group in order."""
        a, b = Field("a").eq(1), Field("b").eq(2)
        combined = a & b

        assert isinstance(combined, SubFilter)
        assert combined.operator is Operator.AND
        assert combined.filters == (a, b)

    def test_or_operator(self):
        """Test | builds an OR group."""
        a, b = Field("a").eq(1), Field("b").eq(2)

        assert (a | b).operator is Operator.OR

    def test_helpers_keep_order(self):
        """Test and_/or_ keep argument order."""
        filters = [Field(n).eq(i) for i, n in enumerate("abc")]

        assert or_(*filters).filters == tuple(filters)
        assert and_(*filters).filters == tuple(filters)


class TestSerialization:
    """to_dict / filter_from_dict tests."""

    def test_nested_round_trip(self):
        """Test a nested filter survives a dict round trip."""
        original = Field("addr").sub(
            Field("city").eq("Paris") | Field("zip").in_(["75001", "75002"])
        ) & Field("age").gte(18)

        data = original.to_dict()
        restored = filter_from_dict(data)

        assert restored.to_dict() == data
        assert restored.operator is Operator.AND
        assert restored.filters[0].value.operator is Operator.OR

    def test_regex_flags_round_trip(self):
        """Test compiled regex flags survive a dict round trip."""
        original = Field("name").regex(re.compile("^ad", re.IGNORECASE | re.MULTILINE))

        data = original.to_dict()
        restored = filter_from_dict(data)

        assert data["value"] == "^ad"
        assert data["flags"] == "im"
        assert restored.value.flags & re.IGNORECASE
        assert restored.value.match("ADA")
        assert restored.to_dict() == data

    def test_string_regex_has_no_flags(self):
        data = Field("name").regex("^A").to_dict()

        assert "flags" not in data
        assert filter_from_dict(data).value == "^A"

    def test_unknown_regex_flag(self):
        with pytest.raises(ValidationError, match="Invalid regex"):
            filter_from_dict(
                {"type": "field", "field": "a", "operator": "regex", "value": "x", "flags": "q"}
            )

    def test_unknown_operator(self):
        """Test invalid operator names are rejected."""
        with pytest.raises(ValidationError):
            filter_from_dict({"type": "field", "field": "a", "operator": "between", "value": 1})

    def test_unknown_type(self):
        """Test invalid filter types are rejected."""
        with pytest.raises(ValidationError, match="Unknown filter type"):
            filter_from_dict({"type": "not", "operator": "and", "filters": []})
