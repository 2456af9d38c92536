"""
Unit tests for QueryDescriptor and QueryCompiler.
"""

import logging
import pytest

from config.settings import SchemaConfig
from docquery.core.exceptions import QueryError, ValidationError
from docquery.query.compiler import FilterCompiler
from docquery.query.descriptor import QueryDescriptor
from docquery.query.filters import Field
from docquery.query.planner import ExecutableQuery, QueryCompiler
from docquery.utils.logging import LogContext, get_logger


AGE = Field("age", int)
NAME = Field("name", str)


@pytest.fixture
def query_compiler(codec):
    return QueryCompiler(FilterCompiler(codec))


class TestQueryDescriptor:
    """Descriptor building tests."""

    def test_defaults(self):
        """Test an empty descriptor."""
        d = QueryDescriptor()

        assert d.filters == []
        assert d.sort_specs == []
        assert d.projected_fields == ()
        assert d.skip_count == 0
        assert d.limit_count == 0

    def test_builders_return_new_descriptors(self):
        """Test descriptors are never modified in place."""
        base = QueryDescriptor()
        filtered = base.filter(AGE.gt(1))

        assert base.filters == []
        assert filtered.filters == [AGE.gt(1)]

    def test_filters_in_insertion_order(self):
        """Test filters are stored newest first but read in order."""
        first, second, third = AGE.gt(1), NAME.eq("x"), AGE.lt(9)
        d = QueryDescriptor().filter(first, second).filter(third)

        assert d._filters == (third, second, first)
        assert d.filters == [first, second, third]

    def test_sort_specs_in_insertion_order(self):
        """Test the first sort spec added stays the primary key."""
        d = QueryDescriptor().sort(AGE.descending()).sort(NAME.ascending())

        assert d._sorts[0] == NAME.ascending()
        assert d.sort_specs == [AGE.descending(), NAME.ascending()]

    def test_fields_deduplicated(self):
        """Test projecting a field twice keeps one entry."""
        d = QueryDescriptor().fields(NAME, AGE).fields(NAME)

        assert [f.name for f in d.projected_fields] == ["name", "age"]

    def test_skip_and_limit(self):
        d = QueryDescriptor().skip(5).limit(10)

        assert (d.skip_count, d.limit_count) == (5, 10)

    @pytest.mark.parametrize("build", [
        lambda d: d.skip(-1),
        lambda d: d.limit(-1),
        lambda d: d.limit(True),
    ])
    def test_invalid_pagination(self, build):
        """Test negative or non-integer skip and limit are rejected."""
        with pytest.raises(ValidationError):
            build(QueryDescriptor())

    def test_invalid_arguments(self):
        """Test builders check argument types."""
        d = QueryDescriptor()

        with pytest.raises(ValidationError):
            d.filter({"age": 3})
        with pytest.raises(ValidationError):
            d.sort(AGE)
        with pytest.raises(ValidationError):
            d.fields("name")

    def test_unbound_execution(self):
        """Test running an unbound descriptor fails."""
        with pytest.raises(QueryError, match="not bound"):
            list(QueryDescriptor())

        with pytest.raises(QueryError):
            QueryDescriptor().count()

    def test_equality_ignores_collection(self, people):
        """Test bound and unbound descriptors with the same content are equal."""
        assert QueryDescriptor().filter(AGE.gt(1)) == people.query().filter(AGE.gt(1))

    def test_to_dict(self):
        d = QueryDescriptor().filter(AGE.gt(1)).sort(AGE.descending()).fields(NAME).limit(3)

        assert d.to_dict() == {
            "filters": [AGE.gt(1).to_dict()],
            "sort": [{"field": "age", "direction": -1}],
            "fields": ["name"],
            "skip": 0,
            "limit": 3,
        }


class TestQueryCompiler:
    """Descriptor compilation tests."""

    def test_implicit_and(self, query_compiler):
        """Test filters are combined with AND."""
        query = query_compiler.compile(
            QueryDescriptor().filter(AGE.gte(18), NAME.regex("^A"))
        )

        assert set(query.native_query) == {"age", "name"}
        assert query.native_query["age"] == {"$gte": 18}

    def test_no_filters(self, query_compiler):
        """Test an empty descriptor matches everything."""
        query = query_compiler.compile(QueryDescriptor())

        assert query == ExecutableQuery()

    def test_projection_includes_class(self, query_compiler):
        """Test projections always carry the class discriminator."""
        query = query_compiler.compile(QueryDescriptor().fields(NAME))

        assert query.projection == {"name": True, "class": True}

    def test_projection_uses_schema(self, codec):
        """Test the discriminator name comes from the schema."""
        compiler = QueryCompiler(FilterCompiler(codec), schema=SchemaConfig(class_field="kind"))
        query = compiler.compile(QueryDescriptor().fields(NAME))

        assert query.projection == {"name": True, "kind": True}

    def test_sort_order(self, query_compiler):
        """Test sort keys keep their precedence."""
        query = query_compiler.compile(
            QueryDescriptor().sort(AGE.descending()).sort(NAME.ascending())
        )

        assert query.sort == [("age", -1), ("name", 1)]

    def test_pagination(self, query_compiler):
        query = query_compiler.compile(QueryDescriptor().skip(2).limit(1))

        assert (query.skip, query.limit) == (2, 1)

    def test_logs_query(self, query_compiler, caplog):
        """Test the compiled query and sort are logged at debug level."""
        with LogContext(get_logger(), "DEBUG"), caplog.at_level(logging.DEBUG, logger="docquery"):
            query_compiler.compile(
                QueryDescriptor().filter(AGE.gt(1)).sort(AGE.ascending()).skip(2).limit(5)
            )

        messages = [r.getMessage() for r in caplog.records]
        assert any(
            m.startswith("Executing Query (skip: 2, limit: 5)") and "$gt" in m
            for m in messages
        )
        assert "Sorting: [('age', 1)]" in messages

    def test_logging_disabled(self, codec, caplog):
        """Test query logging can be switched off."""
        compiler = QueryCompiler(FilterCompiler(codec), log_queries=False)

        with caplog.at_level(logging.DEBUG, logger="docquery"):
            compiler.compile(QueryDescriptor().filter(AGE.gt(1)))

        assert not any("Executing Query" in r.getMessage() for r in caplog.records)

    def test_explain(self, query_compiler):
        """Test explain output."""
        text = query_compiler.compile(QueryDescriptor().limit(3)).explain()

        assert "Limit: 3" in text
        assert "Sort: natural order" in text
        assert "Projection: all fields" in text
