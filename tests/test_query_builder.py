"""
Scope/filter builder: immutability, determinism, parameter binding and
compilation against prefixed tables. No database needed.
"""

from datetime import date, datetime

import pytest

from umami_models import EventData, User, Website, WebsiteEvent
from umami_models.models.tables import build_schema
from umami_models.query import WebsiteEventQuery, WebsiteQuery, query_for
from umami_models.query.builder import BETWEEN, EQ, IS_NULL, NOT_NULL, Ordering, Predicate
from umami_models.query.compiler import compile_count, compile_group_count, compile_select

SCHEMA = build_schema("")


def compiled(query, prefix: str = ""):
    stmt = compile_select(query, build_schema(prefix).table(query.entity))
    return stmt.compile()


class TestImmutableChaining:
    def test_each_scope_returns_a_new_query(self):
        base = query_for(WebsiteEvent)
        scoped = base.by_website("7")
        assert base.predicates == ()
        assert scoped.predicates == (Predicate("website_id", EQ, ("7",)),)
        assert scoped is not base

    def test_branches_from_a_shared_base_do_not_interfere(self):
        base = query_for(WebsiteEvent).by_website("7")
        views = base.page_views()
        custom = base.custom_events()
        assert views.predicates[-1] == Predicate("event_type", EQ, (1,))
        assert custom.predicates[-1] == Predicate("event_type", EQ, (2,))
        assert len(base.predicates) == 1

    def test_query_type_carries_entity_catalog(self):
        assert isinstance(query_for(WebsiteEvent), WebsiteEventQuery)
        assert query_for(Website).entity is Website
        assert not hasattr(query_for(User), "page_views")

    def test_same_filter_twice_keeps_both_predicates(self):
        query = query_for(Website).by_website("1").by_website("2")
        assert query.predicates == (
            Predicate("website_id", EQ, ("1",)),
            Predicate("website_id", EQ, ("2",)),
        )


class TestScopeSemantics:
    def test_active_filters_unset_deleted_at(self):
        assert query_for(Website).active().predicates == (Predicate("deleted_at", IS_NULL),)

    def test_public_shares_requires_share_id(self):
        assert query_for(Website).public_shares().predicates == (Predicate("share_id", NOT_NULL),)

    def test_last_ordering_wins(self):
        query = query_for(WebsiteEvent).recent()._order("url_path").recent()
        assert query.ordering == Ordering("created_at", descending=True)

    def test_typed_data_enum_scopes(self):
        q = query_for(EventData)
        assert q.string_type().predicates[0].values == (1,)
        assert q.number_type().predicates[0].values == (2,)
        assert q.date_type().predicates[0].values == (3,)

    def test_team_user_role_scopes(self):
        from umami_models import TeamUser

        q = query_for(TeamUser)
        assert q.admins().predicates == (Predicate("role", EQ, ("admin",)),)
        assert q.members().predicates == (Predicate("role", EQ, ("member",)),)

    def test_date_bounds_widen_to_whole_days(self):
        query = query_for(WebsiteEvent).by_date_range(date(2026, 9, 19), date(2026, 10, 19))
        predicate = query.predicates[0]
        assert predicate.operator == BETWEEN
        start, end = predicate.values
        assert start == datetime(2026, 9, 19, 0, 0)
        assert end == datetime(2026, 10, 19, 23, 59, 59, 999999)

    def test_reversed_date_range_is_not_an_error(self):
        query = query_for(WebsiteEvent).by_date_range(datetime(2026, 10, 19), datetime(2026, 9, 19))
        assert query.predicates[0].operator == BETWEEN

    def test_equality_with_none_becomes_is_null(self):
        assert query_for(Website).by_team(None).predicates == (Predicate("team_id", IS_NULL),)

    def test_unknown_attribute_is_rejected(self):
        with pytest.raises(AttributeError):
            query_for(Website)._eq("nope", 1)

    @pytest.mark.parametrize("bad", [-1, 1.5, "3", True])
    def test_limit_and_offset_validate_input(self, bad):
        with pytest.raises(ValueError):
            query_for(Website).limit(bad)
        with pytest.raises(ValueError):
            query_for(Website).offset(bad)


class TestDeterminism:
    def chain(self):
        return (
            query_for(WebsiteEvent)
            .by_website("7")
            .page_views()
            .by_date_range(datetime(2026, 9, 19), datetime(2026, 10, 19))
            .recent()
            .limit(10)
        )

    def test_equal_chains_are_equal_values(self):
        assert self.chain() == self.chain()
        assert hash(self.chain().predicates) == hash(self.chain().predicates)
        assert self.chain().describe() == self.chain().describe()

    def test_compiling_twice_yields_identical_sql_and_params(self):
        first, second = compiled(self.chain()), compiled(self.chain())
        assert str(first) == str(second)
        assert first.params == second.params

    def test_different_catalogs_never_compare_equal(self):
        assert query_for(Website) != query_for(User)


class TestCompilation:
    def test_values_are_bound_never_interpolated(self):
        hostile = "x' OR '1'='1"
        stmt = compiled(query_for(WebsiteEvent).by_url_path(hostile))
        assert hostile not in str(stmt)
        assert hostile in stmt.params.values()

    def test_where_order_and_pagination(self):
        sql = str(compiled(query_for(WebsiteEvent).by_website("7").page_views().recent().limit(5).offset(10)))
        assert "WHERE website_event.website_id = :website_id_1 AND website_event.event_type = :event_type_1" in sql
        assert "ORDER BY website_event.created_at DESC" in sql
        assert "LIMIT :param_1 OFFSET :param_2" in sql

    def test_between_is_inclusive(self):
        sql = str(compiled(query_for(WebsiteEvent).by_date_range(datetime(2026, 1, 1), datetime(2026, 2, 1))))
        assert "website_event.created_at BETWEEN :created_at_1 AND :created_at_2" in sql

    def test_prefix_reaches_compiled_sql(self):
        sql = str(compiled(query_for(Website).active(), prefix="umami_"))
        assert "FROM umami_website" in sql
        assert "umami_website.deleted_at IS NULL" in sql

    def test_renamed_column_compiles_to_storage_name(self):
        stmt = compile_select(query_for(Website)._eq("creator_id", "u-1"), SCHEMA.table(Website))
        sql = str(stmt.compile())
        assert "website.created_by = :" in sql
        assert "creator_id" not in sql.split("WHERE")[1].split("=")[0]

    def test_count_over_paginated_query_uses_subquery(self):
        table = SCHEMA.table(Website)
        plain = str(compile_count(query_for(Website).active(), table).compile())
        paged = str(compile_count(query_for(Website).active().limit(5), table).compile())
        assert "count(*)" in plain and "anon" not in plain
        assert "anon_1" in paged

    def test_group_count_orders_by_count_desc(self):
        table = SCHEMA.table(WebsiteEvent)
        stmt = compile_group_count(query_for(WebsiteEvent).page_views().limit(5), table, "url_path")
        sql = str(stmt.compile())
        assert "GROUP BY website_event.url_path" in sql
        assert "ORDER BY count_all DESC, website_event.url_path ASC" in sql

    def test_website_query_is_the_website_catalog(self):
        assert isinstance(query_for(Website), WebsiteQuery)
