import re

from jira_timeline.core.jql import QueryBinder, bind_jql, build_jql, date_range_jql, is_jql_bounded


def test_bind_empty_query():
    assert bind_jql("") == "created >= -90d"
    assert bind_jql(None) == "created >= -90d"


def test_bind_unbounded_query_wraps_original():
    assert bind_jql("assignee = bob") == "created >= -90d AND (assignee = bob)"


def test_bind_is_idempotent():
    once = bind_jql("assignee = bob")
    assert bind_jql(once) == once
    assert bind_jql("project = OBS AND status = Done") == "project = OBS AND status = Done"


def test_bounding_terms_case_insensitive():
    assert is_jql_bounded("PROJECT IN (A, B)")
    assert is_jql_bounded("Updated >= -1w")
    assert is_jql_bounded("issuekey in (A-1, A-2)")
    assert not is_jql_bounded("status = Done")


def test_custom_field_bound_is_a_known_false_negative():
    jql = "cf[10010] = 'abc'"
    assert not is_jql_bounded(jql)
    assert bind_jql(jql) == "created >= -90d AND (cf[10010] = 'abc')"


def test_order_by_kept_outside_parentheses():
    assert bind_jql("status = Done ORDER BY created DESC") == (
        "created >= -90d AND (status = Done) ORDER BY created DESC"
    )
    assert bind_jql("ORDER BY updated") == "created >= -90d ORDER BY updated"


def test_binder_is_extensible():
    binder = QueryBinder().extend(re.compile(r"cf\[\d+\]\s*="), "sprint =")
    assert binder.is_bounded("cf[10010] = 'abc'")
    assert binder.is_bounded("Sprint = 42")
    custom = QueryBinder(("team =",), default_bound="updated >= -7d")
    assert custom.bind("status = Open") == "updated >= -7d AND (status = Open)"


def test_build_jql_combines_filters():
    jql = build_jql(project="PROJ", start_date="-7d", jql="assignee = bob")
    assert jql == "project = PROJ AND created >= '-7d' AND (assignee = bob) ORDER BY created DESC"
    assert build_jql(order_by=None) == ""
    assert date_range_jql("2024-01-01", "2024-01-31", "updated") == (
        "updated >= '2024-01-01' AND updated <= '2024-01-31' ORDER BY updated DESC"
    )


def test_order_by_inside_quoted_text_is_not_split():
    assert bind_jql('summary ~ "sort order by date"') == 'created >= -90d AND (summary ~ "sort order by date")'
    assert bind_jql("text ~ 'order by x' ORDER BY rank") == "created >= -90d AND (text ~ 'order by x') ORDER BY rank"
