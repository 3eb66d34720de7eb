import pytest

from connectkit.errors import UnknownEntityError, UnresolvedPlaceholderError
from connectkit.models import HttpMethod
from connectkit.resolver.endpoints import EndpointTable, placeholders, resolve
from connectkit.resolver.filters import QueryMap


@pytest.fixture
def table():
    return (
        EndpointTable.builder()
        .add("things", "things", root="data")
        .add("shadows", "things/{thing_name}/shadow", root="data")
        .add("telemetry", "topics/{topic}", root="data", description="Topic messages")
        .alias("devices", "things")
        .build()
    )


class TestResolve:
    def test_template_without_placeholders_is_unchanged(self):
        assert resolve("things", QueryMap()) == "things"

    def test_placeholder_is_substituted(self):
        assert resolve("things/{thing_name}/shadow", {"thing_name": "sensor-1"}) == "things/sensor-1/shadow"

    def test_values_are_url_escaped(self):
        assert resolve("topics/{topic}", {"topic": "a b/c"}) == "topics/a%20b%2Fc"

    def test_lookup_is_case_insensitive(self):
        assert resolve("things/{thing_name}", QueryMap({"THING_NAME": "x"})) == "things/x"

    def test_every_occurrence_is_replaced(self):
        assert resolve("{a}/{a}", {"a": "1"}) == "1/1"

    def test_unresolved_placeholder_raises(self):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            resolve("things/{thing_name}/jobs/{job_id}", {"thing_name": "s1"})
        assert exc_info.value.token == "job_id"
        assert exc_info.value.tokens == ["job_id"]

    def test_resolving_twice_is_a_no_op(self):
        query = {"thing_name": "lamp1"}
        once = resolve("things/{thing_name}/shadow", query)
        assert resolve(once, query) == once == "things/lamp1/shadow"

    def test_query_is_not_mutated(self):
        query = QueryMap({"thing_name": "lamp1", "page": "2"})
        resolve("things/{thing_name}", query)
        assert query == {"thing_name": "lamp1", "page": "2"}

    def test_unresolved_topic_is_named(self):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            resolve("topics/{topic}", {})
        assert exc_info.value.token == "topic"

    def test_placeholders_in_order_without_duplicates(self):
        assert placeholders("{b}/{a}/{b}") == ["b", "a"]


class TestEndpointTable:
    def test_lookup_is_case_insensitive(self, table):
        assert table.lookup("THINGS").endpoint == "things"

    def test_unknown_entity_lists_available(self, table):
        with pytest.raises(UnknownEntityError) as exc_info:
            table.lookup("widgets", connector_name="aws_iot")
        assert exc_info.value.available == ["devices", "shadows", "telemetry", "things"]
        assert exc_info.value.connector_name == "aws_iot"

    def test_placeholders_are_implicitly_required(self, table):
        assert table["shadows"].required == frozenset({"thing_name"})

    def test_alias_shares_endpoint(self, table):
        assert table["devices"].endpoint == "things"
        assert table["devices"].name == "devices"

    def test_describe_lists_entities(self, table):
        info = {e.name: e for e in table.describe()}
        assert info["telemetry"].required_filters == ["topic"]
        assert info["telemetry"].description == "Topic messages"

    def test_table_is_read_only(self, table):
        with pytest.raises(TypeError):
            table._entries["new"] = table["things"]

    def test_from_mapping(self):
        table = EndpointTable.from_mapping({
            "pets": {"endpoint": "pets", "root": "data.items"},
            "pet": {"endpoint": "pets/{pet_id}", "method": "delete"},
        })
        assert table["pets"].root == "data.items"
        assert table["pet"].method == HttpMethod.DELETE
        assert table["pet"].required == frozenset({"pet_id"})

    def test_blank_root_means_whole_document(self):
        table = EndpointTable.builder().add("auth", "auth.test", root="  ").build()
        assert table["auth"].root is None
