"""Generic block lifecycle: copy, merge, printable form and export.

The properties are checked on real blocks (Consul connection, services
condition, task) rather than on toy dataclasses so the metadata declared on
each block is exercised too.
"""

from __future__ import annotations

from datetime import timedelta

from hypothesis import given
from hypothesis import strategies as st

from nia_config.domain.block import REDACTED, Kind, copy_block, merge_blocks, settings_of, validate_block
from nia_config.domain.buffer_period import BufferPeriodConfig
from nia_config.domain.conditions import CatalogServicesConditionConfig, ServicesConditionConfig
from nia_config.domain.consul import AuthConfig, ConsulConfig
from nia_config.domain.provider import TerraformProviderConfig
from nia_config.domain.task import TaskConfig

OPTIONAL_TEXT = st.one_of(st.none(), st.text(max_size=6))
OPTIONAL_NAMES = st.one_of(st.none(), st.lists(st.text(min_size=1, max_size=4), max_size=4))
OPTIONAL_META = st.one_of(st.none(), st.dictionaries(st.text(min_size=1, max_size=4), st.text(max_size=4), max_size=3))

SERVICES_CONDITIONS = st.builds(
    ServicesConditionConfig,
    regexp=OPTIONAL_TEXT,
    names=OPTIONAL_NAMES,
    datacenter=OPTIONAL_TEXT,
    namespace=OPTIONAL_TEXT,
    filter=OPTIONAL_TEXT,
    cts_user_defined_meta=OPTIONAL_META,
    use_as_module_input=st.one_of(st.none(), st.booleans()),
)


def test_settings_metadata_exposes_keys_and_kinds() -> None:
    keys = {item.name: (item.key, item.kind) for item in settings_of(TaskConfig)}
    assert keys["module_inputs"] == ("module_input", Kind.MODULE_INPUTS)
    assert keys["condition"] == ("condition", Kind.CONDITION)
    assert keys["buffer_period"] == ("buffer_period", Kind.BLOCK)


def test_merge_prefers_configured_fields_of_the_right() -> None:
    left = ConsulConfig(address="a:8500", kv_path="left/", auth=AuthConfig(username="alice"))
    right = ConsulConfig(address="b:8500", auth=AuthConfig(password="pw"))
    merged = left.merge(right)
    assert merged.address == "b:8500"
    assert merged.kv_path == "left/"
    assert merged.auth is not None
    assert (merged.auth.username, merged.auth.password) == ("alice", "pw")


def test_explicit_false_overrides_true() -> None:
    merged = BufferPeriodConfig(enabled=True).merge(BufferPeriodConfig(enabled=False))
    assert merged.enabled is False


def test_merge_with_different_variant_replaces_left() -> None:
    left = ServicesConditionConfig(names=["api"])
    right = CatalogServicesConditionConfig(regexp="^web")
    merged = merge_blocks(left, right)
    assert isinstance(merged, CatalogServicesConditionConfig)
    assert merged.regexp == "^web"


def test_none_aware_helpers() -> None:
    assert copy_block(None) is None
    assert merge_blocks(None, None) is None
    validate_block(None)
    only_right = merge_blocks(None, BufferPeriodConfig(min=timedelta(seconds=1)))
    assert only_right is not None and only_right.min == timedelta(seconds=1)


def test_describe_redacts_sensitive_fields() -> None:
    consul = ConsulConfig(token="s3cr3t", auth=AuthConfig(username="alice", password="hunter2"))
    text = consul.describe()
    assert "s3cr3t" not in text
    assert "hunter2" not in text
    assert "alice" in text
    assert repr(consul) == text


def test_describe_keeps_empty_sensitive_value_visible() -> None:
    assert "token=''" in ConsulConfig(token="").describe()


def test_as_dict_uses_configuration_keys_and_redacts() -> None:
    task = TaskConfig(
        name="web",
        module_inputs=[ServicesConditionConfig(names=["api"])],
        condition=CatalogServicesConditionConfig(regexp=".*"),
        buffer_period=BufferPeriodConfig(min=timedelta(seconds=90)),
    )
    exported = task.as_dict()
    assert exported["condition"]["catalog-services"]["regexp"] == ".*"
    assert exported["module_input"] == [{"services": exported["module_input"][0]["services"]}]
    assert exported["buffer_period"]["min"] == "1m30s"
    assert ConsulConfig(token="abc").as_dict()["token"] == REDACTED
    assert ConsulConfig(token="abc").as_dict(redact=False)["token"] == "abc"


def test_provider_bodies_are_never_printed() -> None:
    provider = TerraformProviderConfig({"aws": {"access_key": "AKIA", "secret_key": "s3cr3t"}})
    assert "s3cr3t" not in provider.describe()
    assert provider.as_dict() == {"aws": REDACTED}
    assert provider.as_dict(redact=False)["aws"]["secret_key"] == "s3cr3t"


@given(SERVICES_CONDITIONS)
def test_merge_with_unset_block_is_identity(condition: ServicesConditionConfig) -> None:
    assert condition.merge(ServicesConditionConfig()) == condition
    assert ServicesConditionConfig().merge(condition) == condition


@given(SERVICES_CONDITIONS, SERVICES_CONDITIONS)
def test_merge_never_aliases_inputs(left: ServicesConditionConfig, right: ServicesConditionConfig) -> None:
    left_before, right_before = left.copy(), right.copy()
    merged = left.merge(right)
    if merged.names is not None:
        merged.names.append("mutated")
    if merged.cts_user_defined_meta is not None:
        merged.cts_user_defined_meta["mutated"] = "yes"
    assert left == left_before
    assert right == right_before


@given(SERVICES_CONDITIONS)
def test_copy_is_deeply_independent(condition: ServicesConditionConfig) -> None:
    clone = condition.copy()
    assert clone == condition
    if clone.names is not None:
        clone.names.append("mutated")
        assert condition.names != clone.names
    if clone.cts_user_defined_meta is not None:
        clone.cts_user_defined_meta["mutated"] = "yes"
        assert "mutated" not in (condition.cts_user_defined_meta or {})


@given(SERVICES_CONDITIONS)
def test_finalize_twice_is_a_no_op(condition: ServicesConditionConfig) -> None:
    condition.finalize()
    once = condition.copy()
    condition.finalize()
    assert condition == once


def test_merge_keeps_repeated_names_on_the_left() -> None:
    merged = ServicesConditionConfig(names=["api", "api"]).merge(ServicesConditionConfig())
    assert merged.names == ["api", "api"]
    merged = ServicesConditionConfig(names=["api", "api"]).merge(ServicesConditionConfig(names=["web", "api"]))
    assert merged.names == ["api", "api", "web"]


def test_task_providers_merge_without_duplicates() -> None:
    left = TaskConfig(name="web", providers=["aws", "local"])
    right = TaskConfig(providers=["local", "null", "null"])
    assert left.merge(right).providers == ["aws", "local", "null"]


def test_provider_merge_keeps_both_sides() -> None:
    left = TerraformProviderConfig({"aws": {"region": "us-east-1"}})
    right = TerraformProviderConfig({"aws": {"region": "eu-west-1"}})
    assert left.merge(right).values == {"aws": {"region": "eu-west-1"}}
    assert left.merge(None).values == {"aws": {"region": "us-east-1"}}
    assert merge_blocks(None, right) == right
