import pytest

from pixiugate.plugins import (
    Plugin,
    PluginConfigError,
    PluginsConfig,
    PluginsGroup,
    PluginsInUse,
    Resource,
    get_api_filter_funcs_with_api_url,
    init_api_url_with_filter_chain,
    init_plugins_group,
)


def _make_factory(func):
    class _Filter:
        def do(self):
            return func

    return _Filter


def _noop_a(ctx):
    pass


def _noop_b(ctx):
    pass


def test_unknown_url_gives_empty_chain():
    chain = get_api_filter_funcs_with_api_url("/")
    assert len(chain.pre) == 0
    assert len(chain.post) == 0


def test_group_plugins_attach_to_resource():
    groups = [PluginsGroup("grp-one", [Plugin(name="p-one", external_lookup_name="NewOne")])]
    init_plugins_group(groups, {"NewOne": _make_factory(_noop_a)})
    resources = [
        Resource(
            path="/one",
            plugins=PluginsConfig(pre_plugins=PluginsInUse(group_names=["grp-one"])),
        )
    ]
    init_api_url_with_filter_chain(resources)
    chain = get_api_filter_funcs_with_api_url("/one")
    assert chain.pre == [_noop_a]
    assert chain.post == []


def test_plugin_names_are_found_in_any_group():
    groups = [
        PluginsGroup("grp-two", [Plugin(name="p-two-a", external_lookup_name="A2")]),
        PluginsGroup("grp-three", [Plugin(name="p-two-b", external_lookup_name="B2")]),
    ]
    init_plugins_group(groups, {"A2": _make_factory(_noop_a), "B2": _make_factory(_noop_b)})
    resources = [
        Resource(
            path="/two",
            plugins=PluginsConfig(post_plugins=PluginsInUse(plugin_names=["p-two-b"])),
        )
    ]
    init_api_url_with_filter_chain(resources)
    chain = get_api_filter_funcs_with_api_url("/two")
    assert chain.post == [_noop_b]
    assert chain.pre == []


def test_children_inherit_and_join_paths():
    groups = [PluginsGroup("grp-four", [Plugin(name="p-four", external_lookup_name="F4")])]
    init_plugins_group(groups, {"F4": _make_factory(_noop_a)})
    resources = [
        Resource(
            path="/four",
            plugins=PluginsConfig(pre_plugins=PluginsInUse(group_names=["grp-four"])),
            resources=[Resource(path="/child"), Resource(path="nochild")],
        )
    ]
    init_api_url_with_filter_chain(resources)
    parent = get_api_filter_funcs_with_api_url("/four")
    child = get_api_filter_funcs_with_api_url("/four/child")
    assert child == parent
    assert child.pre == [_noop_a]
    assert get_api_filter_funcs_with_api_url("/fournochild").pre == []


def test_missing_factory_raises():
    groups = [PluginsGroup("grp-five", [Plugin(name="p-five", external_lookup_name="Missing")])]
    with pytest.raises(PluginConfigError):
        init_plugins_group(groups, {"Other": _make_factory(_noop_a)})


def test_no_factories_loads_nothing():
    groups = [PluginsGroup("grp-six", [Plugin(name="p-six", external_lookup_name="S6")])]
    init_plugins_group(groups, None)
    resources = [
        Resource(
            path="/six",
            plugins=PluginsConfig(pre_plugins=PluginsInUse(group_names=["grp-six"])),
        )
    ]
    init_api_url_with_filter_chain(resources)
    chain = get_api_filter_funcs_with_api_url("/six")
    assert chain.pre == []
    assert chain.post == []