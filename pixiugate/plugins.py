"""Per-URL pre and post filter chains built from configured plugin groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from . import log
from .context import FilterFunc

PATH_SLASH = "/"

PluginFactory = Callable[[], Any]


class PluginConfigError(Exception):
    """Raised when a configured plugin cannot be loaded."""


@dataclass
class Plugin:
    """A plugin and the name of the factory that builds it."""

    name: str = ""
    version: str = ""
    priority: int = 0
    external_lookup_name: str = ""


@dataclass
class PluginsGroup:
    group_name: str = ""
    plugins: list[Plugin] = field(default_factory=list)


@dataclass
class PluginsInUse:
    """Plugins picked by group name or by plugin name."""

    group_names: list[str] = field(default_factory=list)
    plugin_names: list[str] = field(default_factory=list)


@dataclass
class PluginsConfig:
    pre_plugins: PluginsInUse = field(default_factory=PluginsInUse)
    post_plugins: PluginsInUse = field(default_factory=PluginsInUse)


@dataclass
class Resource:
    """An API path with its plugins and nested resources."""

    path: str = ""
    plugins: PluginsConfig = field(default_factory=PluginsConfig)
    resources: list["Resource"] = field(default_factory=list)


@dataclass
class PluginFilterChain:
    """Filters run before and after the remote call."""

    pre: list[FilterFunc] = field(default_factory=list)
    post: list[FilterFunc] = field(default_factory=list)


@dataclass
class PluginWithFunc:
    name: str = ""
    priority: int = 0
    fn: FilterFunc | None = None


_api_url_with_plugins: dict[str, PluginFilterChain] = {}
_group_with_plugins: dict[str, dict[str, PluginWithFunc]] = {}


def _load_external_plugin(plugin: Plugin, factories: Mapping[str, PluginFactory]) -> FilterFunc:
    log.infof(
        "loadExternalPlugin name is :%s,version:%s,Priority:%d",
        plugin.name,
        plugin.version,
        plugin.priority,
    )
    factory = factories.get(plugin.external_lookup_name)
    if factory is None:
        raise PluginConfigError(
            f"plugin: symbol {plugin.external_lookup_name} not found for {plugin.name}"
        )
    func = factory().do()
    log.infof("loadExternalPlugin %s success", plugin.name)
    return func


def init_plugins_group(
    groups: Iterable[PluginsGroup], factories: Mapping[str, PluginFactory] | None
) -> None:
    """Build every plugin of every group from the factories, keyed by lookup name."""
    groups = list(groups or [])
    if not factories or not groups:
        return
    for group in groups:
        _group_with_plugins[group.group_name] = {
            plugin.name: PluginWithFunc(
                plugin.name, plugin.priority, _load_external_plugin(plugin, factories)
            )
            for plugin in group.plugins
        }


def _filter_funcs_for(in_use: PluginsInUse | None) -> list[FilterFunc]:
    if in_use is None or (not in_use.group_names and not in_use.plugin_names):
        return []
    collected: dict[str, FilterFunc | None] = {}
    for group_name in in_use.group_names:
        for pwf in _group_with_plugins.get(group_name, {}).values():
            collected[pwf.name] = pwf.fn
    for group in _group_with_plugins.values():
        for name in in_use.plugin_names:
            pwf = group.get(name)
            if pwf is not None:
                collected[pwf.name] = pwf.fn
    return [fn for fn in collected.values() if fn is not None]


def _filter_chains(config: PluginsConfig) -> PluginFilterChain | None:
    pre = _filter_funcs_for(config.pre_plugins)
    post = _filter_funcs_for(config.post_plugins)
    if not pre and not post:
        return None
    return PluginFilterChain(pre, post)


def _pair_url_with_filter_chain(
    parent_path: str, resources: list[Resource], parent_chain: PluginFilterChain | None
) -> None:
    if not resources:
        return
    group_path = "" if parent_path == PATH_SLASH else parent_path
    for resource in resources:
        full_path = group_path + resource.path
        if not resource.path.startswith(PATH_SLASH):
            continue
        current = _filter_chains(resource.plugins)
        if current is not None:
            _api_url_with_plugins[full_path] = current
            parent_chain = current
        elif parent_chain is not None:
            _api_url_with_plugins[full_path] = parent_chain
        if resource.resources:
            _pair_url_with_filter_chain(resource.path, resource.resources, parent_chain)


def init_api_url_with_filter_chain(resources: Iterable[Resource]) -> None:
    """Map each resource path to its filter chain; call after init_plugins_group."""
    _pair_url_with_filter_chain("", list(resources or []), None)


def get_api_filter_funcs_with_api_url(url: str) -> PluginFilterChain:
    """The filter chain for a URL, or an empty one."""
    chain = _api_url_with_plugins.get(url)
    if chain is not None:
        log.debugf("GetExternalPlugins is:%v", chain)
        return chain
    return PluginFilterChain()