"""Configuration model: addresses, clusters, listeners and related enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Mapping, TypeVar


class StrategyType(IntEnum):
    """Authority rule strategy."""

    Whitelist = 0
    Blacklist = 1


class LimitType(IntEnum):
    """What an authority rule is matched against."""

    IP = 0
    App = 1


class Status(IntEnum):
    """Component status."""

    Down = 0
    Up = 1
    Unknown = 2


class ProtocolType(IntEnum):
    """Listener protocol."""

    HTTP = 0
    TCP = 1
    UDP = 2


class ApiType(IntEnum):
    """API discovery protocol; member names are the configuration strings."""

    REST = 0
    GRPC = 1
    DUBBO = 2


class DiscoveryType(IntEnum):
    """How the hosts of a cluster are discovered."""

    Static = 0
    StrictDNS = 1
    LogicalDns = 2
    EDS = 3
    OriginalDst = 4


class LbPolicy(IntEnum):
    """Load balance policy."""

    RoundRobin = 0
    IPHash = 1
    WightRobin = 2
    Rand = 3


_E = TypeVar("_E", bound=IntEnum)


def _enum_by_name(enum: type[_E], name: str, default: _E) -> _E:
    if not name:
        return default
    try:
        return enum[name]
    except KeyError:
        raise ValueError(f"unknown {enum.__name__} {name!r}") from None


def _mapping(data: Any) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    return data


@dataclass
class AuthorityRule:
    """A blacklist or whitelist rule."""

    strategy: StrategyType = StrategyType.Whitelist
    limit: LimitType = LimitType.IP
    items: list[str] = field(default_factory=list)


@dataclass
class AuthorityConfiguration:
    """A list of authority rules."""

    rules: list[AuthorityRule] = field(default_factory=list)


@dataclass
class Metadata:
    info: dict[str, Any] = field(default_factory=dict)


@dataclass
class SocketAddress:
    """A host and port with its protocol."""

    protocol_str: str = ""
    protocol: ProtocolType = ProtocolType.HTTP
    address: str = ""
    port: int = 0
    resolver_name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "SocketAddress":
        data = _mapping(data)
        protocol_str = str(data.get("protocol_type") or "")
        return cls(
            protocol_str=protocol_str,
            protocol=_enum_by_name(ProtocolType, protocol_str.upper(), ProtocolType.HTTP),
            address=str(data.get("address") or ""),
            port=int(data.get("port") or 0),
            resolver_name=str(data.get("resolver_name") or ""),
        )


@dataclass
class Address:
    """A named socket address."""

    socket_address: SocketAddress = field(default_factory=SocketAddress)
    name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Address":
        data = _mapping(data)
        return cls(
            socket_address=SocketAddress.from_dict(data.get("socket_address")),
            name=str(data.get("name") or ""),
        )


@dataclass
class ApiConfigSource:
    api_type: ApiType = ApiType.REST
    api_type_str: str = ""
    cluster_name: list[str] = field(default_factory=list)


@dataclass
class ConfigSource:
    path: str = ""
    api_config_source: ApiConfigSource = field(default_factory=ApiConfigSource)


@dataclass
class HeaderValue:
    key: str = ""
    value: str = ""


@dataclass
class HeaderValueOption:
    header: list[HeaderValue] = field(default_factory=list)
    append: list[bool] = field(default_factory=list)


@dataclass
class EdsClusterConfig:
    eds_config: ConfigSource = field(default_factory=ConfigSource)
    service_name: str = ""


@dataclass
class Registry:
    """A remote registry where services are registered."""

    protocol: str = "zookeeper"
    timeout: str = ""
    address: str = ""
    username: str = ""
    password: str = ""


@dataclass
class HealthCheck:
    pass


@dataclass
class HttpHealthCheck(HealthCheck):
    host: str = ""
    path: str = ""
    use_http2: bool = False
    expected_statuses: int = 0


@dataclass
class GrpcHealthCheck(HealthCheck):
    service_name: str = ""
    authority: str = ""


@dataclass
class CustomHealthCheck(HealthCheck):
    name: str = ""
    config: Any = None


def _config_source_from_dict(data: Any) -> ConfigSource:
    data = _mapping(data)
    source = _mapping(data.get("api_config_source"))
    api_type_str = str(source.get("api_type") or "")
    return ConfigSource(
        path=str(data.get("path") or ""),
        api_config_source=ApiConfigSource(
            api_type=_enum_by_name(ApiType, api_type_str.upper(), ApiType.REST),
            api_type_str=api_type_str,
            cluster_name=[str(n) for n in source.get("cluster_name") or []],
        ),
    )


def _registry_from_dict(data: Any) -> Registry:
    data = _mapping(data)
    return Registry(
        protocol=str(data.get("protocol") or "zookeeper"),
        timeout=str(data.get("timeout") or ""),
        address=str(data.get("address") or ""),
        username=str(data.get("username") or ""),
        password=str(data.get("password") or ""),
    )


@dataclass
class Cluster:
    """A single upstream cluster."""

    name: str = ""
    type_str: str = ""
    type: DiscoveryType = DiscoveryType.Static
    eds_cluster_config: EdsClusterConfig = field(default_factory=EdsClusterConfig)
    lb_str: str = ""
    lb: LbPolicy = LbPolicy.RoundRobin
    connect_timeout_str: str = ""
    health_checks: list[HealthCheck] = field(default_factory=list)
    hosts: list[Address] = field(default_factory=list)
    request_timeout_str: str = ""
    registries: dict[str, Registry] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Cluster":
        data = _mapping(data)
        type_str = str(data.get("type") or "")
        lb_str = str(data.get("lb_policy") or "")
        eds = _mapping(data.get("eds_cluster_config"))
        return cls(
            name=str(data.get("name") or ""),
            type_str=type_str,
            type=_enum_by_name(DiscoveryType, type_str, DiscoveryType.Static),
            eds_cluster_config=EdsClusterConfig(
                eds_config=_config_source_from_dict(eds.get("eds_config")),
                service_name=str(eds.get("service_name") or ""),
            ),
            lb_str=lb_str,
            lb=_enum_by_name(LbPolicy, lb_str, LbPolicy.RoundRobin),
            connect_timeout_str=str(data.get("connect_timeout") or ""),
            health_checks=[HealthCheck() for _ in data.get("health_checks") or []],
            hosts=[Address.from_dict(h) for h in data.get("hosts") or []],
            request_timeout_str=str(data.get("request_timeout") or ""),
            registries={
                str(key): _registry_from_dict(value)
                for key, value in _mapping(data.get("registries")).items()
            },
        )


@dataclass
class Filter:
    """A named filter with its configuration."""

    name: str = ""
    config: Any = None


@dataclass
class FilterChainMatch:
    domains: list[str] = field(default_factory=list)


@dataclass
class FilterChain:
    filter_chain_match: FilterChainMatch = field(default_factory=FilterChainMatch)
    filters: list[Filter] = field(default_factory=list)


def _filter_chain_from_dict(data: Any) -> FilterChain:
    data = _mapping(data)
    match = _mapping(data.get("filter_chain_match"))
    filters = []
    for item in data.get("filters") or []:
        item = _mapping(item)
        filters.append(Filter(name=str(item.get("name") or ""), config=item.get("config")))
    return FilterChain(
        filter_chain_match=FilterChainMatch(domains=[str(d) for d in match.get("domains") or []]),
        filters=filters,
    )


@dataclass
class Listener:
    """A server listening on one address."""

    name: str = ""
    address: Address = field(default_factory=Address)
    filter_chains: list[FilterChain] = field(default_factory=list)
    config: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Listener":
        data = _mapping(data)
        return cls(
            name=str(data.get("name") or ""),
            address=Address.from_dict(data.get("address")),
            filter_chains=[_filter_chain_from_dict(c) for c in data.get("filter_chains") or []],
            config=data.get("config"),
        )


@dataclass
class PprofConf:
    enable: bool = False
    address: Address = field(default_factory=Address)


@dataclass
class HttpTracing:
    name: str = ""
    config: Any = None


@dataclass
class Tracing:
    http: HttpTracing = field(default_factory=HttpTracing)