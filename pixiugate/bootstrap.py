"""The top-level configuration of the gateway."""

from __future__ import annotations

from dataclasses import dataclass, field

from .accesslog import AccessLogConfig
from .model import Cluster, Listener, PprofConf, Tracing


@dataclass
class ShutdownConfig:
    """How the gateway shuts down."""

    timeout: str = "60s"
    step_timeout: str = "10s"
    reject_policy: str = ""


@dataclass
class APIMetaConfig:
    """Where API configuration is found."""

    address: str = ""
    api_config_path: str = "/pixiu/config/api"


@dataclass
class StaticResources:
    listeners: list[Listener] = field(default_factory=list)
    clusters: list[Cluster] = field(default_factory=list)
    shutdown_config: ShutdownConfig | None = None
    pprof_conf: PprofConf = field(default_factory=PprofConf)
    access_log_config: AccessLogConfig = field(default_factory=AccessLogConfig)
    api_meta_config: APIMetaConfig | None = None


@dataclass
class DynamicResources:
    pass


@dataclass
class Bootstrap:
    """Static and dynamic resources plus tracing."""

    static_resources: StaticResources = field(default_factory=StaticResources)
    dynamic_resources: DynamicResources = field(default_factory=DynamicResources)
    tracing: Tracing = field(default_factory=Tracing)

    def get_listeners(self) -> list[Listener]:
        return self.static_resources.listeners

    def get_pprof(self) -> PprofConf:
        return self.static_resources.pprof_conf

    def get_api_meta_config(self) -> APIMetaConfig | None:
        return self.static_resources.api_meta_config

    def exist_cluster(self, name: str) -> bool:
        """Whether a cluster with this name is configured."""
        return any(cluster.name == name for cluster in self.static_resources.clusters)