# pixiugate

`pixiugate` is the core of a lightweight API gateway. It models gateway
configuration (listeners, clusters, routes, authority rules), carries each
request through an ordered chain of filters, and writes the response back to
the client.

## Configuration model

`pixiugate.model`, `pixiugate.routes` and `pixiugate.bootstrap` hold the
configuration as dataclasses and enums.

- `pixiugate.model`: `Listener`, `Address`, `SocketAddress`, `Cluster`,
  `Registry`, `FilterChain`, `Filter`, `AuthorityRule`,
  `AuthorityConfiguration`, `PprofConf`, `Tracing`, and the enums
  `ProtocolType`, `DiscoveryType`, `LbPolicy`, `StrategyType`, `LimitType`,
  `ApiType` and `Status`. `Listener`, `Address`, `SocketAddress` and `Cluster`
  have a `from_dict()` class method that builds them from plain mappings (as
  read from YAML or JSON); an unknown enum name raises `ValueError`.
- `pixiugate.routes`: `HttpConnectionManager`, `RouteConfiguration`,
  `Router`, `RouterMatch`, `RouteAction`, `HeaderMatcher`, `CorsPolicy`,
  `HTTPFilter`, `HttpConfig`, `RequestMethod`, `MatcherType`, `StringMatcher`.
- `pixiugate.bootstrap`: the root `Bootstrap` with `StaticResources`,
  `ShutdownConfig` and `APIMetaConfig`; it offers `get_listeners()`,
  `get_pprof()`, `get_api_meta_config()` and `exist_cluster(name)`.

## Filter chains

A filter is a callable that receives a context. `pixiugate.context.BaseContext`
runs its filters in order through `next()`; a filter may call `next()` itself
to wrap the rest of the chain, or `abort()` so that no later filter runs.
Filters are registered by name with `set_filter_func(name, func)` and looked up
with `get_must_filter_func(name)`, which raises `FilterNotFoundError` for an
unknown name. `pixiugate.context.API` describes a routed API: URL pattern,
verb, whether it is on air, the names of its filters, its timeout, required
headers and, for HTTP backends, a host and path to rewrite to.

`pixiugate.http_context.HttpContext` ties a `Request` to a
`pixiugate.writer.ResponseWriter`. It offers `get_header()`, `get_url()`,
`get_method()`, `get_client_ip()` (from `X-Forwarded-For`, `X-Real-Ip`, then
the remote address), `get_application_name()`, `write_with_status()`,
`write_json_with_status()`, `write_err()`, `write_response()`, `set_api()` and
`build_filters()`, which appends the registered filters named by the API. The
module also has `http_header_match()`, `http_route_match()` and
`http_route_action_match()`.

```python
from pixiugate.host import HostFilter
from pixiugate.http_context import HttpContext, Request
from pixiugate.writer import ResponseRecorder

recorder = ResponseRecorder()
ctx = HttpContext(
    request=Request.from_url("GET", "http://example.com/mock/test?name=tc"),
    writer=recorder,
)
ctx.append_filter_func(
    HostFilter("backend.example.com").do(),
    lambda c: c.write_with_status(200, b"ok"),
)
ctx.next()

ctx.request.host                    # "backend.example.com"
recorder.code, bytes(recorder.body)  # (200, b"ok")
```

## Built-in filters

Each filter class has a `do()` method that returns the filter callable. The
modules with an `init()` function register their filter under a fixed name.

| Module | Filter | What it does |
| --- | --- | --- |
| `pixiugate.authority` | `AuthorityFilter` | IP or application whitelists and blacklists; answers 403 (`pass_check(item, rule)` decides one rule) |
| `pixiugate.host` | `HostFilter` | sets the request host |
| `pixiugate.replacepath` | `ReplacePathFilter` | replaces the request path, keeping the old one in `X-Replaced-Path` |
| `pixiugate.header` | `HeaderFilter` | aborts the chain when a header the API requires is missing or differs |
| `pixiugate.timeout` | `TimeoutFilter` | answers 504 when the rest of the chain runs longer than the API timeout, or 60 seconds |
| `pixiugate.recovery` | `RecoveryFilter` | turns an exception raised later in the chain into a 500 response |
| `pixiugate.request_logger` | `LoggerFilter` | logs status, latency, method and URL |
| `pixiugate.access_log_filter` | `AccessLogFilter` | builds an access-log line (`build_access_log_msg`) and queues it on an `AccessLogWriter` |
| `pixiugate.response` | `ResponseFilter` | writes the error, the upstream `http.client.HTTPResponse`, or the result as JSON |

`ResponseFilter("hump")` renames the keys of map results from camel case to
snake case; `pixiugate.response.hump_to_underline("userName")` gives
`"user_name"`, and `deal_resp(value, hump_to_line)` does the whole conversion.

## Access logging

`pixiugate.accesslog.AccessLogWriter` queues `AccessLogData` entries and writes
them on a background thread started by `write()` and stopped by `close()`
(it also works as a context manager). An entry whose `AccessLogConfig` output
path is empty or `"console"` goes to the logger; otherwise
`write_to_file(message, path)` appends it, renaming the file with a date
suffix when its last write was on another day. A full queue drops the entry.

## Plugins

`pixiugate.plugins.init_plugins_group(groups, factories)` builds each plugin of
each `PluginsGroup` from a mapping of lookup names to factories (callables
returning an object with `do()`); a missing factory raises
`PluginConfigError`. `init_api_url_with_filter_chain(resources)` then maps each
`Resource` path to its pre and post filters, inherited down the resource tree,
and `get_api_filter_funcs_with_api_url(url)` returns the `PluginFilterChain`
for a URL (empty if none).

## Listener

`pixiugate.listener.DefaultHttpListener` routes a request through a
`LocalApiDiscoveryService`. `route_request()` answers an unknown URL with 404
and raises `RouteNotFoundError`, and an API that is not on air with 406 and
raises `ApiOfflineError`. `serve_http()` then builds the chain from the
filters registered under the names `LOGGER_FILTER`, `RECOVERY_FILTER`,
`TIMEOUT_FILTER`, `ACCESS_LOG_FILTER` (when access logging is enabled in the
`Bootstrap`), `REMOTE_CALL_FILTER` and `RESPONSE_FILTER`, plus the host, path,
header, plugin and per-API filters, and runs it.

```python
from pixiugate.context import API
from pixiugate.http_context import HttpContext, Request
from pixiugate.listener import DefaultHttpListener, LocalApiDiscoveryService

discovery = LocalApiDiscoveryService()
discovery.add_api(API(url_pattern="/mock/test", http_verb="GET"))
listener = DefaultHttpListener(discovery=discovery)
api = listener.route_request(HttpContext(), Request.from_url("GET", "/mock/test"))
api.url_pattern  # "/mock/test"
```

`ListenerService(listener).start()` serves an HTTP `Listener` with the
standard library's threading HTTP server and blocks; other protocols raise
`ValueError`. `resolve_duration()`, `resolve_int_prop()` and
`resolve_address()` apply the server defaults (20 seconds, 1 MiB of headers,
`:8080`).

## Logging

`pixiugate.log` wraps the standard `logging` module. On import it tries
`./conf/log.yml` and otherwise falls back to a development configuration
writing to standard error. `init_log(path)` reads a YAML configuration
(`level`, `encoding` of `console` or `json`, `outputPaths`, `encoderConfig`)
whose name must end in `.yml`; a missing name, a wrong suffix, an unreadable
file or bad YAML raises `LogConfigError` after installing the development
configuration. `set_logger_level("info")` changes the level at run time, and
`info`, `warn`, `error`, `debug` and their `...f` forms log through the
current logger.

## What is not included

- No filter is registered under `REMOTE_CALL_FILTER`: the package has no
  upstream clients, so calling backend services must be supplied as a filter
  registered with `set_filter_func`.
- There is no command-line program and no loader for a complete gateway
  configuration file; a `Bootstrap` is assembled in code.
- APIs are kept only in memory in `LocalApiDiscoveryService`.