import pytest

from pixiugate.bootstrap import Bootstrap, StaticResources
from pixiugate.context import API, FilterNotFoundError, set_filter_func
from pixiugate.http_context import (
    HEADER_VALUE_JSON_UTF8,
    HttpContext,
    Request,
    Response,
    http_header_match,
    http_route_action_match,
    http_route_match,
)
from pixiugate.model import Cluster
from pixiugate.routes import HeaderMatcher, RouteAction, RouterMatch
from pixiugate.writer import ResponseRecorder


def _ctx(request=None):
    recorder = ResponseRecorder()
    ctx = HttpContext(request=request or Request.from_url("GET", "/mock/test"))
    ctx.reset_writermen(recorder)
    ctx.reset()
    return ctx, recorder


def test_build_context():
    for name in ("a", "b", "c"):
        set_filter_func(name, lambda c: c.next())
    ctx = HttpContext(filter_chains=[])
    ctx.set_api(API(http_verb="POST", url_pattern="/mock/test", filters=["a", "b", "c"]))
    ctx.build_filters()
    assert len(ctx.filters) == 3


def test_build_filters_unknown_name_raises():
    ctx = HttpContext()
    ctx.set_api(API(filters=["no-such-filter-registered"]))
    with pytest.raises(FilterNotFoundError):
        ctx.build_filters()


def test_set_api_sets_timeout():
    ctx = HttpContext()
    api = API(url_pattern="/x", timeout=2.5)
    ctx.set_api(api)
    assert ctx.timeout == 2.5
    assert ctx.get_api() is api


def test_next_and_abort():
    ctx, _ = _ctx()
    seen = []

    def first(c):
        seen.append("first")
        c.abort()

    ctx.append_filter_func(first, lambda c: seen.append("second"))
    ctx.next()
    assert seen == ["first"]


def test_request_from_url():
    req = Request.from_url("POST", "http://www.dubbogopixiu.com/mock/test?name=tc", b"{}")
    assert req.host == "www.dubbogopixiu.com"
    assert req.path == "/mock/test"
    assert req.raw_query == "name=tc"
    assert req.request_uri == "/mock/test?name=tc"
    assert req.body == b"{}"


def test_client_ip_sources():
    req = Request.from_url("GET", "/x")
    req.headers.add_header("X-Forwarded-For", " 10.0.0.1 , 10.0.0.2")
    ctx, _ = _ctx(req)
    assert ctx.get_client_ip() == "10.0.0.1"

    req = Request.from_url("GET", "/x")
    req.headers.add_header("X-Real-Ip", " 10.0.0.3 ")
    ctx, _ = _ctx(req)
    assert ctx.get_client_ip() == "10.0.0.3"

    req = Request.from_url("GET", "/x")
    req.remote_addr = "10.0.0.4:5678"
    ctx, _ = _ctx(req)
    assert ctx.get_client_ip() == "10.0.0.4"

    req = Request.from_url("GET", "/x")
    req.remote_addr = "no-port"
    ctx, _ = _ctx(req)
    assert ctx.get_client_ip() == ""


def test_application_name():
    req = Request.from_url("GET", "/x")
    req.request_uri = "app/path"
    ctx, _ = _ctx(req)
    assert ctx.get_application_name() == "app"


def test_write_json_with_status():
    ctx, rec = _ctx()
    ctx.write_json_with_status(201, {"a": 1})
    assert rec.code == 201
    assert bytes(rec.body) == b'{"a":1}'
    assert rec.headers["Content-Type"] == [HEADER_VALUE_JSON_UTF8]


def test_write_response_and_success():
    ctx, rec = _ctx()
    ctx.write_response(Response(data={"k": "v"}))
    assert rec.code == 200
    assert bytes(rec.body) == b'{"k":"v"}'

    ctx, rec = _ctx()
    ctx.write_success()
    assert rec.code == 200
    assert bytes(rec.body) == b""


def test_write_err_unserialisable_writes_message():
    ctx, rec = _ctx()
    ctx.write_err(object())
    assert rec.code == 500
    assert b"not JSON serializable" in bytes(rec.body)


def test_status_and_write_header_now():
    ctx, rec = _ctx()
    assert ctx.status_code() == 200
    ctx.status(404)
    assert ctx.status_code() == 404
    ctx.write_header_now()
    assert rec.code == 404


def test_write_with_status_and_add_header():
    ctx, rec = _ctx()
    ctx.write_with_status(406, b"body")
    ctx.add_header("content-type", "text/plain")
    assert rec.code == 406
    assert bytes(rec.body) == b"body"
    assert rec.headers["Content-Type"] == ["text/plain"]


def test_header_match():
    req = Request.from_url("GET", "/x")
    req.headers.add_header("X-Env", "prod")
    ctx, _ = _ctx(req)
    assert http_header_match(ctx, HeaderMatcher())
    assert http_header_match(ctx, HeaderMatcher(name="X-Env", value="prod"))
    assert not http_header_match(ctx, HeaderMatcher(name="X-Env", value="dev"))
    assert http_header_match(ctx, HeaderMatcher(name="X-Missing"))
    assert not http_header_match(ctx, HeaderMatcher(name="X-Env"))
    assert http_header_match(ctx, HeaderMatcher(name="X-Env", value="d.*", regex=True))


def test_route_match():
    ctx, _ = _ctx(Request.from_url("GET", "/api/v1"))
    assert http_route_match(ctx, RouterMatch(path="/api/v1"))
    assert not http_route_match(ctx, RouterMatch(path="/other"))
    assert http_route_match(ctx, RouterMatch(regex="^/api"))
    assert not http_route_match(ctx, RouterMatch(regex="^/nope"))


def test_route_action_match():
    ctx, _ = _ctx()
    bootstrap = Bootstrap(static_resources=StaticResources(clusters=[Cluster(name="users")]))
    assert http_route_action_match(ctx, RouteAction(cluster="users"), bootstrap)
    assert not http_route_action_match(ctx, RouteAction(cluster="orders"), bootstrap)
    assert not http_route_action_match(ctx, RouteAction(), bootstrap)