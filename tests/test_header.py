from pixiugate.context import API
from pixiugate.header import HeaderFilter
from pixiugate.http_context import HttpContext, Request


def _run(api_headers, request_headers):
    req = Request.from_url("GET", "/x")
    for name, value in request_headers:
        req.headers.add_header(name, value)
    ctx = HttpContext(request=req)
    ctx.set_api(API(headers=api_headers))
    seen = []
    ctx.append_filter_func(HeaderFilter().do(), lambda c: seen.append(True))
    ctx.next()
    return seen


def test_no_declared_headers_continues():
    assert _run({}, []) == [True]


def test_matching_header_continues():
    assert _run({"X-Env": "prod"}, [("X-Env", "prod")]) == [True]


def test_lookup_ignores_case():
    assert _run({"X-ENV": "prod"}, [("x-env", "prod")]) == [True]


def test_one_of_several_values_matches():
    assert _run({"X-Env": "prod"}, [("X-Env", "dev"), ("X-Env", "prod")]) == [True]


def test_wrong_value_aborts():
    assert _run({"X-Env": "prod"}, [("X-Env", "dev")]) == []


def test_missing_header_aborts():
    assert _run({"X-Env": "prod"}, [("X-Other", "prod")]) == []


def test_no_request_headers_aborts():
    assert _run({"X-Env": "prod"}, []) == []