from pixiugate.host import HostFilter
from pixiugate.http_context import HttpContext, Request


def test_host():
    target_host = "www.dubbogo.com"
    request = Request.from_url(
        "POST", "http://www.dubbogopixiu.com/mock/test?name=tc", b'{"id":"12345"}'
    )
    ctx = HttpContext(request=request)
    seen = []
    ctx.append_filter_func(HostFilter(target_host).do(), lambda c: seen.append(c.request.host))
    ctx.next()
    assert ctx.request.host == target_host
    assert seen == [target_host]