import json

from fuzzkit.models import (
    Config,
    InputProviderConfig,
    Request,
    Response,
    Result,
    ScraperResult,
    result_from_response,
)


def test_request_copy_is_independent():
    original = Request(
        method="POST",
        url="http://example.com/FUZZ",
        headers={"X-Test": "1"},
        data=b"a=b",
        input={"FUZZ": b"x"},
    )
    clone = original.copy()
    assert clone == original
    clone.headers["X-Other"] = "2"
    clone.input["FUZZ"] = b"y"
    assert "X-Other" not in original.headers
    assert original.input["FUZZ"] == b"x"


def test_redirect_location_first_value():
    resp = Response(status_code=301, headers={"Location": ["/a", "/b"]})
    assert resp.redirect_location() == "/a"


def test_redirect_location_case_insensitive_and_missing():
    assert Response(headers={"location": ["/x"]}).redirect_location() == "/x"
    assert Response(headers={"Server": ["s"]}).redirect_location() == ""


def test_result_from_response_copies_fields():
    req = Request(url="http://example.com/abc", host="example.com",
                  input={"FUZZ": b"abc"}, position=7)
    scraped = {"title": ["Hello"]}
    resp = Response(
        status_code=302,
        headers={"Location": ["/next"]},
        content_length=11,
        content_words=2,
        content_lines=1,
        content_type="text/html",
        request=req,
        result_file="deadbeef",
        scraper_data=scraped,
        duration=5_000_000,
    )
    res = result_from_response(resp)
    assert res.input == {"FUZZ": b"abc"}
    assert res.position == 7
    assert res.status_code == 302
    assert res.content_length == 11
    assert res.content_words == 2
    assert res.content_lines == 1
    assert res.content_type == "text/html"
    assert res.redirect_location == "/next"
    assert res.scraper_data == scraped
    assert res.url == "http://example.com/abc"
    assert res.host == "example.com"
    assert res.duration == 5_000_000
    assert res.result_file == "deadbeef"


def test_result_from_response_input_is_copied():
    req = Request(input={"FUZZ": b"a"})
    res = result_from_response(Response(request=req))
    req.input["FUZZ"] = b"b"
    assert res.input["FUZZ"] == b"a"


def test_result_to_dict_keys_and_values():
    res = Result(
        input={"FUZZ": b"word"},
        position=3,
        status_code=200,
        content_length=10,
        content_type="application/json",
        duration=123,
        url="http://example.com/word",
    )
    out = res.to_dict()
    assert out["input"] == {"FUZZ": "word"}
    assert out["status"] == 200
    assert out["length"] == 10
    assert out["content-type"] == "application/json"
    assert out["duration"] == 123
    assert out["url"] == "http://example.com/word"
    assert json.loads(json.dumps(out)) == out


class _StubFilter:
    def __init__(self, value):
        self.value = value

    def to_json(self):
        return {"value": self.value}


class _StubManager:
    def __init__(self):
        self.matchers = {"status": _StubFilter("200")}
        self.filters = {"size": _StubFilter("42")}


def test_config_to_dict_serialisable():
    conf = Config(
        url="http://example.com/FUZZ",
        input_providers=[InputProviderConfig(keyword="FUZZ", value="words.txt")],
        delay=(0.1, 0.5),
    )
    out = conf.to_dict()
    assert out["url"] == "http://example.com/FUZZ"
    assert out["input_providers"][0]["value"] == "words.txt"
    assert out["delay"] == [0.1, 0.5]
    assert "matcher_manager" not in out
    assert json.loads(json.dumps(out)) == out


def test_config_to_dict_includes_matchers_and_filters():
    conf = Config(matcher_manager=_StubManager())
    out = conf.to_dict()
    assert out["matchers"] == {"status": {"value": "200"}}
    assert out["filters"] == {"size": {"value": "42"}}


def test_scraper_result_lists_are_independent():
    a = ScraperResult(name="a")
    b = ScraperResult(name="b")
    a.results.append("x")
    assert b.results == []