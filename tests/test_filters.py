import pytest

from fuzzkit.filters import (
    FilterError,
    LineFilter,
    MatcherManager,
    RegexpFilter,
    SizeFilter,
    StatusFilter,
    TimeFilter,
    WordFilter,
    new_filter_by_name,
)
from fuzzkit.models import Request, Response


@pytest.mark.parametrize(
    "name,value,cls",
    [
        ("status", "200", StatusFilter),
        ("size", "200", SizeFilter),
        ("word", "200", WordFilter),
        ("line", "200", LineFilter),
        ("regexp", "200", RegexpFilter),
        ("time", ">200", TimeFilter),
    ],
)
def test_new_filter_by_name(name, value, cls):
    f = new_filter_by_name(name, value)
    assert isinstance(f, cls)
    assert f.repr() == value


def test_new_filter_by_name_error():
    with pytest.raises(FilterError):
        new_filter_by_name("status", "invalid")


def test_new_filter_by_name_time_without_operator():
    with pytest.raises(FilterError):
        new_filter_by_name("time", "200")


def test_new_filter_by_name_not_found():
    with pytest.raises(FilterError, match="Could not create filter with name nonexistent"):
        new_filter_by_name("nonexistent", "invalid")


# Lines

def test_new_line_filter():
    assert "200,301,400-410,500" in LineFilter("200,301,400-410,500").repr()


def test_new_line_filter_error():
    with pytest.raises(FilterError):
        LineFilter("invalid")


@pytest.mark.parametrize(
    "count,expected",
    [(200, True), (301, True), (500, True), (4, False), (444, True),
     (302, False), (401, False), (402, True), (450, True), (451, False)],
)
def test_line_filtering(count, expected):
    f = LineFilter("200,301,402-450,500")
    resp = Response(data="\n".join(["A"] * count).encode())
    assert f.filter(resp) is expected


# Regexp

def test_new_regexp_filter():
    assert "s([a-z]+)arch" in RegexpFilter("s([a-z]+)arch").repr()


def test_new_regexp_filter_error():
    with pytest.raises(FilterError):
        RegexpFilter("r((")


@pytest.mark.parametrize(
    "text,expected",
    [("search", True), ("text and search", True), ("sbarch in beginning", True),
     ("midd scarch le", True), ("s1arch", False), ("invalid", False)],
)
def test_regexp_filtering(text, expected):
    f = RegexpFilter("s([a-z]+)arch")
    resp = Response(data=text.encode(), request=Request(input={}))
    assert f.filter(resp) is expected


def test_regexp_keyword_replaced_with_escaped_input():
    f = RegexpFilter("found FUZZ")
    req = Request(input={"FUZZ": b"a.b"})
    assert f.filter(Response(data=b"found a.b", request=req)) is True
    assert f.filter(Response(data=b"found axb", request=req)) is False


def test_regexp_matches_headers():
    f = RegexpFilter("^Server: nginx")
    resp = Response(headers={"Server": ["nginx"]}, data=b"", request=Request())
    assert f.filter(resp) is True


# Size

def test_new_size_filter():
    assert "1,2,3,444,5-90" in SizeFilter("1,2,3,444,5-90").repr()


def test_new_size_filter_error():
    with pytest.raises(FilterError):
        SizeFilter("invalid")


@pytest.mark.parametrize(
    "size,expected",
    [(1, True), (2, True), (3, True), (4, False), (5, True),
     (70, True), (90, True), (91, False), (444, True)],
)
def test_size_filtering(size, expected):
    f = SizeFilter("1,2,3,5-90,444")
    assert f.filter(Response(content_length=size)) is expected


# Status

def test_new_status_filter():
    assert "200,301,400-410,500" in StatusFilter("200,301,400-410,500").repr()


def test_new_status_filter_error():
    with pytest.raises(FilterError):
        StatusFilter("invalid")


@pytest.mark.parametrize(
    "status,expected",
    [(200, True), (301, True), (500, True), (4, False), (399, False),
     (400, True), (444, True), (498, True), (499, False), (302, False)],
)
def test_status_filtering(status, expected):
    f = StatusFilter("200,301,400-498,500")
    assert f.filter(Response(status_code=status)) is expected


def test_status_all_matches_everything():
    f = StatusFilter("all")
    assert f.repr() == "all"
    assert f.to_json() == {"value": "all"}
    assert f.filter(Response(status_code=999)) is True


# Time

def test_new_time_filter():
    f = TimeFilter(">100")
    assert f.gt and not f.lt
    assert f.ms == 100


def test_new_time_filter_error():
    with pytest.raises(FilterError):
        TimeFilter("100>")


@pytest.mark.parametrize(
    "ms,expected",
    [(1342, True), (2000, True), (35000, True), (1458700, True), (99, False), (2, False)],
)
def test_time_filtering(ms, expected):
    f = TimeFilter(">100")
    resp = Response(data=b"dahhhhhtaaaaa", duration=ms * 1_000_000)
    assert f.filter(resp) is expected


def test_time_less_than():
    f = TimeFilter("<100")
    assert f.filter(Response(duration=99 * 1_000_000)) is True
    assert f.filter(Response(duration=100 * 1_000_000)) is False


# Words

def test_new_word_filter():
    assert "200,301,400-410,500" in WordFilter("200,301,400-410,500").repr()


def test_new_word_filter_error():
    with pytest.raises(FilterError):
        WordFilter("invalid")


@pytest.mark.parametrize(
    "count,expected",
    [(200, True), (301, True), (500, True), (4, False), (444, True),
     (302, False), (401, False), (402, True), (450, True), (451, False)],
)
def test_word_filtering(count, expected):
    f = WordFilter("200,301,402-450,500")
    resp = Response(data=" ".join(["A"] * count).encode())
    assert f.filter(resp) is expected


def test_verbose_representations():
    assert SizeFilter("5-90").repr_verbose() == "Response size: 5-90"
    assert RegexpFilter("abc").repr_verbose() == "Regexp: abc"
    assert TimeFilter(">10").repr_verbose() == "Response time: >10"


# Manager

def test_manager_add_filter_appends():
    m = MatcherManager()
    m.add_filter("status", "200", False)
    m.add_filter("status", "301", False)
    assert m.filters["status"].repr() == "200,301"


def test_manager_add_filter_replace():
    m = MatcherManager()
    m.add_filter("status", "200", False)
    m.add_filter("status", "404", True)
    assert m.filters["status"].repr() == "404"


def test_manager_add_invalid_filter_raises_and_keeps_old():
    m = MatcherManager()
    m.add_filter("size", "10", False)
    with pytest.raises(FilterError):
        m.add_filter("size", "bad", False)
    assert m.filters["size"].repr() == "10"


def test_manager_remove_filter():
    m = MatcherManager()
    m.add_filter("word", "3", False)
    m.remove_filter("word")
    m.remove_filter("word")
    assert m.filters == {}


def test_manager_add_matcher():
    m = MatcherManager()
    m.add_matcher("status", "200")
    m.add_matcher("status", "204")
    assert m.matchers["status"].repr() == "200,204"
    with pytest.raises(FilterError):
        m.add_matcher("nope", "1")


def test_manager_per_domain_filters():
    m = MatcherManager()
    assert m.filters_for_domain("example.com") is m.filters
    m.add_per_domain_filter("example.com", "size", "42")
    assert m.filters_for_domain("example.com")["size"].repr() == "42"
    m.add_per_domain_filter("example.com", "size", "43")
    assert m.filters_for_domain("example.com")["size"].repr() == "42,43"


def test_manager_per_domain_invalid_still_registers_domain():
    m = MatcherManager()
    with pytest.raises(FilterError):
        m.add_per_domain_filter("example.com", "size", "x")
    assert "example.com" in m.per_domain_filters


def test_manager_calibration():
    m = MatcherManager()
    m.set_calibrated(True)
    assert m.is_calibrated is True
    assert m.calibrated_for_domain("example.com") is False
    m.set_calibrated_for_host("example.com", False)
    assert m.calibrated_for_domain("example.com") is True
    m.set_calibrated_for_host("example.com", False)
    assert m.calibrated_for_domain("example.com") is False