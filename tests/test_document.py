from pagefeed.adapters.document import Document

from conftest import BASE_URL


def test_relative_links_resolve_against_page_url():
    doc = Document('<div><a href="/post/1">x</a><img src="img/p.png"></div>', BASE_URL)
    node = doc.select("div")[0]

    assert node.select_one("a").resolved_href() == "https://example.com/post/1"
    assert node.select_one("img").resolved_src() == "https://example.com/app/img/p.png"


def test_base_element_overrides_page_url():
    doc = Document(
        '<html><head><base href="https://cdn.example.org/"></head>'
        '<body><a href="a.html">x</a></body></html>',
        BASE_URL,
    )

    assert doc.select("a")[0].resolved_href() == "https://cdn.example.org/a.html"


def test_fragment_and_script_links_do_not_resolve():
    doc = Document('<a href="#top">1</a><a href="javascript:void(0)">2</a><a>3</a>', BASE_URL)

    assert [a.resolved_href() for a in doc.select("a")] == [None, None, None]


def test_lazy_image_falls_back_to_data_src():
    doc = Document('<img data-src="https://example.com/lazy.jpg">', BASE_URL)

    assert doc.select("img")[0].resolved_src() == "https://example.com/lazy.jpg"


def test_text_collapses_whitespace_and_attr_joins_lists():
    doc = Document('<p class="lead  summary">  hello \n   <b>world</b>  </p>', BASE_URL)
    node = doc.select("p")[0]

    assert node.text() == "hello world"
    assert node.attr("class") == "lead summary"
    assert node.attr("missing") is None


def test_markup_returns_original_html():
    html = "<html><body><p>x</p></body></html>"

    assert Document(html, BASE_URL).markup() == html
