from a11y_auditor.app.locator.markup import (
    css_escape,
    looks_responsive,
    normalize_markup,
    parse_markup,
    short_description,
    text_similarity,
)


def test_normalize_markup_collapses_whitespace_and_drops_ref_stamp():
    markup = '<div  data-a11y-ref="a11y-3"\n class="card">\n  <a href="/x">Go</a>\n</div>'

    assert normalize_markup(markup) == '<div class="card"><a href="/x">Go</a></div>'
    assert normalize_markup(None) == ""


def test_parse_markup_reads_tag_id_classes_and_text():
    parsed = parse_markup(
        '<a id="home" class="nav-link active" href="/">Home <span>page</span></a>'
    )

    assert parsed.tag == "a"
    assert parsed.element_id == "home"
    assert parsed.classes == ["nav-link", "active"]
    assert parsed.leading_text == "Home page"
    assert parsed.selector() == "#home"


def test_parse_markup_without_id_builds_class_selector():
    parsed = parse_markup("<BUTTON class='btn btn-primary' disabled>Save</BUTTON>")

    assert parsed.tag == "button"
    assert parsed.element_id is None
    assert parsed.selector() == "button.btn.btn-primary"


def test_parse_markup_rejects_text():
    assert parse_markup("just some text") is None
    assert parse_markup("") is None


def test_css_escape():
    assert css_escape("main-nav") == "main-nav"
    assert css_escape("sm:hidden") == "sm\\:hidden"
    assert css_escape("1col") == "\\31 col"


def test_text_similarity():
    assert text_similarity("Submit order", "submit  ORDER") == 1.0
    assert text_similarity("", "") == 1.0
    assert text_similarity("Submit", "") == 0.0
    assert text_similarity("Submit order", "Cancel") < 0.6


def test_looks_responsive():
    assert looks_responsive(["nav", "d-none", "d-md-block"])
    assert looks_responsive(["mobile-menu"])
    assert looks_responsive(["hidden-xs"])
    assert looks_responsive(["md:flex"])
    assert not looks_responsive(["btn", "btn-primary"])
    assert not looks_responsive([])


def test_short_description():
    assert short_description("div", "main", ["a", "b", "c", "d"]) == "div#main.a.b.c"
    assert short_description("span", None, []) == "span"
