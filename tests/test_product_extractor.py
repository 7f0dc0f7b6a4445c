import json

from sales_scout.scraping import ProductExtractor, find_balanced_literal


NESTED_PRODUCT = {
    "id": 9912,
    "title": "Official Lightstick Ver.3",
    "total_sold": 1234,
    "variants": [
        {"id": 1, "options": {"color": {"label": "Black", "swatch": {"hex": "#000"}}}},
        {"id": 2, "options": {"color": {"label": "White", "swatch": {"hex": "#fff"}}}},
    ],
    "images": [[], [{}], {"sizes": [{"w": 100}, {"w": 200}]}],
    "meta": {},
}


def test_extracts_name_and_total_sold_from_nested_object(page):
    result = ProductExtractor().extract(page(NESTED_PRODUCT))

    assert result is not None
    assert result.product_name == "Official Lightstick Ver.3"
    assert result.total_sold == 1234


def test_balanced_literal_recovers_exact_substring():
    literal = json.dumps(NESTED_PRODUCT)
    script = f'var product = {literal};\nvar cart = {{"items": []}};\nfunction f() {{ return 1; }}'

    start = script.index("{")
    bounds = find_balanced_literal(script, start)

    assert bounds is not None
    assert script[bounds[0]:bounds[1]] == literal


def test_balanced_literal_ignores_braces_inside_strings():
    script = 'product = {"title": "Set {A} }}", "total_sold": 3}; x = {}'
    start = script.index("{")

    bounds = find_balanced_literal(script, start)

    assert script[bounds[0]:bounds[1]] == '{"title": "Set {A} }}", "total_sold": 3}'


def test_balanced_literal_handles_escaped_quotes():
    script = r'product = {"title": "12\" vinyl {", "total_sold": 3};'
    start = script.index("{")

    bounds = find_balanced_literal(script, start)

    assert bounds == (start, len(script) - 1)


def test_balanced_literal_not_found_cases():
    assert find_balanced_literal('{"a": {"b": 1}', 0) is None
    assert find_balanced_literal("no braces", 0) is None
    assert find_balanced_literal("abc", -1) is None
    assert find_balanced_literal("abc", 10) is None
    assert find_balanced_literal('{"a": 1}', 0, max_length=4) is None


def test_no_marker_returns_none(page):
    product = {"title": "Photobook", "sold": 10}

    assert ProductExtractor().extract(page(product)) is None


def test_unquoted_identifier_does_not_count_as_marker():
    markup = "<script>var total_sold = 5; var product = {\"total\": 5};</script>"

    assert ProductExtractor().extract(markup) is None


def test_empty_and_non_html_markup_returns_none():
    extractor = ProductExtractor()

    assert extractor.extract("") is None
    assert extractor.extract("just some text { with braces }") is None
    assert extractor.extract("<html><body><p>no scripts</p></body></html>") is None


def test_truncated_literal_returns_none():
    markup = '<script>var product = {"title": "Album", "total_sold": 7, "variants": [{"id": 1}</script>'

    assert ProductExtractor().extract(markup) is None


def test_invalid_json_returns_none():
    markup = "<script>var product = {title: 'Album', \"total_sold\": 7};</script>"

    assert ProductExtractor().extract(markup) is None


def test_only_first_qualifying_script_is_used(page):
    broken = '<script>var product = {"title": "Broken", "total_sold": 1,};</script>'
    valid = page({"title": "Valid", "total_sold": 50})

    assert ProductExtractor().extract(broken + valid) is None


def test_first_of_several_valid_scripts_wins():
    first = '<script>var product = {"title": "First", "total_sold": 10};</script>'
    second = '<script>var product = {"title": "Second", "total_sold": 20};</script>'

    result = ProductExtractor().extract(first + second)

    assert result.product_name == "First"
    assert result.total_sold == 10


def test_marker_without_assignment_is_skipped():
    analytics = '<script>track({"event": "view", "total_sold": 99});</script>'
    product = '<script>var product = {"title": "Poster", "total_sold": 4};</script>'

    result = ProductExtractor().extract(analytics + product)

    assert result.product_name == "Poster"
    assert result.total_sold == 4


def test_property_assignment_and_no_spaces(page):
    result = ProductExtractor().extract(
        page({"title": "Keyring", "total_sold": 8}, assignment="window.product=")
    )

    assert result.total_sold == 8


def test_comparison_is_not_an_assignment():
    markup = '<script>if (product == {"total_sold": 1}) {}</script>'

    assert ProductExtractor().extract(markup) is None


def test_missing_title_gives_empty_name():
    markup = '<script>var product = {"total_sold": 12};</script>'

    result = ProductExtractor().extract(markup)

    assert result.product_name == ""
    assert result.total_sold == 12


def test_total_sold_must_be_a_non_negative_integer():
    extractor = ProductExtractor()

    def extract(value):
        return extractor.extract(
            f'<script>var product = {{"title": "T", "total_sold": {value}}};</script>'
        )

    assert extract('"42"').total_sold == 42
    assert extract("-1") is None
    assert extract("null") is None
    assert extract("true") is None
    assert extract("1.5") is None
    assert extract('"many"') is None


def test_missing_total_sold_key_returns_none():
    markup = '<script>var product = {"title": "T", "stats": {"total_sold": 5}};</script>'

    assert ProductExtractor().extract(markup) is None


def test_literal_length_limit():
    extractor = ProductExtractor(max_literal_length=32)
    markup = (
        '<script>var product = {"title": "A long product title", "total_sold": 3};</script>'
    )

    assert extractor.extract(markup) is None


def test_result_serializes_with_api_field_names(page):
    result = ProductExtractor().extract(page({"title": "Album", "total_sold": 5}))

    assert result.model_dump(by_alias=True) == {"productName": "Album", "totalSold": 5}


def test_total_sold_beyond_integer_column_is_absence():
    extractor = ProductExtractor()
    markup = '<script>var product = {{"title": "T", "total_sold": {}}};</script>'

    assert extractor.extract(markup.format(2**63 - 1)).total_sold == 2**63 - 1
    assert extractor.extract(markup.format(2**64)) is None
