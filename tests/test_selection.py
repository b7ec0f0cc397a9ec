from keyword_clusters.schemas import Intent, SearchResult
from keyword_clusters.selection import is_low_value, result_domain, select_top_results


def _result(url: str, title: str, snippet: str = "") -> SearchResult:
    return SearchResult(url=url, title=title, snippet=snippet)


def test_result_domain_strips_www():
    assert result_domain("https://www.example.com/page") == "example.com"
    assert result_domain("not a url") is None


def test_low_value_hosts_and_unparseable_urls():
    assert is_low_value("https://www.youtube.com/watch?v=1")
    assert is_low_value("https://instagram.com/pizza")
    assert is_low_value("garbage")
    assert not is_low_value("https://pizzahut.com/menu")


def test_select_drops_low_value_and_prefers_intent_matches():
    results = [
        _result("https://example.com/a", "Pizza history"),
        _result("https://www.youtube.com/watch?v=1", "Pizza guide video"),
        _result("https://example.com/b", "How to make pizza", "A complete guide"),
    ]

    selected = select_top_results(results, Intent.INFORMATIONAL)

    assert [result.url for result in selected] == ["https://example.com/b", "https://example.com/a"]


def test_select_uses_transactional_vocabulary():
    results = [
        _result("https://example.com/guide", "Pizza guide"),
        _result("https://example.com/order", "Order pizza online", "Delivery in 30 minutes"),
    ]

    selected = select_top_results(results, Intent.TRANSACTIONAL)

    assert selected[0].url == "https://example.com/order"


def test_content_based_intent_uses_informational_vocabulary():
    results = [
        _result("https://example.com/deal", "Pizza deal"),
        _result("https://example.com/tips", "Pizza tips"),
    ]

    selected = select_top_results(results, Intent.CONTENT_BASED)

    assert [result.url for result in selected] == ["https://example.com/tips", "https://example.com/deal"]


def test_select_caps_at_five_results_and_keeps_order_on_ties():
    results = [_result(f"https://site{idx}.com", f"Result {idx}") for idx in range(8)]

    selected = select_top_results(results, Intent.INFORMATIONAL)

    assert [result.url for result in selected] == [f"https://site{idx}.com" for idx in range(5)]


def test_low_value_result_survives_only_with_intent_match():
    # +1 for the match, -2 for the host leaves -1, which survives the cut-off.
    results = [_result("https://facebook.com/page", "Best pizza ideas")]

    assert select_top_results(results, Intent.INFORMATIONAL) == results
    assert select_top_results([_result("https://facebook.com/page", "Pizza")], Intent.INFORMATIONAL) == []
