from visioncrafter.extract import Kind, classify, extract_image_url


def test_direct_field():
    assert extract_image_url({"url": "x"}) == "x"


def test_direct_fields_are_checked_in_order():
    payload = {"url": "third", "imageUrl": "second", "image_url": "first"}
    assert extract_image_url(payload) == "first"


def test_direct_field_wins_over_collections():
    assert extract_image_url({"images": ["a"], "url": "direct"}) == "direct"


def test_first_string_in_collection():
    assert extract_image_url({"images": ["a", "b"]}) == "a"


def test_recurses_through_collections_and_nested_objects():
    assert extract_image_url({"output": [{"nested": {"image_url": "z"}}]}) == "z"
    assert extract_image_url({"output": [{"data": {"image_url": "z"}}]}) == "z"


def test_known_fields_win_over_other_keys():
    payload = {"meta": {"url": "https://example.com/thumb.png"}, "images": [{"url": "https://example.com/full.png"}]}
    assert extract_image_url(payload) == "https://example.com/full.png"


def test_bare_strings_under_other_keys_are_ignored():
    assert extract_image_url({"tags": ["cat", "dog"], "prompt": "a cat"}) is None
    assert extract_image_url({"timings": {"inference": 1.2}, "extra": [{"url": "found"}]}) == "found"


def test_fal_style_response():
    payload = {
        "images": [{"url": "https://fal.media/files/abc.png", "width": 4096, "height": 2304}],
        "seed": 42,
        "has_nsfw_concepts": [False],
    }
    assert extract_image_url(payload) == "https://fal.media/files/abc.png"


def test_collection_fields_are_checked_in_order():
    payload = {"assets": ["last"], "results": ["fourth"], "data": ["third"], "output": ["second"]}
    assert extract_image_url(payload) == "second"


def test_mapping_valued_collection_is_searched():
    assert extract_image_url({"data": {"url": "from-mapping"}}) == "from-mapping"


def test_entry_without_url_is_skipped():
    payload = {"images": [{"width": 10}, {"url": "second-entry"}]}
    assert extract_image_url(payload) == "second-entry"


def test_image_object_is_searched_last():
    assert extract_image_url({"image": {"url": "from-image"}}) == "from-image"
    assert extract_image_url({"image": "not-an-object"}) is None


def test_not_found():
    assert extract_image_url({}) is None
    assert extract_image_url({"images": [], "output": "plain-string", "data": 5}) is None


def test_non_mapping_payloads():
    assert extract_image_url(None) is None
    assert extract_image_url("https://example.com/a.png") is None
    assert extract_image_url(["https://example.com/a.png"]) is None


def test_empty_strings_are_not_urls():
    assert extract_image_url({"url": "", "images": ["", "real"]}) == "real"


def test_depth_is_bounded():
    shallow = {"url": "deep"}
    for _ in range(10):
        shallow = {"image": shallow}
    assert extract_image_url(shallow) == "deep"

    deep = {"url": "too-deep"}
    for _ in range(40):
        deep = {"image": deep}
    assert extract_image_url(deep) is None


def test_classify():
    assert classify("a") is Kind.STRING
    assert classify({"a": 1}) is Kind.MAPPING
    assert classify([1]) is Kind.SEQUENCE
    assert classify((1,)) is Kind.SEQUENCE
    assert classify(b"bytes") is Kind.OTHER
    assert classify(3) is Kind.OTHER
    assert classify(None) is Kind.OTHER


def test_echoed_request_is_not_an_image():
    assert extract_image_url({"request": {"url": "https://fal.run/fal-ai/flux-pro-1.1"}}) is None
    assert extract_image_url({"input": {"image_url": "https://example.com/reference.png"}}) is None
    payload = {"input": {"url": "echo"}, "result": {"url": "https://fal.media/out.png"}}
    assert extract_image_url(payload) == "https://fal.media/out.png"
