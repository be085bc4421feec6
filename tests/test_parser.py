from services.orchestrator.parser import parse_function_args, parse_function_calls


def test_extracts_all_tags_in_textual_order():
    text = "Sure! [FUNCTION:search_products:query=rose] then [FUNCTION:view_cart] done"
    calls = parse_function_calls(text)
    assert [c.name for c in calls] == ["search_products", "view_cart"]
    assert calls[0].kwargs == {"query": "rose"}
    assert calls[1].args == []
    assert calls[0].raw == "[FUNCTION:search_products:query=rose]"


def test_plain_text_has_no_calls():
    assert parse_function_calls("Hello! How can I help?") == []
    assert parse_function_calls("") == []


def test_positional_and_keyed_args():
    calls = parse_function_calls("[FUNCTION:add_to_cart:3:quantity=2]")
    assert calls[0].kwargs == {"arg0": "3", "quantity": "2"}


def test_name_is_lowercased_and_keys_lowercased():
    calls = parse_function_calls("[FUNCTION:Add_To_Cart:Product_ID=7]")
    assert calls[0].name == "add_to_cart"
    assert calls[0].kwargs == {"product_id": "7"}


def test_unterminated_tag_is_ignored():
    text = "[FUNCTION:view_cart\nand then [FUNCTION:clear_cart]"
    assert [c.name for c in parse_function_calls(text)] == ["clear_cart"]


def test_nested_brackets_do_not_swallow_next_tag():
    text = "[FUNCTION:broken [FUNCTION:browse_categories]"
    assert [c.name for c in parse_function_calls(text)] == ["browse_categories"]


def test_empty_name_is_dropped():
    assert parse_function_calls("[FUNCTION::x=1]") == []


def test_url_values_survive_colon_split():
    calls = parse_function_calls(
        "[FUNCTION:update_product_image:product_id=5:image_url=https://cdn.example.com/a.jpg]"
    )
    assert calls[0].kwargs == {"product_id": "5", "image_url": "https://cdn.example.com/a.jpg"}


def test_value_keeps_later_equals_signs():
    assert parse_function_args(["description=a=b"]) == {"description": "a=b"}


def test_blank_tokens_are_skipped_but_keep_positions():
    assert parse_function_args(["", " x "]) == {"arg1": "x"}
