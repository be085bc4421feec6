from shared.security.admin import is_admin, normalize_address


def test_normalizes_channel_suffix_and_formatting():
    assert normalize_address("94771234567@c.us") == "94771234567"
    assert normalize_address("+94 77-123 4567") == "94771234567"
    assert normalize_address("(077) 123 4567", "94") == "94771234567"


def test_same_number_in_different_shapes_is_admin():
    assert is_admin("94771234567@c.us", "0771234567", "94")
    assert is_admin("+94 77 123 4567", "94771234567", "94")


def test_substring_of_admin_number_is_not_admin():
    assert not is_admin("4567", "94771234567", "94")
    assert not is_admin("947712345678", "94771234567", "94")


def test_unconfigured_admin_grants_nobody():
    assert not is_admin("94771234567", "", "94")
    assert not is_admin("", "", "94")
    assert not is_admin(None, None)
