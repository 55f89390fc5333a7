import pytest

from notekeeper.api.errors import ValidationError
from notekeeper.api.validation import (
    normalize_tags,
    validate_color,
    validate_content,
    validate_email,
    validate_name,
    validate_password,
    validate_title,
)


class TestTitleAndContent:
    def test_title_is_trimmed(self):
        assert validate_title("  Shopping ") == "Shopping"

    @pytest.mark.parametrize("title", [None, "", "   ", "x" * 101])
    def test_bad_titles(self, title):
        with pytest.raises(ValidationError):
            validate_title(title)

    def test_title_at_limit(self):
        assert validate_title("x" * 100) == "x" * 100

    def test_content_bounds(self):
        assert validate_content("x" * 5000) == "x" * 5000
        with pytest.raises(ValidationError, match="5000"):
            validate_content("x" * 5001)
        with pytest.raises(ValidationError):
            validate_content("")

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError, match="must be a string"):
            validate_content(42)


class TestColor:
    @pytest.mark.parametrize("color", ["#ffffff", "#A1b2C3", "#000000"])
    def test_valid(self, color):
        assert validate_color(color) == color

    @pytest.mark.parametrize("color", ["notacolor", "ffffff", "#fff", "#ggggggg", "#12345g"])
    def test_invalid(self, color):
        with pytest.raises(ValidationError, match="hex color"):
            validate_color(color)


class TestTags:
    def test_none_is_empty(self):
        assert normalize_tags(None) == []

    def test_dedup_strip_sort(self):
        assert normalize_tags(["work", " home", "work", "", "  "]) == ["home", "work"]

    def test_tag_length(self):
        assert normalize_tags(["x" * 100]) == ["x" * 100]
        with pytest.raises(ValidationError, match="Tag cannot exceed 100"):
            normalize_tags([" " + "x" * 101])

    def test_plain_string_rejected(self):
        with pytest.raises(ValidationError):
            normalize_tags("work")


class TestUserFields:
    def test_email_lowercased(self):
        assert validate_email("  Ann@X.com ") == "ann@x.com"

    @pytest.mark.parametrize("email", ["", "ann", "ann@", "@x.com", None])
    def test_bad_email(self, email):
        with pytest.raises(ValidationError):
            validate_email(email)

    def test_password_min_length(self):
        assert validate_password("secret") == "secret"
        with pytest.raises(ValidationError, match="at least 6"):
            validate_password("short")

    def test_name(self):
        assert validate_name(" Ann ") == "Ann"
        with pytest.raises(ValidationError):
            validate_name(" ")
