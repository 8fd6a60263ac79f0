import pytest
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list


class TestParseStringList:
    @pytest.mark.parametrize(
        "value",
        [
            '["http://a.com","http://b.com"]',
            " http://a.com , http://b.com ",
            "http://a.com,,http://b.com,",
            ["http://a.com", "http://b.com"],
        ],
    )
    def test_accepted_forms(self, value):
        assert parse_string_list(value) == ["http://a.com", "http://b.com"]

    @pytest.mark.parametrize("value", ["", ",", ",,,", "[]", []])
    def test_empty_raises(self, value):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(value)

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not valid json")

    def test_non_string_items_raise(self):
        with pytest.raises(ValueError, match="must be an array of strings"):
            parse_string_list('["http://a.com", 123]')


class _Example(BaseSettings):
    cors_origins: list[str]
    tags: list[str]


class TestStringListEnvSettingsSource:
    def test_list_field_left_raw(self):
        source = StringListEnvSettingsSource(_Example)
        field = _Example.model_fields["cors_origins"]

        assert source.prepare_field_value("cors_origins", field, "a,b", True) == "a,b"

    def test_other_fields_json_decoded(self):
        source = StringListEnvSettingsSource(_Example)
        field = _Example.model_fields["tags"]

        assert source.prepare_field_value("tags", field, '["x"]', True) == ["x"]
