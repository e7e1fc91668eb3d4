import pytest

from jbossctl.execution.properties import definition_arguments, expand_variables, parse_property_pairs


def test_definition_arguments_preserve_order_without_substitutions():
    assert definition_arguments("foo=bar baz=qux", env={}) == ["-Dfoo=bar", "-Dbaz=qux"]


@pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
def test_blank_properties_yield_no_definitions(text):
    assert definition_arguments(text, env={}) == []


def test_quoted_values_keep_embedded_spaces():
    pairs = parse_property_pairs('greeting="hello world" path=/opt/my\\ app')

    assert pairs == [("greeting", "hello world"), ("path", "/opt/my app")]


def test_value_may_contain_equals_sign():
    assert definition_arguments("jdbc.url=jdbc:h2:mem:db;MODE=Oracle", env={}) == [
        "-Djdbc.url=jdbc:h2:mem:db;MODE=Oracle"
    ]


def test_token_without_separator_becomes_empty_value():
    assert parse_property_pairs("verbose") == [("verbose", "")]


def test_variables_are_expanded_before_parsing():
    env = {"BUILD_NUMBER": "42", "WORKSPACE": "/ws/my job"}

    args = definition_arguments('build=$BUILD_NUMBER dir="${WORKSPACE}/out"', env=env)

    assert args == ["-Dbuild=42", "-Ddir=/ws/my job/out"]


def test_unknown_variables_are_left_untouched():
    assert expand_variables("a=$MISSING b=${ALSO_MISSING}", env={}) == "a=$MISSING b=${ALSO_MISSING}"


def test_expansion_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("JBOSSCTL_TEST_PROFILE", "ci")

    assert definition_arguments("profile=$JBOSSCTL_TEST_PROFILE") == ["-Dprofile=ci"]


def test_unbalanced_quotes_are_rejected():
    with pytest.raises(ValueError, match="Unable to parse properties"):
        parse_property_pairs('a="unterminated')


def test_missing_key_is_rejected():
    with pytest.raises(ValueError, match="has no key"):
        parse_property_pairs("=value")
