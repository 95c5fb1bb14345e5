from unittest.mock import Mock

from urit.matcher import match_parts
from urit.options import FixedMatchOption, MatchOptions, VarMatchOption
from urit.parser import parse_template
from urit.path_vars import VarsType


class Lower(VarMatchOption):
    def applicable(self, value, context):
        return context.name == "code"

    def match(self, value, context):
        return value.lower()


class RejectEmpty(VarMatchOption):
    def applicable(self, value, context):
        return True

    def match(self, value, context):
        return value or None


def match(template: str, path: str, options: MatchOptions | None = None):
    parsed = parse_template(template)
    kind = VarsType.POSITIONS if parsed.positional_count else VarsType.NAMES
    return match_parts(parsed.parts, path, kind, options)


class TestMatchParts:
    def test_fixed_parts_match_exactly(self):
        # Arrange & Act
        result = match("/users/list", "/users/list")

        # Assert
        assert result is not None
        assert len(result) == 0

    def test_segment_count_must_agree(self):
        assert match("/users/{id}", "/users") is None
        assert match("/users/{id}", "/users/1/posts") is None

    def test_variable_regex_is_checked(self):
        assert match("/users/{id:[0-9]+}", "/users/42").get("id") == "42"
        assert match("/users/{id:[0-9]+}", "/users/abc") is None

    def test_positional_vars(self):
        # Arrange & Act
        result = match("/credits/?/?", "/credits/2022/11")

        # Assert
        assert result.kind is VarsType.POSITIONS
        assert [result.get(0), result.get(1)] == ["2022", "11"]

    def test_composite_vars_follow_template_order(self):
        # Arrange & Act
        result = match("/{z}-{a}", "/foo-bar")

        # Assert
        assert [var.name for var in result] == ["z", "a"]
        assert result.get("z") == "foo"
        assert result.get("a") == "bar"

    def test_composite_with_patterns(self):
        # Arrange & Act
        result = match("/files/{name:[a-z]+}.{ext:(txt|md)}", "/files/readme.md")

        # Assert
        assert result.get("name") == "readme"
        assert result.get("ext") == "md"
        assert match("/files/{name:[a-z]+}.{ext:(txt|md)}", "/files/readme.pdf") is None

    def test_composite_fixed_pieces_are_literal(self):
        assert match("/{name}.{ext}", "/readmeXmd") is None

    def test_var_option_rewrites_value(self):
        # Arrange
        options = MatchOptions(vars=(Lower(),))

        # Act
        result = match("/codes/{code}/{other}", "/codes/ABC/DEF", options)

        # Assert
        assert result.get("code") == "abc"
        assert result.get("other") == "DEF"

    def test_var_option_rejection_fails_composite(self):
        # Arrange
        options = MatchOptions(vars=(RejectEmpty(),))

        # Act & Assert
        assert match("/{name}.{ext}", "/readme.", options) is None
        assert match("/{name}.{ext}", "/readme.", None) is not None

    def test_repeated_names_get_occurrence_positions(self):
        # Arrange & Act
        result = match("/{id}/x/{id}", "/1/x/2")

        # Assert
        assert result.get("id", 0) == "1"
        assert result.get_named_last("id") == "2"
        assert result.all()[1].named_position == 1

    def test_path_with_empty_inner_segment_does_not_match(self):
        assert match("/a/{b}/c", "/a//c") is None

    def test_fixed_option_receives_segment_details(self):
        # Arrange
        option = Mock(spec=FixedMatchOption)
        option.match.return_value = True

        # Act
        result = match("/{id}/users", "/1/people", MatchOptions(fixed=(option,)))

        # Assert
        assert result is not None
        value, expected, path_position, vars = option.match.call_args.args
        assert (value, expected, path_position) == ("people", "users", 1)
        assert vars.get("id") == "1"

    def test_var_option_receives_context(self):
        # Arrange
        option = Mock(spec=VarMatchOption)
        option.applicable.return_value = True
        option.match.side_effect = lambda value, context: value

        # Act
        options = MatchOptions(vars=(option,))
        result = match("/files/{name:[a-z]+}.{ext}", "/files/a.txt", options)

        # Assert
        assert result is not None
        contexts = [call.args[1] for call in option.match.call_args_list]
        assert [(c.name, c.position, c.path_position) for c in contexts] == [
            ("name", 0, 1),
            ("ext", 1, 1),
        ]
        assert contexts[0].pattern == "[a-z]+"

    def test_trailing_newline_does_not_satisfy_pattern(self):
        assert match("/users/{id:[0-9]+}", "/users/42\n") is None

    def test_composite_pattern_rejects_trailing_newline(self):
        assert match("/{a:[a-z]+}-{b:[a-z]+}", "/foo-bar\n") is None

    def test_composite_keeps_every_character(self):
        # Arrange & Act
        result = match("/{a}-{b}", "/foo-bar\n")

        # Assert
        assert result.get("a") == "foo"
        assert result.get("b") == "bar\n"
