import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest
from starlette.requests import Request

from urit.errors import PathBuildError, TemplateParseError
from urit.headers import Headers
from urit.options import CASE_INSENSITIVE_FIXED, MatchOptions
from urit.parts import Composite, Fixed, OnceCell
from urit.path_vars import PathVar, PathVars, VarsType
from urit.query_params import QueryParams
from urit.template import Template

CASE_INSENSITIVE = MatchOptions(fixed=(CASE_INSENSITIVE_FIXED,))


def starlette_request(path: str, query_string: bytes = b"") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "server": ("testserver", 80),
            "root_path": "",
            "path": path,
            "query_string": query_string,
            "headers": [],
        }
    )


class TestTemplateParse:
    def test_introspection(self):
        # Arrange & Act
        template = Template.parse("/users/{id:[0-9]+}/posts/{pid}")

        # Assert
        assert template.original_template == "/users/{id:[0-9]+}/posts/{pid}"
        assert template.named_count == 2
        assert template.positional_count == 0
        assert template.vars_type is VarsType.NAMES
        assert str(template) == "/users/{id:[0-9]+}/posts/{pid}"

    def test_positional_vars_type(self):
        assert Template.parse("/users/?").vars_type is VarsType.POSITIONS

    def test_template_without_vars_uses_names(self):
        assert Template.parse("/users").vars_type is VarsType.NAMES

    def test_template_without_patterns(self):
        # Arrange
        template = Template.parse("/users/{id:[0-9]+}/{name}.{ext:[a-z]+}")

        # Act & Assert
        assert template.template() == "/users/{id:[0-9]+}/{name}.{ext:[a-z]+}"
        assert template.template(remove_patterns=True) == "/users/{id}/{name}.{ext}"

    def test_vars_lists_occurrences(self):
        # Arrange
        template = Template.parse("/{a}/{b}.{a}")

        # Act
        result = template.vars()

        # Assert
        assert result == [
            PathVar(name="a", named_position=0, position=0),
            PathVar(name="b", named_position=0, position=1),
            PathVar(name="a", named_position=1, position=2),
        ]

    def test_invalid_template(self):
        with pytest.raises(TemplateParseError):
            Template.parse("/users/{id")

    def test_mixed_kinds(self):
        with pytest.raises(TemplateParseError):
            Template.parse("/users/?/{id}")

    def test_equality(self):
        assert Template.parse("/a/{b}") == Template.parse("a/{b}")
        assert Template.parse("/a/{b}") != Template.parse("/a/{c}")
        assert hash(Template.parse("/a/{b}")) == hash(Template.parse("/a/{b}"))


class TestTemplateMatches:
    def test_named(self):
        # Arrange
        template = Template.parse("/credits/{year:[0-9]{4}}/{month:[0-9]{2}}")

        # Act
        vars = template.matches("/credits/2022/11")

        # Assert
        assert vars.get("year") == "2022"
        assert vars.get("month") == "11"

    def test_no_match(self):
        # Arrange
        template = Template.parse("/users/{id:[0-9]+}")

        # Act & Assert
        assert template.matches("/users/abc") is None
        assert template.matches("/accounts/42") is None

    def test_all_fixed_match_is_empty_but_not_none(self):
        # Arrange & Act
        vars = Template.parse("/health").matches("/health")

        # Assert
        assert vars is not None
        assert len(vars) == 0

    def test_query_and_fragment_are_ignored(self):
        # Arrange
        template = Template.parse("/users/{id}")

        # Act
        vars = template.matches("/users/42?expand=true#top")

        # Assert
        assert vars.get("id") == "42"

    def test_trailing_slash_is_ignored(self):
        assert Template.parse("/users/{id}").matches("/users/42/").get("id") == "42"

    def test_path_is_percent_decoded(self):
        assert Template.parse("/files/{name}").matches("/files/a%20b").get("name") == (
            "a b"
        )

    def test_case_insensitive_fixed_from_template(self):
        # Arrange
        template = Template.parse("/Users/{id}", options=CASE_INSENSITIVE)

        # Act & Assert
        assert template.matches("/users/1") is not None
        assert template.matches("/USERS/1") is not None

    def test_case_insensitive_fixed_per_call(self):
        # Arrange
        template = Template.parse("/Users/{id}")

        # Act & Assert
        assert template.matches("/users/1") is None
        assert template.matches("/users/1", CASE_INSENSITIVE) is not None

    def test_matches_url(self):
        # Arrange
        template = Template.parse("/users/{id}")
        url = httpx.URL("https://example.com/users/42?x=1")

        # Act
        vars = template.matches_url(url)

        # Assert
        assert vars.get("id") == "42"

    def test_matches_httpx_request(self):
        # Arrange
        template = Template.parse("/users/{id}")
        request = httpx.Request("GET", "https://example.com/users/42")

        # Act
        vars = template.matches_request(request)

        # Assert
        assert vars.get("id") == "42"

    def test_matches_starlette_request(self):
        # Arrange
        template = Template.parse("/users/?")
        request = starlette_request("/users/42", b"x=1")

        # Act
        vars = template.matches_request(request)

        # Assert
        assert vars.kind is VarsType.POSITIONS
        assert vars.get(0) == "42"


class TestTemplateBuild:
    def test_path_from(self):
        # Arrange
        template = Template.parse("/foo/{foo-id:[a-z]*}/bar/{bar-id:[0-9]*}")

        # Act
        path = template.path_from(PathVars.named(**{"foo-id": "abc", "bar-id": 123}))

        # Assert
        assert path == "/foo/abc/bar/123"

    def test_path_from_with_host_and_query(self):
        # Arrange
        template = Template.parse("/users/{id}")

        # Act
        path = template.path_from(
            PathVars.named(id=42),
            host="https://api.example.com",
            query=QueryParams({"expand": True}),
        )

        # Assert
        assert path == "https://api.example.com/users/42?expand=true"

    def test_path_from_missing_var(self):
        with pytest.raises(PathBuildError):
            Template.parse("/users/{id}").path_from(PathVars.named())

    def test_request_from(self):
        # Arrange
        template = Template.parse("/users/{id}")

        # Act
        request = template.request_from(
            "POST",
            PathVars.named(id=42),
            b'{"name":"Jerry"}',
            host="https://api.example.com",
            headers=Headers({"X-Request-Id": 7}),
        )

        # Assert
        assert isinstance(request, httpx.Request)
        assert request.method == "POST"
        assert str(request.url) == "https://api.example.com/users/42"
        assert request.headers["X-Request-Id"] == "7"
        assert request.content == b'{"name":"Jerry"}'

    def test_request_from_bad_header(self):
        # Arrange
        template = Template.parse("/users")

        # Act & Assert
        with pytest.raises(PathBuildError, match="header problem"):
            template.request_from(
                "GET",
                None,
                host="https://api.example.com",
                headers=Headers({"X-Bad": object()}),
            )

    @pytest.mark.parametrize(
        "text,vars",
        [
            ("/users/{id:[0-9]+}", PathVars.named(id=42)),
            ("/credits/?/?", PathVars.positional(2022, 11)),
            ("/files/{name:[a-z]+}.{ext}", PathVars.named(name="readme", ext="md")),
            ("/{id}/x/{id}", PathVars.named(("id", "a"), ("id", "b"))),
        ],
    )
    def test_built_paths_match_back(self, text, vars):
        # Arrange
        template = Template.parse(text)

        # Act
        matched = template.matches(template.path_from(vars))

        # Assert
        assert matched is not None
        assert matched.to_dict() == vars.to_dict()


class TestTemplateSub:
    def test_sub_path_matches_combined_path(self):
        # Arrange
        template = Template.parse("/foo").sub("/bar/{id}")

        # Act
        vars = template.matches("/foo/bar/42")

        # Assert
        assert template.original_template == "/foo/bar/{id}"
        assert vars.get("id") == "42"

    def test_sub_does_not_change_original(self):
        # Arrange
        base = Template.parse("/foo")

        # Act
        base.sub("/bar")

        # Assert
        assert base.parts == (Fixed("foo"),)
        assert base.original_template == "/foo"

    def test_sub_merges_trailing_slash(self):
        # Arrange & Act
        template = Template.parse("/foo/").sub("bar")

        # Assert
        assert template.original_template == "/foo/bar"

    def test_sub_counts_vars(self):
        # Arrange & Act
        template = Template.parse("/a/?").sub("/b/?")

        # Assert
        assert template.positional_count == 2
        assert template.path_from(PathVars.positional(1, 2)) == "/a/1/b/2"

    def test_sub_rejects_mixed_kinds(self):
        with pytest.raises(TemplateParseError):
            Template.parse("/a/?").sub("/{id}")

    def test_sub_keeps_match_options(self):
        # Arrange
        template = Template.parse("/Foo", options=CASE_INSENSITIVE).sub("/{id}")

        # Act & Assert
        assert template.matches("/FOO/1") is not None


class TestTemplateResolveTo:
    def test_empty_vars_is_identity(self):
        # Arrange
        template = Template.parse("/foo/{id:[0-9]+}/{name}.{ext}")

        # Act
        resolved = template.resolve_to(PathVars.named())

        # Assert
        assert resolved == template
        assert resolved.original_template == template.original_template

    def test_partial_resolution(self):
        # Arrange
        template = Template.parse("/users/{uid}/posts/{pid}")

        # Act
        resolved = template.resolve_to(PathVars.named(uid=7))

        # Assert
        assert resolved.original_template == "/users/7/posts/{pid}"
        assert resolved.named_count == 1
        assert resolved.path_from(PathVars.named(pid=9)) == "/users/7/posts/9"
        assert template.named_count == 2

    def test_composite_resolution(self):
        # Arrange
        template = Template.parse("/files/{name}.{ext}")

        # Act
        full = template.resolve_to(PathVars.named(name="a", ext="txt"))
        partial = template.resolve_to(PathVars.named(name="a"))

        # Assert
        assert full.parts[1] == Fixed("a.txt")
        assert full.original_template == "/files/a.txt"
        assert isinstance(partial.parts[1], Composite)
        assert partial.original_template == "/files/a.{ext}"

    def test_positional_resolution(self):
        # Arrange
        template = Template.parse("/a/?/b/?")

        # Act
        resolved = template.resolve_to(PathVars.positional("x"))

        # Assert
        assert resolved.original_template == "/a/x/b/?"
        assert resolved.positional_count == 1
        assert resolved.vars_type is VarsType.POSITIONS


class TestConcurrency:
    def test_once_cell_computes_once(self):
        # Arrange
        cell = OnceCell()
        calls = []
        barrier = threading.Barrier(8)

        def compute():
            calls.append(1)
            time.sleep(0.01)
            return object()

        def worker(_):
            barrier.wait()
            return cell.get(compute)

        # Act
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(worker, range(8)))

        # Assert
        assert len(calls) == 1
        assert all(result is results[0] for result in results)
        assert cell.is_set

    def test_shared_template_matches_from_many_threads(self):
        # Arrange
        template = Template.parse("/files/{name}.{ext}")
        paths = [f"/files/f{i}.txt" for i in range(50)]

        # Act
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(template.matches, paths))

        # Assert
        assert [r.get("name") for r in results] == [f"f{i}" for i in range(50)]


class TestTemplateResolveToSyntaxValues:
    def test_values_that_look_like_syntax_are_quoted(self):
        # Arrange
        template = Template.parse("/users/{id}/{name}")

        # Act
        resolved = template.resolve_to(PathVars.named(id="?", name="{x}"))

        # Assert
        assert resolved.original_template == "/users/'?'/'{x}'"
        assert resolved.parts == (Fixed("users"), Fixed("?"), Fixed("{x}"))
        assert resolved.positional_count == 0
        assert resolved.named_count == 0

    def test_resolved_text_parses_back_to_the_same_parts(self):
        # Arrange
        template = Template.parse("/files/{path}/{id}")
        resolved = template.resolve_to(PathVars.named(path="a/b"))

        # Act
        reparsed = Template.parse(resolved.original_template)

        # Assert
        assert reparsed == resolved
        assert reparsed.path_from(PathVars.named(id=1)) == "/files/a/b/1"

    def test_trailing_newline_in_path_does_not_match(self):
        # Arrange
        template = Template.parse("/users/{id:[0-9]+}")

        # Act & Assert
        assert template.matches("/users/42%0A") is None
