"""
Unit tests for HTTP kernel middleware resolution.
"""

import threading

import pytest

from corewright.http.kernel import (
    HttpKernel,
    InvalidMiddlewareExclusionError,
    UnknownMiddlewareGroupError,
)
from corewright.http.parsed_middleware import ParsedMiddleware
from corewright.http.route_middleware import Dispatched, RouteMiddlewareRegistry

from conftest import ExampleKernel


def signatures(resolved) -> list[str]:
    return [m.signature for m in resolved]


class SpyRegistry(RouteMiddlewareRegistry):
    """Registry that counts lookups."""

    def __init__(self) -> None:
        super().__init__()
        self.lookups = 0

    def get(self, server, route, method):
        self.lookups += 1
        return super().get(server, route, method)


class TestResolution:
    """Tests for the resolution algorithm."""

    def test_global_middleware_for_unmatched_request(self, example_kernel):
        resolved = example_kernel.get_middleware_for_request(Dispatched.not_found())

        assert signatures(resolved) == ["TrimStrings", "ValidatePostSize"]
        assert all(isinstance(m, ParsedMiddleware) for m in resolved)

    def test_route_middleware_follows_global(self, kernel, route_middleware):
        kernel.set_global_middleware(["A"])
        route_middleware.add("http", "users.index", "get", ["B", "C"])

        resolved = kernel.get_middleware_for_request(Dispatched(True, "users.index", "GET"))

        assert signatures(resolved) == ["A", "B", "C"]

    def test_duplicates_keep_first_position(self, kernel):
        resolved = kernel.resolve_middleware(["A", "B", "A"])

        assert signatures(resolved) == ["A", "B"]

    def test_different_parameters_are_distinct(self, kernel):
        resolved = kernel.resolve_middleware(["cache:60", "cache:120", "cache:60"])

        assert signatures(resolved) == ["cache:60", "cache:120"]

    def test_alias_target_carries_its_own_parameters(self, kernel):
        kernel.set_middleware_aliases({"admin": "auth:admin"})

        resolved = kernel.resolve_middleware(["admin"])

        assert resolved == [ParsedMiddleware("auth", ("admin",))]

    def test_alias_is_substituted_with_parameters(self, example_kernel):
        resolved = example_kernel.resolve_middleware(["throttle:10,1"])

        assert resolved == [ParsedMiddleware("ThrottleRequests", ("10", "1"))]

    def test_group_expands_in_place_with_member_aliases(self, example_kernel, route_middleware):
        route_middleware.add("http", "users.index", "GET", ["web", "auth"])

        resolved = example_kernel.get_middleware_for_request(
            Dispatched(True, "users.index", "GET")
        )

        assert signatures(resolved) == [
            "TrimStrings",
            "ValidatePostSize",
            "EncryptCookies",
            "StartSession",
            "Authenticate",
            "VerifyCsrfToken",
        ]

    def test_group_member_alias_keeps_parameters(self, example_kernel):
        resolved = example_kernel.resolve_middleware(["api"])

        assert signatures(resolved) == ["ThrottleRequests:60,1", "Bindings"]

    def test_alias_target_is_not_expanded_as_group(self, kernel):
        kernel.set_middleware_groups({"web": ["A", "B"]})
        kernel.set_middleware_aliases({"site": "web"})

        assert signatures(kernel.resolve_middleware(["site"])) == ["web"]


class TestExclusions:
    """Tests for route exclusions."""

    def test_excluded_alias_removes_target(self, example_kernel, route_middleware, route_exclusions):
        route_middleware.add("http", "hook", "POST", ["web"])
        route_exclusions.add("http", "hook", "POST", ["csrf"])

        resolved = example_kernel.get_middleware_for_request(Dispatched(True, "hook", "POST"))

        assert "VerifyCsrfToken" not in [m.name for m in resolved]
        assert "StartSession" in [m.name for m in resolved]

    def test_excluded_group_removes_members(self, example_kernel, route_middleware, route_exclusions):
        route_middleware.add("http", "hook", "POST", ["web", "auth"])
        route_exclusions.add("http", "hook", "POST", ["web"])

        resolved = example_kernel.get_middleware_for_request(Dispatched(True, "hook", "POST"))

        assert signatures(resolved) == ["TrimStrings", "ValidatePostSize", "Authenticate"]

    def test_exclusion_removes_every_parameterization(self, example_kernel):
        resolved = example_kernel.resolve_middleware(
            ["throttle:10,1", "ThrottleRequests:5", "Bindings"], excluded=["throttle"]
        )

        assert signatures(resolved) == ["Bindings"]

    def test_exclusion_with_parameters_is_rejected(self, example_kernel, route_middleware, route_exclusions):
        route_middleware.add("http", "hook", "POST", ["api"])
        route_exclusions.add("http", "hook", "POST", ["throttle:60,1"])

        with pytest.raises(InvalidMiddlewareExclusionError) as exc_info:
            example_kernel.get_middleware_for_request(Dispatched(True, "hook", "POST"))

        assert exc_info.value.middleware == "throttle:60,1"

    def test_expand_excluded_middleware(self, example_kernel):
        expanded = example_kernel.expand_excluded_middleware(["web", "auth", "Plain"])

        assert expanded == [
            "EncryptCookies",
            "StartSession",
            "VerifyCsrfToken",
            "Authenticate",
            "Plain",
        ]


    def test_excluding_the_only_group_leaves_nothing(self, kernel, route_middleware, route_exclusions):
        kernel.set_middleware_groups({"web": ["X", "Y"]})
        route_middleware.add("http", "home", "GET", ["web"])
        route_exclusions.add("http", "home", "GET", ["web"])

        resolved = kernel.get_middleware_for_request(Dispatched(True, "home", "GET"))

        assert resolved == ()


class TestPriority:
    """Tests for priority ordering."""

    def test_priority_reorders_listed_entries(self, kernel):
        kernel.set_middleware_priority(["Auth", "Throttle", "Verify"])

        ordered = kernel.sort_middleware(
            [ParsedMiddleware(name) for name in ["Verify", "Auth", "Throttle"]]
        )

        assert signatures(ordered) == ["Auth", "Throttle", "Verify"]

    def test_unlisted_entries_are_kept(self, kernel):
        kernel.set_middleware_priority(["Auth", "Throttle", "Verify"])
        kernel.set_global_middleware(["Verify", "Log", "Auth", "Throttle:5"])

        resolved = kernel.get_middleware_for_request(Dispatched.not_found())

        assert signatures(resolved) == ["Auth", "Throttle:5", "Verify", "Log"]

    def test_already_ordered_is_untouched(self, kernel):
        kernel.set_middleware_priority(["A", "B"])
        middleware = [ParsedMiddleware(name) for name in ["X", "A", "Y", "B", "Z"]]

        assert kernel.sort_middleware(middleware) == middleware

    def test_priority_map_index(self, example_kernel):
        assert example_kernel.priority_map_index("Authenticate") == 1
        assert example_kernel.priority_map_index("Unknown") is None

    def test_relative_priority_insertion(self, kernel):
        kernel.set_middleware_priority(["A", "B", "C"])

        kernel.add_to_middleware_priority_before(["B", "C"], "X")
        kernel.add_to_middleware_priority_after(["A", "B"], "Y")

        assert kernel.get_middleware_priority() == ["A", "X", "B", "Y", "C"]

    def test_relative_priority_without_anchor(self, kernel):
        kernel.set_middleware_priority(["A"])

        kernel.add_to_middleware_priority_before("Missing", "First")
        kernel.add_to_middleware_priority_after("Missing", "Last")

        assert kernel.get_middleware_priority() == ["First", "A", "Last"]

    def test_existing_priority_entry_is_not_moved(self, kernel):
        kernel.set_middleware_priority(["A", "B"])

        kernel.add_to_middleware_priority_before("A", "B")
        kernel.prepend_to_middleware_priority("B")
        kernel.append_to_middleware_priority("A")

        assert kernel.get_middleware_priority() == ["A", "B"]


class TestCache:
    """Tests for the per-route resolution cache."""

    def test_keys_do_not_collide_across_servers_and_routes(self, route_middleware):
        kernel = HttpKernel("a", route_middleware, RouteMiddlewareRegistry())
        route_middleware.add("a_b", "c", "GET", ["One"])
        route_middleware.add("a", "b_c", "GET", ["Two"])

        first = kernel.resolve_for_request("a_b", "c", "GET", True)
        second = kernel.resolve_for_request("a", "b_c", "GET", True)

        assert signatures(first) == ["One"]
        assert signatures(second) == ["Two"]

    def test_second_resolution_is_served_from_cache(self):
        registry = SpyRegistry()
        kernel = HttpKernel("http", registry, RouteMiddlewareRegistry())
        registry.add("http", "home", "GET", ["A"])

        first = kernel.resolve_for_request("http", "home", "GET", True)
        second = kernel.resolve_for_request("http", "home", "GET", True)

        assert first is second
        assert registry.lookups == 1

    def test_unmatched_requests_share_one_entry(self):
        registry = SpyRegistry()
        kernel = HttpKernel("http", registry, RouteMiddlewareRegistry())

        first = kernel.resolve_for_request("http", "a", "GET", False)
        second = kernel.resolve_for_request("http", "b", "POST", False)

        assert first is second
        assert registry.lookups == 0

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda k: k.push_middleware("New"),
            lambda k: k.prepend_middleware("New"),
            lambda k: k.set_global_middleware(["New"]),
            lambda k: k.add_middleware_group("web", ["New"]),
            lambda k: k.append_middleware_to_group("web", "New"),
            lambda k: k.prepend_middleware_to_group("web", "New"),
            lambda k: k.set_middleware_groups({"web": ["New"]}),
            lambda k: k.set_middleware_aliases({"auth": "New"}),
            lambda k: k.set_middleware_priority(["New"]),
            lambda k: k.prepend_to_middleware_priority("New"),
            lambda k: k.append_to_middleware_priority("New"),
            lambda k: k.add_to_middleware_priority_before("StartSession", "New"),
            lambda k: k.add_to_middleware_priority_after("StartSession", "New"),
            lambda k: k.flush_middleware_cache(),
        ],
    )
    def test_mutators_invalidate_cache(self, example_kernel, mutate):
        before = example_kernel.get_middleware_for_request(Dispatched.not_found())

        assert mutate(example_kernel) in (example_kernel, None)
        after = example_kernel.get_middleware_for_request(Dispatched.not_found())

        assert after is not before

    def test_pushed_middleware_shows_up(self, example_kernel):
        example_kernel.get_middleware_for_request(Dispatched.not_found())

        example_kernel.push_middleware("HandleCors")
        resolved = example_kernel.get_middleware_for_request(Dispatched.not_found())

        assert signatures(resolved)[-1] == "HandleCors"

    def test_concurrent_resolution_is_consistent(self, example_kernel, route_middleware):
        route_middleware.add("http", "users.index", "GET", ["web", "auth"])
        results = []

        def worker():
            results.append(
                example_kernel.get_middleware_for_request(Dispatched(True, "users.index", "GET"))
            )

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(result) for result in results}) == 1


class TestMutators:
    """Tests for the configuration mutators."""

    def test_push_and_prepend_skip_existing(self, example_kernel):
        example_kernel.push_middleware("TrimStrings")
        example_kernel.prepend_middleware("ValidatePostSize")
        example_kernel.prepend_middleware("First")

        assert example_kernel.get_global_middleware() == ["First", "TrimStrings", "ValidatePostSize"]
        assert example_kernel.has_middleware("First")

    def test_unknown_group_is_an_error(self, kernel):
        with pytest.raises(UnknownMiddlewareGroupError):
            kernel.prepend_middleware_to_group("missing", "A")
        with pytest.raises(UnknownMiddlewareGroupError):
            kernel.append_middleware_to_group("missing", "A")

    def test_add_middleware_group_extends(self, example_kernel):
        example_kernel.add_middleware_group("web", ["Extra"])
        example_kernel.add_middleware_group("admin", ["auth"])

        groups = example_kernel.get_middleware_groups()
        assert groups["web"][-1] == "Extra"
        assert groups["admin"] == ["auth"]

    def test_mutators_do_not_leak_into_class_tables(self, example_kernel):
        example_kernel.push_middleware("Extra")
        example_kernel.append_middleware_to_group("web", "Extra")

        assert "Extra" not in ExampleKernel.middleware
        assert "Extra" not in ExampleKernel.middleware_groups["web"]
        assert ExampleKernel().get_global_middleware() == ["TrimStrings", "ValidatePostSize"]

    def test_getters_return_copies(self, example_kernel):
        example_kernel.get_global_middleware().append("Nope")
        example_kernel.get_middleware_aliases()["nope"] = "Nope"

        assert "Nope" not in example_kernel.get_global_middleware()
        assert "nope" not in example_kernel.get_middleware_aliases()
