"""Unit tests for source code context resolution."""

import os
from pathlib import Path

import pytest

from logsift.core.context import (
    CodeContextResolver,
    SourceReadError,
    extract_class_fields,
    find_enclosing_method,
)
from logsift.tests.samples import ORDER_SERVICE_SOURCE, write_order_service


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "src" / "main" / "java"
    write_order_service(root)
    return root


@pytest.fixture
def resolver(source_root: Path) -> CodeContextResolver:
    return CodeContextResolver([source_root])


class TestFindSourceFile:
    def test_maps_class_name_to_path(self, resolver: CodeContextResolver, source_root: Path) -> None:
        path = resolver.find_source_file("com.example.OrderService")

        assert path == source_root / "com" / "example" / "OrderService.java"

    def test_inner_class_maps_to_outer_file(self, resolver: CodeContextResolver) -> None:
        path = resolver.find_source_file("com.example.OrderService$Validator")

        assert path is not None
        assert path.name == "OrderService.java"

    def test_missing_class(self, resolver: CodeContextResolver) -> None:
        assert resolver.find_source_file("com.example.Missing") is None
        assert resolver.find_source_file(None) is None

    @pytest.mark.parametrize("class_name", ["$Proxy12", ".", "com.example.", "..$Lambda$3"])
    def test_names_without_a_file_part(
        self, resolver: CodeContextResolver, class_name: str
    ) -> None:
        assert resolver.find_source_file(class_name) is None
        assert resolver.resolve_by_class(class_name, 5) is None

    def test_first_root_wins(self, tmp_path: Path) -> None:
        first = tmp_path / "first"
        second = tmp_path / "second"
        write_order_service(first)
        write_order_service(second)

        resolver = CodeContextResolver([first, second])

        assert resolver.find_source_file("com.example.OrderService").is_relative_to(first)

    def test_custom_extensions(self, tmp_path: Path) -> None:
        (tmp_path / "com" / "example").mkdir(parents=True)
        (tmp_path / "com" / "example" / "Billing.kt").write_text("class Billing\n")

        resolver = CodeContextResolver([tmp_path], source_extensions=[".java", ".kt"])

        assert resolver.find_source_file("com.example.Billing").name == "Billing.kt"

    def test_find_by_file_name(self, resolver: CodeContextResolver) -> None:
        path = resolver.find_source_file_by_name("OrderService.java")

        assert path is not None
        assert path.read_text() == ORDER_SERVICE_SOURCE
        assert resolver.find_source_file_by_name("Nope.java") is None

    def test_missing_root_is_ignored(self, tmp_path: Path, source_root: Path) -> None:
        resolver = CodeContextResolver([tmp_path / "does-not-exist", source_root])

        assert resolver.find_source_file_by_name("OrderService.java") is not None


class TestResolveContext:
    """Tests for extracting context around a line."""

    def test_line_inside_method(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 23)

        assert context is not None
        assert context.target_line == 23
        assert context.class_name == "OrderService"
        assert context.method_name == "processOrder"
        assert "public Order processOrder(String orderId) {" in context.method_body
        assert context.method_body.rstrip().endswith("}")
        assert "getOrdersByCustomer" not in context.method_body

    def test_window_is_clamped(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 23)

        assert context.start_line == 13
        assert context.end_line == 32
        assert len(context.surrounding_lines) == 20
        assert context.surrounding_lines[23 - 13].strip().startswith("String customerEmail")

    def test_small_window(self, source_root: Path) -> None:
        resolver = CodeContextResolver([source_root], context_lines=2)

        context = resolver.resolve_by_class("com.example.OrderService", 2)

        assert (context.start_line, context.end_line) == (1, 4)

    def test_imports_and_fields(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 23)

        assert context.imports == ("import java.util.List;", "import java.util.Optional;")
        assert context.class_fields == (
            "private final OrderRepository repository;",
            "private final PaymentService paymentService;",
        )

    def test_constructor_is_enclosing_method(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 12)

        assert context.method_name == "OrderService"

    def test_generic_return_type(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 30)

        assert context.method_name == "getOrdersByCustomer"

    def test_line_outside_any_method(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 8)

        assert context is not None
        assert context.class_name == "OrderService"
        assert context.method_name is None
        assert context.method_body is None

    @pytest.mark.parametrize("line", [0, -1, 9999])
    def test_line_out_of_range(self, resolver: CodeContextResolver, line: int) -> None:
        assert resolver.resolve_by_class("com.example.OrderService", line) is None

    def test_unknown_class(self, resolver: CodeContextResolver) -> None:
        assert resolver.resolve_by_class("com.example.Missing", 10) is None

    def test_resolve_by_file_name(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_file_name("OrderService.java", 23)

        assert context.method_name == "processOrder"

    def test_formatted_context_marks_target(self, resolver: CodeContextResolver) -> None:
        context = resolver.resolve_by_class("com.example.OrderService", 23)

        marked = [line for line in context.formatted_context().splitlines() if ">>>" in line]
        assert len(marked) == 1
        assert "  23 | " in marked[0]
        assert "String customerEmail" in marked[0]

    @pytest.mark.skipif(
        os.name != "posix" or os.geteuid() == 0, reason="needs unreadable files"
    )
    def test_unreadable_file_raises(self, resolver: CodeContextResolver, source_root: Path) -> None:
        path = source_root / "com" / "example" / "OrderService.java"
        path.chmod(0)
        try:
            with pytest.raises(SourceReadError) as excinfo:
                resolver.resolve_from_file(path, 1)
        finally:
            path.chmod(0o644)

        assert excinfo.value.path == path
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_directory_read_raises(self, resolver: CodeContextResolver, tmp_path: Path) -> None:
        with pytest.raises(SourceReadError):
            resolver.resolve_from_file(tmp_path, 1)

    def test_negative_context_lines_rejected(self, source_root: Path) -> None:
        with pytest.raises(ValueError):
            CodeContextResolver([source_root], context_lines=-1)


class TestBraceScanning:
    """Edge cases of the line and brace heuristics."""

    def test_allman_braces(self) -> None:
        lines = [
            "class Worker",
            "{",
            "    private int count;",
            "    void run()",
            "    {",
            "        count++;",
            "    }",
            "}",
        ]

        assert find_enclosing_method(lines, 6) == ("run", 4, 7)
        assert extract_class_fields(lines, "Worker") == ["private int count;"]

    def test_unclosed_method_runs_to_end_of_file(self) -> None:
        lines = ["class A {", "  void broken() {", "    call();", "    more();"]

        assert find_enclosing_method(lines, 3) == ("broken", 2, 4)

    def test_control_statements_are_not_methods(self) -> None:
        lines = [
            "class A {",
            "  void work(int x) {",
            "    if (x > 0) {",
            "      return compute(x);",
            "    }",
            "  }",
            "}",
        ]

        assert find_enclosing_method(lines, 4) == ("work", 2, 6)

    @pytest.mark.parametrize("target", [8, 11])
    def test_assert_and_yield_are_not_methods(self, target: int) -> None:
        lines = [
            "public class OrderService {",
            "",
            "    public Order processOrder(String orderId) {",
            "        Order order = repository.findById(orderId);",
            "        assert isValid(order);",
            "        yield compute(order);",
            "        if (order.isEmpty()) {",
            "            throw new IllegalStateException(\"empty\");",
            "        }",
            "",
            "        return order;",
            "    }",
            "}",
        ]

        assert find_enclosing_method(lines, target) == ("processOrder", 3, 12)
