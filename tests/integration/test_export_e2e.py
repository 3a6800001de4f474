"""Integration tests for exporting a realistic descriptor graph.

These tests build a small API model (generic pagination, a tagged event
enum, types spread over several directories), export it to a temporary
directory and verify the complete file tree, the cross-directory imports
and the exact file contents.  The last test runs ``python -m tsbind`` in a
subprocess.
"""

from __future__ import annotations

import subprocess
import sys
import textwrap
from pathlib import Path

import pytest

from tsbind import (
    ContainerAttrs,
    ExportConfig,
    Exporter,
    GenericParameter,
    ImportExtension,
    OptionalMode,
    Shape,
    TypeDescriptor,
    field,
    variant,
)
from tsbind.templates import HEADER
from tsbind.types import BIGINT, NUMBER, STRING, GenericParam, Map, Option, Vec


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _api_model() -> dict[str, TypeDescriptor]:
    """Descriptors for a small order-tracking API."""
    money = TypeDescriptor.newtype("Money", BIGINT, docs="Amount in cents.")
    customer = TypeDescriptor.struct(
        "Customer",
        [
            field("customer_id", NUMBER),
            field("email", Option(STRING), optional=OptionalMode.OPTIONAL),
            field("labels", Map(STRING, STRING), flatten=True),
        ],
        attrs=ContainerAttrs(rename_all="camelCase", export_to="customers/"),
    )
    line = TypeDescriptor.struct(
        "OrderLine",
        [field("sku", STRING), field("quantity", NUMBER), field("price", money.ref())],
    )
    order = TypeDescriptor.struct(
        "Order",
        [
            field("id", NUMBER),
            field("customer", customer.ref()),
            field("lines", Vec(line.ref())),
        ],
        docs="A placed order.\n\nOrders are immutable once shipped.",
        attrs=ContainerAttrs(export_to="orders/"),
    )
    page = TypeDescriptor.struct(
        "Page",
        [field("items", Vec(GenericParam("T"))), field("next_cursor", Option(STRING))],
        generics=[GenericParameter(name="T")],
    )
    event = TypeDescriptor.enum(
        "OrderEvent",
        [
            variant("Placed", Shape.NEWTYPE, [field(None, order.ref())]),
            variant("Cancelled", Shape.STRUCT, [field("reason_code", NUMBER)]),
            variant("Shipped"),
        ],
        attrs=ContainerAttrs(tag="kind", content="payload", rename_all="snake_case", rename_all_fields="camelCase", export_to="orders/"),
    )
    feed = TypeDescriptor.newtype("EventFeed", page.ref(event.ref()))
    return {
        "money": money,
        "customer": customer,
        "line": line,
        "order": order,
        "page": page,
        "event": event,
        "feed": feed,
    }


def _tree(root: Path) -> list[str]:
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestExportGraph:
    """Export a whole graph and check what lands on disk."""

    def test_export_all_file_tree(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        model = _api_model()
        exporter = Exporter(ExportConfig(export_dir=Path("bindings")))

        results = exporter.export_all(model["feed"])

        assert all(result.ok for result in results)
        assert [result.name for result in results] == [
            "EventFeed", "Page", "OrderEvent", "Order", "Customer", "OrderLine", "Money",
        ]
        assert _tree(tmp_path) == [
            "bindings/EventFeed.ts",
            "bindings/Money.ts",
            "bindings/OrderLine.ts",
            "bindings/Page.ts",
            "customers/Customer.ts",
            "orders/Order.ts",
            "orders/OrderEvent.ts",
        ]

    def test_file_contents(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        model = _api_model()
        Exporter(ExportConfig(export_dir=Path("bindings"))).export_all(model["feed"])

        assert (tmp_path / "bindings" / "EventFeed.ts").read_text(encoding="utf-8") == (
            f"{HEADER}\n"
            'import type { Page } from "./Page";\n'
            'import type { OrderEvent } from "../orders/OrderEvent";\n'
            "\n"
            "export type EventFeed = Page<OrderEvent>;\n"
        )
        assert (tmp_path / "orders" / "Order.ts").read_text(encoding="utf-8") == (
            f"{HEADER}\n"
            'import type { Customer } from "../customers/Customer";\n'
            'import type { OrderLine } from "../bindings/OrderLine";\n'
            "\n"
            "/**\n"
            " * A placed order.\n"
            " *\n"
            " * Orders are immutable once shipped.\n"
            " */\n"
            "export type Order = { id: number, customer: Customer, lines: Array<OrderLine> };\n"
        )
        assert (tmp_path / "orders" / "OrderEvent.ts").read_text(encoding="utf-8") == (
            f"{HEADER}\n"
            'import type { Order } from "./Order";\n'
            "\n"
            'export type OrderEvent = { kind: "placed", payload: Order } '
            '| { kind: "cancelled", payload: { reasonCode: number } } | { kind: "shipped" };\n'
        )
        assert (tmp_path / "customers" / "Customer.ts").read_text(encoding="utf-8") == (
            f"{HEADER}\n"
            "\n"
            "export type Customer = { customerId: number, email?: string } & Record<string, string>;\n"
        )
        assert (tmp_path / "bindings" / "Money.ts").read_text(encoding="utf-8") == (
            f"{HEADER}\n\n/**\n * Amount in cents.\n */\nexport type Money = bigint;\n"
        )
        assert "export type Page<T> = { items: Array<T>, next_cursor: string | null };" in (
            tmp_path / "bindings" / "Page.ts"
        ).read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_export_many_esm(self, tmp_path: Path) -> None:
        model = _api_model()
        config = ExportConfig(export_dir=tmp_path / "web", import_extension=ImportExtension.JS)
        exporter = Exporter(config)
        results = await exporter.export_many([model["line"], model["money"], model["page"]])
        assert all(result.ok for result in results)
        text = (tmp_path / "web" / "OrderLine.ts").read_text(encoding="utf-8")
        assert 'import type { Money } from "./Money.js";' in text
        assert not list((tmp_path / "web").glob("*.lock"))

    def test_cli_subprocess(self, tmp_path: Path) -> None:
        (tmp_path / "shop_types.py").write_text(
            textwrap.dedent(
                """\
                from tsbind import TypeDescriptor, field
                from tsbind.types import NUMBER, STRING, Vec

                Tag = TypeDescriptor.struct("Tag", [field("label", STRING)])
                Product = TypeDescriptor.struct(
                    "Product", [field("id", NUMBER), field("tags", Vec(Tag.ref()))]
                )
                """
            ),
            encoding="utf-8",
        )
        completed = subprocess.run(
            [sys.executable, "-m", "tsbind", "shop_types:Product", "--out", "ts", "--recursive"],
            cwd=tmp_path,
            capture_output=True,
            text=True,
        )
        assert completed.returncode == 0, completed.stdout + completed.stderr
        assert _tree(tmp_path / "ts") == ["Product.ts", "Tag.ts"]
        assert 'import type { Tag } from "./Tag";' in (tmp_path / "ts" / "Product.ts").read_text(
            encoding="utf-8"
        )
