"""Table output node -- renders rows through the table widget pipeline."""

from typing import Any

from tabula.engine.session import TableSession
from tabula.nodes.base import BaseNode, NodeMeta, NodePort


def _rows_from_table(table: Any, columns: list[str] | None) -> list[dict]:
    """Row dicts from a column-oriented table object exposing ``to_dict()``."""
    data = table.to_dict()
    if columns is None:
        columns = list(table.columns) if hasattr(table, "columns") else list(data)
    n = len(table)
    return [{col: data[col][i] for col in columns} for i in range(n)]


class TableNode(BaseNode):
    meta = NodeMeta(
        id="table",
        label="Data Table",
        category="output",
        description="Display data as a sortable, multi-level table",
        inputs=[NodePort(name="in", description="Rows or dataframe to display")],
        outputs=[],
        config_schema={
            "type": "object",
            "properties": {
                "page_size": {"type": "integer", "title": "Page Size", "default": 100},
                "configuration": {
                    "type": "object",
                    "title": "Table Configuration",
                    "description": "tableStyle, columnConfig, defaultSort, treeConfig, expandConfig",
                },
            },
        },
    )

    def execute(self, inputs: dict[str, Any], config: dict[str, Any], env=None) -> dict[str, Any]:
        page_size = config.get("page_size", 100)

        # Pre-flattened rows (from streaming sources)
        if "rows" in inputs:
            rows = inputs["rows"] if isinstance(inputs["rows"], list) else []
        elif inputs.get("df") is not None:
            rows = _rows_from_table(inputs["df"], inputs.get("columns"))
        else:
            rows = []

        total = inputs.get("total", len(rows))
        session = TableSession(config.get("configuration"), rows[:page_size])
        return {
            "view": session.view().to_dict(),
            "total": total,
        }
