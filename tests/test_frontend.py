"""Static checks on the Streamlit script (it cannot run without a browser session)."""

import ast
from pathlib import Path

MAIN = Path(__file__).resolve().parent.parent / "app" / "main.py"


def _bar_chart_calls():
    tree = ast.parse(MAIN.read_text(encoding="utf-8"))
    return [
        node for node in ast.walk(tree)
        if isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr == "bar_chart"
    ]


class TestCharts:
    def test_every_bar_chart_keeps_data_order(self):
        """Month series are oldest first and categories largest first, so charts must not re-sort."""
        calls = _bar_chart_calls()
        assert len(calls) == 3
        for call in calls:
            sort = {kw.arg: kw.value for kw in call.keywords}.get("sort")
            assert isinstance(sort, ast.Constant) and sort.value is False, ast.unparse(call)

    def test_category_chart_is_keyed_by_category(self):
        category_chart = [c for c in _bar_chart_calls() if "'Amount'" in ast.unparse(c)]
        assert len(category_chart) == 1
        source = ast.unparse(category_chart[0])
        assert "e['category']" in source
        assert "e['name']" not in source
