"""Widget configuration -- parsing and defaults for the host's configuration object.

Hosts send loosely typed values (``"true"``/``"false"`` strings, numbers as
strings, column trees as JSON text, ``null`` groups). Parsing never fails:
bad values fall back to their defaults with a warning.
"""

import json
import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator, model_validator

from tabula.engine.columns import Column, parse_columns

logger = logging.getLogger(__name__)

# Config item types whose value is itself a list of config items
_NON_ATOMIC_TYPES = {"array", "object", "group", "colors", "menu", "modal", "rangeColor"}


def parse_bool(value: Any, default: bool = False) -> bool:
    """Coerce a host boolean, which may arrive as ``"true"``/``"false"``."""
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def reduce_config(config: Any) -> Any:
    """Fold a ``[{name, type, value}, ...]`` config list into a nested dict."""
    if not isinstance(config, list):
        return config
    result: dict[str, Any] = {}
    for item in config:
        if not isinstance(item, dict) or "name" not in item:
            continue
        item_type = item.get("type")
        if item_type and item_type not in _NON_ATOMIC_TYPES:
            result[item["name"]] = item.get("value")
        else:
            result[item["name"]] = reduce_config(item.get("value"))
    return result


def reduce_config_with_underline(config: Any) -> Any:
    """Legacy variant of :func:`reduce_config` using ``_name/_type/_value`` keys."""
    if not isinstance(config, list):
        return config
    result: dict[str, Any] = {}
    for item in config:
        if not isinstance(item, dict) or "_name" not in item:
            continue
        item_type = item.get("_type")
        if item_type and item_type not in _NON_ATOMIC_TYPES:
            result[item["_name"]] = item.get("_value")
        else:
            result[item["_name"]] = reduce_config_with_underline(item.get("_value"))
    return result


class ConfigGroup(BaseModel):
    """Base for configuration groups; accepts camelCase and snake_case keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_loose(cls, v: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields[info.field_name]
        if info.field_name.endswith("_fn"):
            if v is None or callable(v):
                return v
            logger.warning("Dropping non-callable %s of type %s", info.field_name, type(v).__name__)
            return None
        if v is None:
            return field.get_default(call_default_factory=True)
        if field.annotation is bool:
            return parse_bool(v, field.default)
        if field.annotation is int and not isinstance(v, int):
            try:
                return int(float(v))
            except (TypeError, ValueError):
                logger.warning("Invalid integer for %s: %r", info.field_name, v)
                return field.default
        if field.annotation is str and isinstance(v, (int, float)):
            return str(v)
        return v


class TableSettings(ConfigGroup):
    stripe: bool = False
    border: bool = True
    show_header: bool = Field(default=True, alias="showHeader")
    highlight_current_row: bool = Field(default=False, alias="highlightCurrentRow")
    empty_text: str = Field(default="No data", alias="emptyText")


class IndexColumnConfig(ConfigGroup):
    show: bool = Field(default=False, alias="showIndex")
    label: str = Field(default="#", alias="indexLabel")
    start: int = Field(default=1, alias="indexStart")
    width: int = Field(default=60, alias="indexWidth")
    align: str = Field(default="center", alias="indexAlign")
    fixed: bool = Field(default=False, alias="indexFixed")


class ColumnConfig(ConfigGroup):
    columns: list[Column] = Field(default_factory=list)

    @field_validator("columns", mode="before")
    @classmethod
    def _parse_columns(cls, v: Any) -> list[Column]:
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError as exc:
                logger.warning("Unparsable column JSON: %s", exc)
                return []
        return parse_columns(v)


class DefaultSort(ConfigGroup):
    prop: str | None = None
    order: str | None = None


class TreeConfig(ConfigGroup):
    enabled: bool = False
    children_field: str = Field(default="children", alias="childrenField")
    indent: int = 16
    default_expand_all: bool = Field(default=False, alias="defaultExpandAll")
    # 0 = collapsed, N = first N levels, negative = everything
    default_expand_level: int = Field(default=0, alias="defaultExpandLevel")
    lazy: bool = False
    lazy_load_fn: Callable | None = Field(default=None, alias="lazyLoadFn")
    lazy_load_url: str | None = Field(default=None, alias="lazyLoadUrl")

    @model_validator(mode="after")
    def _url_loader(self) -> "TreeConfig":
        if self.lazy and self.lazy_load_fn is None and self.lazy_load_url:
            from tabula.engine.capabilities import http_children_loader

            self.lazy_load_fn = http_children_loader(self.lazy_load_url)
        return self


class ExpandConfig(ConfigGroup):
    enabled: bool = False
    accordion: bool = False
    default_expand_all: bool = Field(default=False, alias="defaultExpandAll")
    icon_column: str = Field(default="separate", alias="iconColumn")
    column_label: str = Field(default="", alias="columnLabel")
    column_width: int = Field(default=48, alias="columnWidth")
    expand_icon: str = Field(default="+", alias="expandIcon")
    collapse_icon: str = Field(default="-", alias="collapseIcon")
    expand_render_fn: Callable | None = Field(default=None, alias="expandRenderFn")


class AdvancedStyle(ConfigGroup):
    header_style_fn: Callable | None = Field(default=None, alias="headerStyleFn")
    header_cell_style_fn: Callable | None = Field(default=None, alias="headerCellStyleFn")
    header_cell_render_fn: Callable | None = Field(default=None, alias="headerCellRenderFn")
    row_style_fn: Callable | None = Field(default=None, alias="rowStyleFn")
    cell_style_fn: Callable | None = Field(default=None, alias="cellStyleFn")
    cell_render_fn: Callable | None = Field(default=None, alias="cellRenderFn")


class TableConfig(ConfigGroup):
    """Complete widget configuration."""

    table_style: TableSettings = Field(default_factory=TableSettings, alias="tableStyle")
    index_column: IndexColumnConfig = Field(default_factory=IndexColumnConfig, alias="indexColumn")
    column_config: ColumnConfig = Field(default_factory=ColumnConfig, alias="columnConfig")
    # (rows) -> column tree, evaluated once per dataset
    column_script_fn: Callable | None = Field(default=None, alias="columnScriptFn")
    default_sort: DefaultSort | None = Field(default=None, alias="defaultSort")
    tree_config: TreeConfig = Field(default_factory=TreeConfig, alias="treeConfig")
    expand_config: ExpandConfig = Field(default_factory=ExpandConfig, alias="expandConfig")
    advanced_style: AdvancedStyle = Field(default_factory=AdvancedStyle, alias="advancedStyle")

    @classmethod
    def parse(cls, configuration: Any) -> "TableConfig":
        """Parse a host configuration object; never raises."""
        if isinstance(configuration, cls):
            return configuration
        if isinstance(configuration, list):
            configuration = reduce_config(configuration)
        if not isinstance(configuration, dict):
            return cls()
        try:
            return cls.model_validate(configuration)
        except ValidationError as exc:
            logger.warning("Invalid table configuration, using defaults: %s", exc)
            return cls()
