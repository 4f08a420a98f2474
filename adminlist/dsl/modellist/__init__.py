from .actions import ActionManager
from .builder import TableBuilder
from .columns import ColumnManager
from .context import BuilderContext
from .exceptions import BuilderException
from .filters import FilterRegistry, filter_between, filter_equals, filter_like
from .model_list import ModelList
from .page_info import PageInfo
from .processor import DataProcessor
from .structure import Column, ListStructure

__all__ = [
    "ActionManager",
    "BuilderContext",
    "BuilderException",
    "Column",
    "ColumnManager",
    "DataProcessor",
    "FilterRegistry",
    "ListStructure",
    "ModelList",
    "PageInfo",
    "TableBuilder",
    "filter_between",
    "filter_equals",
    "filter_like",
]
