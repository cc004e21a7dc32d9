from __future__ import annotations

from enum import Enum


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BADGE = "badge"
    DATE = "date"
    IMAGE = "image"
    ACTIONS = "actions"


class FilterType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    DATE_RANGE = "date-range"
    BOOLEAN = "boolean"


class Capability(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Variant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"
    OUTLINE = "outline"
    SECONDARY = "secondary"
    GHOST = "ghost"
    LINK = "link"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
