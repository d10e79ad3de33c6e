"""Message reshaping exports."""

from .path_expressions import (
    ArrayStep,
    IndexedArrayStep,
    ObjectStep,
    PathExpression,
    PathExpressionError,
    PathStep,
    compile_path,
    resolve_path,
)
from .template_expansion import expand_template

__all__ = [
    "ArrayStep",
    "IndexedArrayStep",
    "ObjectStep",
    "PathExpression",
    "PathExpressionError",
    "PathStep",
    "compile_path",
    "resolve_path",
    "expand_template",
]
