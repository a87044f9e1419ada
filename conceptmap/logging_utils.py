from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxdict = 6
_repr.maxlist = 6
_repr.maxtuple = 6
_repr.maxset = 6
_repr.maxstring = 60


def _summarize_array(value: np.ndarray) -> str:
    parts = [f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"]
    if value.size == 0:
        return parts[0]
    finite = value[np.isfinite(value)] if np.issubdtype(value.dtype, np.floating) else value
    if value.size <= 4:
        parts.append(f"values={_repr.repr(value.tolist())}")
    elif finite.size:
        parts.append(f"min={float(finite.min()):.4g}")
        parts.append(f"max={float(finite.max()):.4g}")
    if finite.size != value.size:
        parts.append(f"non_finite={int(value.size - finite.size)}")
    return ", ".join(parts)


def _safe_repr(value: Any, *, max_length: int = 300) -> str:
    """Short, bounded description of an argument or return value."""

    if isinstance(value, np.ndarray):
        return _summarize_array(value)

    # Graph snapshots, simulation states and frames are summarised by size.
    version = getattr(value, "version", None)
    if version is not None and hasattr(value, "nodes") and hasattr(value, "links"):
        return f"{type(value).__name__}(version={version}, nodes={len(value.nodes)}, links={len(value.links)})"
    if hasattr(value, "ids") and hasattr(value, "positions"):
        return f"{type(value).__name__}(nodes={len(value.ids)})"

    try:
        rendered = _repr.repr(value)
    except Exception as exc:  # pragma: no cover - repr of foreign objects
        rendered = f"<repr-error {exc!r}>"
    if len(rendered) > max_length:
        return rendered[:max_length] + "... (truncated)"
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = []
    if args:
        parts.append("args=[" + ", ".join(_safe_repr(arg) for arg in args) + "]")
    if kwargs:
        parts.append("kwargs={" + ", ".join(f"{key}={_safe_repr(val)}" for key, val in kwargs.items()) + "}")
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that emits DEBUG records on entry, exit and failure."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("Entering %s (%s)", qualname, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.exception("Exception in %s", qualname)
                raise
            if log_result:
                logger.debug("Exiting %s -> %s", qualname, _safe_repr(result))
            else:
                logger.debug("Exiting %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def _wrap_class(cls: type, logger: logging.Logger, skip: Set[str]) -> None:
    for attr_name, attr_value in list(cls.__dict__.items()):
        if attr_name.startswith("__") and attr_name.endswith("__"):
            continue
        qualified = f"{cls.__name__}.{attr_name}"
        if attr_name in skip or qualified in skip:
            continue
        if inspect.isfunction(attr_value) and getattr(attr_value, "__module__", None) == cls.__module__:
            setattr(cls, attr_name, debug_log_call(logger, name=qualified)(attr_value))


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
    wrap_methods: bool = True,
) -> None:
    """Wrap the functions (and optionally class methods) defined in a module namespace."""

    module_name = namespace.get("__name__")
    if not isinstance(module_name, str):  # pragma: no cover - always set for modules
        module_name = None
    logger = logger or logging.getLogger(module_name or __name__)
    skip_set: Set[str] = set(skip or [])

    for name, value in list(namespace.items()):
        if name in skip_set or name.startswith("__"):
            continue
        if inspect.isfunction(value) and getattr(value, "__module__", None) == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)
        elif wrap_methods and inspect.isclass(value) and getattr(value, "__module__", None) == module_name:
            _wrap_class(value, logger, skip_set)
