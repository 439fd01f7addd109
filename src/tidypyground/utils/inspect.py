"""Introspection of python objects for display purposes."""

import functools
import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Dotted path of a function, method, class or module.

    Query plans print the compute functions they call,
    a path like ``module.Class.method`` or ``module.function``
    tells exactly which one is used. A partial is named
    after the function it wraps.

    >>> class TestClass:
    ...   def method(self, arg):
    ...     pass
    >>> get_qualname(TestClass.method)
    'tidypyground.utils.inspect.TestClass.method'
    >>> get_qualname(functools.partial(TestClass.method, None))
    'tidypyground.utils.inspect.TestClass.method'
    """
    if isinstance(obj, functools.partial):
        return get_qualname(obj.func)

    module = inspect.getmodule(obj)
    module_name = module.__name__ if module is not None else "<unknown>"
    if inspect.ismethod(obj) or inspect.isfunction(obj):
        if getattr(obj, "__self__", None) is not None:
            class_name = obj.__self__.__class__.__name__
            return f"{module_name}.{class_name}.{obj.__name__}"
        return f"{module_name}.{obj.__qualname__}"
    elif inspect.isclass(obj):
        return f"{module_name}.{obj.__qualname__}"
    elif inspect.ismodule(obj):
        return obj.__name__
    elif callable(obj):
        return f"{module_name}.{getattr(obj, '__name__', obj.__class__.__name__)}"
    raise ValueError(f"Unable to detect path for object of type {type(obj)}")
