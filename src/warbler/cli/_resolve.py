"""Import resolution: turns ``"module:attribute"`` strings into an App."""

import importlib

from warbler.app import App, Mode
from warbler.config import AppConfig


def resolve_app(import_string: str, mode: Mode = "dev") -> App:
    """Resolve an import string to a warbler App.

    Accepts ``"module:attribute"``.  When the attribute is omitted it
    defaults to ``"app"``.  The attribute may be an ``App``, an
    ``AppConfig`` (wrapped in an ``App`` for *mode*), or a factory
    returning either.

    Raises:
        ModuleNotFoundError: The module cannot be imported.
        AttributeError: The attribute does not exist on the module.
        TypeError: The resolved object is not an App or AppConfig, or is an
            App built for the other mode.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if isinstance(obj, AppConfig):
        return App(obj, mode=mode)
    if not isinstance(obj, App):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a warbler App or AppConfig"
        raise TypeError(msg)
    if obj.mode != mode:
        msg = f"{import_string!r} is a {obj.mode} app; it cannot be served in {mode} mode"
        raise TypeError(msg)
    return obj
