"""
Module- and file-loading to trigger the init callbacks to be registered.

The operator's files/modules register their startup callbacks with
decorators (``@kubeloop.on.startup()``), so they must be loaded first.
Two loading modes are supported, both are equivalent to Python CLI:

* Plain files (`kubeloop run file.py`).
* Importable modules (`kubeloop run -m pkg.mod`).

Multiple files/modules can be specified. They are loaded in the order.
"""
import importlib
import importlib.abc
import importlib.util
import os.path
import sys
from collections.abc import Iterable
from typing import cast


def preload(
        paths: Iterable[str],
        modules: Iterable[str],
) -> None:
    """
    Ensure the callbacks are registered by loading/importing the files/modules.
    """

    for idx, path in enumerate(paths):
        sys.path.insert(0, os.path.abspath(os.path.dirname(path)))
        name = f'__kubeloop_script_{idx}__{path}'  # same pseudo-name as '__main__'
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec) if spec is not None else None
        loader = cast(importlib.abc.Loader, spec.loader) if spec is not None else None
        if module is not None and loader is not None:
            sys.modules[name] = module
            loader.exec_module(module)
        else:
            raise ImportError(f"Failed loading {path}: no module or loader.")

    for name in modules:
        importlib.import_module(name)
