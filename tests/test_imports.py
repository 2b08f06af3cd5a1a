# type: ignore
"""Every module in the package can be imported on its own"""

import glob
import importlib
from os.path import basename, dirname, isdir, isfile, join

ROOT_MODULE = "memdynamo"


def _import_dir(current_dir: str, module: str):
    imported = list()
    for element in sorted(glob.glob(join(current_dir, "*"))):
        if isfile(element) and element.endswith(".py"):
            name = basename(element)[:-3]
            full_name = module if name == "__init__" else f"{module}.{name}"
            importlib.import_module(full_name)
            imported.append(full_name)
        elif isdir(element) and not basename(element).startswith("__"):
            imported.extend(_import_dir(element, f"{module}.{basename(element)}"))
    return imported


def test_imports():
    imported = _import_dir(join(dirname(dirname(__file__)), ROOT_MODULE), ROOT_MODULE)
    assert f"{ROOT_MODULE}.resource" in imported
    assert f"{ROOT_MODULE}.utils.iter" in imported
