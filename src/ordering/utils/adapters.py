"""Environment-selected adapter singletons for the ledgers and the notifier.

Each port names an environment variable and a table of adapters it can
build. The adapter class is imported on first use, so an adapter that is
not selected never pulls in its dependencies.
"""

import os
from importlib import import_module


class AdapterRegistry:
    def __init__(self, env_var: str, default: str, adapters: dict[str, str]):
        self.env_var = env_var
        self.default = default
        self.adapters = adapters  # name -> "module:ClassName"
        self._instance = None

    def get(self):
        if self._instance is None:
            name = os.environ.get(self.env_var, self.default)
            if name not in self.adapters:
                raise ValueError(
                    f"Unknown adapter '{name}' for {self.env_var}; expected one of {sorted(self.adapters)}"
                )
            module_path, _, class_name = self.adapters[name].partition(":")
            self._instance = getattr(import_module(module_path), class_name)()
        return self._instance

    def reset(self):
        self._instance = None
