import os
from typing import Mapping, Optional

from vulpes_container.domain import IEnvironmentReader


class EnvironmentReader(IEnvironmentReader):
    """Reads variables from a mapping, the process environment by default.

    Attributes:
        _environ: The mapping variables are read from.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = os.environ if environ is None else environ

    def read(self, name: str) -> Optional[str]:
        return self._environ.get(name)
