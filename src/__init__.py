"""hubdeploy — dependency-ordered, idempotent contract deployment orchestrator."""

from hubdeploy.version import __version__

__all__ = ["__version__"]
