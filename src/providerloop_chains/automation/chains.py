"""Automation chain menu.

Three chains are always available; users may add their own names, which are
kept in a small JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from providerloop_chains.utils.exceptions import ConfigurationError, InputValidationError

logger = logging.getLogger(__name__)

DEFAULT_CHAINS: tuple[str, ...] = (
    "ATTACHMENT PROCESSING (LABS)",
    "ATTACHMENT PROCESSING (SLEEP STUDY)",
    "ATTACHMENT PROCESSING (RESEARCH STUDY)",
)


class ChainRegistry:
    """Built-in and custom chain names.

    Args:
        path: JSON file holding custom chain names. None keeps custom chains
            in memory only.

    Example:
        >>> registry = ChainRegistry(Path("data/custom-chains.json"))
        >>> registry.add("QuickAddQHC")
        'QuickAddQHC'
        >>> registry.resolve("quickaddqhc")
        'QuickAddQHC'
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._custom: list[str] = self._load()

    def _load(self) -> list[str]:
        if self.path is None or not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read custom chains from {self.path}: {e}\n"
                f"Fix: Correct or delete the file"
            ) from e
        if not isinstance(data, list):
            raise ConfigurationError(
                f"Custom chains file {self.path} must contain a JSON list of names"
            )
        return [str(name).strip() for name in data if str(name).strip()]

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._custom, f, indent=2)

    @property
    def custom_chains(self) -> list[str]:
        return list(self._custom)

    def list_chains(self) -> list[str]:
        """All selectable chain names, built-in chains first."""
        return list(DEFAULT_CHAINS) + self._custom

    def _find(self, name: str) -> Optional[str]:
        wanted = name.strip().casefold()
        for chain in self.list_chains():
            if chain.casefold() == wanted:
                return chain
        return None

    def add(self, name: str) -> str:
        """Add a custom chain name.

        Raises:
            InputValidationError: If the name is blank or already present
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise InputValidationError("Chain name cannot be empty")
        if self._find(cleaned) is not None:
            raise InputValidationError(f"Chain already exists: {cleaned}")

        self._custom.append(cleaned)
        self._save()
        logger.info(f"Added custom chain '{cleaned}'")
        return cleaned

    def resolve(self, name: Optional[str]) -> str:
        """Validate a chain selection and return its canonical name.

        Raises:
            InputValidationError: If no chain is selected or it is unknown
        """
        if not name or not name.strip():
            raise InputValidationError("Please select a chain to run")
        chain = self._find(name)
        if chain is None:
            raise InputValidationError(
                f"Unknown chain: {name.strip()}. "
                f"Add it with 'providerloop-chains chains add' first."
            )
        return chain
