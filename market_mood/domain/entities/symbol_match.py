"""
Domain entity for a symbol search candidate.
Zero external dependencies: pure Python dataclass only.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SymbolMatch:
    symbol: str
    name: str
    exchange: Optional[str] = None
