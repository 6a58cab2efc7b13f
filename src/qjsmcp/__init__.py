"""qjsmcp — run untrusted JavaScript in a QuickJS WebAssembly sandbox over MCP."""

from __future__ import annotations

__version__ = "0.1.0"
