"""Order store contract and in-process implementation."""
