"""Load and publish WebAssembly packages through pluggable registry backends, with caching."""

__version__ = "0.1.0"