from __future__ import annotations

DEFAULT_CHUNK_SIZE = 5  # bytes per fragment

DEFAULT_LOSS_RATE = 0.0
DEFAULT_DUPLICATE_RATE = 0.0
DEFAULT_WORKERS = 1
DEFAULT_BENCH_SIZE = 1_000_000

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INCOMPLETE = 2
EXIT_MISMATCH = 3
