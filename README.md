# xiaozhi-util

A small collection of utilities:

- `xiaozhi_util.logger`: module-level logging helpers. Each record is tagged
  with the calling file and line. There are printf-style variants, and a
  `log(...)` helper that binds key/value fields to a logger.
- `xiaozhi_util.buffer`: `SafeBuffer`, a lock-protected FIFO byte buffer.
- `xiaozhi_util.encryption`: `aes_ctr_encrypt`, `aes_ctr_decrypt` and
  `sha256_digest`.
- `xiaozhi_util.resource_pool`: `ResourcePool`, a bounded pool of reusable
  resources with validation, idle cleanup and statistics.

## Installation

```
pip install .
```

## Encryption

```python
from xiaozhi_util.encryption import aes_ctr_encrypt, aes_ctr_decrypt, sha256_digest

key = bytes(16)     # 16, 24 or 32 bytes
nonce = bytes(16)   # the 16-byte initial counter block
ciphertext = aes_ctr_encrypt(key, nonce, b"hello")
assert aes_ctr_decrypt(key, nonce, ciphertext) == b"hello"
print(sha256_digest(b"hello"))  # lowercase hex string
```

A key of any other length, or a nonce that is not 16 bytes, raises
`ValueError`.

## Resource pool

Subclass `Resource` (`close`, `is_valid`) and `ResourceFactory` (`create`, and
optionally `validate` and `reset`). Then hand the factory to a pool:

```python
from xiaozhi_util.resource_pool import Resource, ResourceFactory, ResourcePool, default_config

class Conn(Resource):
    def close(self):
        pass

    def is_valid(self):
        return True

class ConnFactory(ResourceFactory):
    def create(self):
        return Conn()

with ResourcePool(default_config(), ConnFactory()) as pool:
    conn = pool.acquire()
    pool.release(conn)
    print(pool.stats())
```

`PoolConfig` holds `max_size`, `min_size`, `max_idle`, `acquire_timeout`,
`idle_timeout` (both in seconds), `validate_on_borrow` and
`validate_on_return`. `default_config()` returns 10, 1, 5, 30 s, 300 s,
`True` and `False` respectively.

The pool creates `min_size` resources up front. While `idle_timeout` is
positive, a background thread closes idle resources that have gone unused for
longer than that timeout.

- `acquire()` and `acquire_with_timeout(timeout)` raise `TimeoutError` when no
  resource becomes available in time.
- `release`, `resize` and `acquire` raise `PoolError` once the pool is closed.
  `release` also raises `PoolError` for a resource the pool does not manage,
  or one that is not in use.
- `resize(n)` changes `max_size`. When the pool shrinks, idle resources above
  the new size are closed.
- `close()` closes everything and can safely be called more than once.

## Logging

```python
from xiaozhi_util import logger

logger.use_stdout()              # standard output, coloured levels
logger.set_level("debug")        # or a logging level number
logger.infof("started %d workers", 8)
logger.log("device", "dev-1", "state", "ready").info("status")
```

Output goes to standard error by default, at level info and above. Call
`set_output(stream)` to send it to another stream.

Lines have the form `time [level] [file:line] [field]... message`. The logger
offers `info`, `debug`, `warn`, `error` and `fatal`, and their `...f`
variants, which take `%`-style format strings. `fatal` and `fatalf` raise
`SystemExit(1)` after logging. `debug_stack()` logs the innermost five frames
of the call stack.

`init_db_log(some_logger)` returns a `DbLog` and stores it in
`logger.DB_LOG`. Its `printf(format, *args)` method writes to `some_logger` at
info level.

## Thread-safe buffer

```python
from xiaozhi_util.buffer import SafeBuffer

buf = SafeBuffer()
buf.write(b"abc")
assert buf.read(2) == b"ab"
assert len(buf) == 1
assert buf.getvalue() == b"c"
buf.reset()
```

## What is not included

The package has no helpers for running work in parallel across threads. It
also has no command-line tools. It is a library only.

## Running the tests

```
pip install .[test]
pytest
```