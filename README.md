# evmstore

Storage types that lay out contract state the way Solidity does. The package
also has accessors for the values a contract can ask of its virtual machine.
These are the sender and value of the current call, the transaction's origin,
gas price and ink price, and account balances and code hashes.

Every word that is read or written goes through a host object.
`evmstore.hostio.Host` keeps everything in memory. You can therefore run and
test the storage logic of a contract without a chain.

## Installation

```
pip install evmstore
```

## Storage primitives

`evmstore.primitives` has accessors that live at a slot and a byte offset
within that slot's 32-byte word:

- `StorageUint` and `StorageSigned`
- `StorageFixedBytes`
- `StorageBool`
- `StorageAddress`
- `StorageBlockNumber`
- `StorageBlockHash`

`uint_type(bits)`, `signed_type(bits)` and `fixed_bytes_type(size)` build
classes of a given width. Ready-made ones are also provided: `StorageU8` to
`StorageU256`, `StorageI8` to `StorageI256`, and `StorageB8` to `StorageB256`.

Each accessor has `get`, `set`, `load` and `erase`. A value is read once and
then cached in the accessor. Values that do not fit the width raise
`ValueError`.

```python
from evmstore.primitives import uint_type, StorageBool
from evmstore.backend import current_storage

U64 = uint_type(64)
counter = U64(0, 24)          # slot 0, 8 bytes starting 24 bytes from the left
counter.set(41)
counter.set(counter.get() + 1)

flag = StorageBool(0, 23)     # packed into the same word, just to its left
flag.set(True)

current_storage().flush()     # write cached words through to the host
```

## Storage backends

Accessors read and write through the backend returned by
`evmstore.backend.current_storage()`. The backends are:

- **`StorageCache`** (the default). It loads a word from the host the first
  time the word is read. It keeps writes in memory until `flush()`, which
  writes every changed word to the host. `clear()` flushes and then empties
  the cache.
- **`EagerStorage`**. It reads from and writes to the host on every access.

Switch backends for a block of code with `use_storage(...)`:

```python
from evmstore.backend import EagerStorage, use_storage

with use_storage(EagerStorage()):
    ...
```

`load_bytes32` and `store_bytes32` go to the active host directly and bypass
every cache.

## Collections

`StorageVec`, `StorageArray` and `StorageMap` place their elements where
Solidity would:

- dynamic arrays keep their length at their slot and their elements from
  `keccak256(slot)` onwards;
- mapping values live at `keccak256(key . slot)`;
- small elements are packed several to a word.

```python
from evmstore.vec import StorageVec
from evmstore.map import StorageMap, SignedKey
from evmstore.array import StorageArray
from evmstore.hostio import Address
from evmstore.primitives import uint_type

U256 = uint_type(256)

balances = StorageMap.of(U256)(1, 0)
holder = Address(b"\x01" * 20)
balances.insert(holder, 100)
balances.get(holder)                  # 100
balances.take(holder)                 # 100, and the entry is now zero

deltas = StorageMap.of(U256)(4, 0)
deltas.insert(SignedKey(-1, 64), 5)   # negative keys need an explicit width

history = StorageVec.of(uint_type(32))(2, 0)
history.extend([1, 2, 3])
history.pop()                         # 3
len(history)                          # 2

table = StorageArray.of(uint_type(8), 40)(3, 0)
table.get_mut(5).set(7)
table.get(5)                          # 7
table.get(40)                         # None: out of bounds
```

Map keys are hashed according to their type:

- integers, booleans and `Address` values are encoded as a 32-byte word;
- `FixedBytes` keys are padded on the right to 32 bytes;
- plain `bytes` and `str` keys are hashed as they are.

`evmstore.bytes_store` provides `StorageBytes` and `StorageString`. They keep
Solidity's short and long encodings of `bytes` and `string`, and move data
between the two encodings as the length crosses 32 bytes.
`StorageString.get_string()` replaces invalid UTF-8 with replacement
characters.

## The host

`evmstore.hostio` provides the following:

- **`Host`**. It holds storage, balances, code hashes, call and block context,
  calldata (`read_args`), the return data (`write_result`) and emitted logs
  (`emit_log`, at most four topics).
- **`use_host(host)` and `set_host(host)`**. These make a host the active one.
- **`current_host()`**. It returns the active host.
- **`keccak256(data)`**. It returns a 32-byte `FixedBytes` digest.

```python
from evmstore.hostio import Address, Host, use_host
from evmstore import msg, tx, account

host = Host(sender=Address(b"\x02" * 20), ink_price=10)
with use_host(host):
    msg.sender()                      # Address('0x0202...')
    tx.gas_to_ink(1000)               # 10000, saturating at 2**64 - 1
    tx.ink_to_gas(25)                 # 2
    account.balance(host.contract_address())
    account.has_code(host.contract_address())
```

`account.has_code` returns `True` when the code hash is zero or equals the
hash of empty code.

The values in `msg` and `tx` are cached for the whole process after the first
request, not for each host. Call `msg.reset_cache()` and `tx.reset_cache()`
after you switch hosts.

`evmstore.util` provides `evm_words(size)` and `evm_padded_length(size)`.
These are sizes rounded up to whole 32-byte words.

## What this package does not do

The package models storage and read-only context only. It does not execute
contracts or connect to a chain. It has no way to call other contracts, to
deploy contracts, to read the return data of a call, or to encode and decode
ABI data. There is also no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```