# svmfixture

Fuzz fixtures for testing one SVM program instruction. A fixture records
two things: what goes into the instruction (accounts, data, feature set,
sysvars, compute budget) and what comes out (result, return data, resulting
accounts).

A fixture can be stored as a protobuf blob (`.fix`) or as JSON (`.json`).
Every fixture has a deterministic Keccak-256 hash. When a fixture is dumped
to disk, that hash, in base58, names the file.

The package has two layouts:

- `svmfixture.mollusk`: fixtures with a compute budget, a feature set and
  runtime sysvars (`context.Context`, `effects.Effects`, `fixture.Fixture`,
  `compute_budget.ComputeBudget`, `sysvars.Sysvars`).
- `svmfixture.firedancer`: fixtures in the Firedancer layout, with slot and
  epoch contexts, optional seed addresses on accounts, and optional metadata
  (`context.Context`, `effects.Effects`, `metadata.Metadata`,
  `fixture.Fixture`, `account.SeedAddress`).

The shared types are in `svmfixture.account`: `Pubkey`, `Account`,
`AccountMeta` and `InstructionAccount`. Feature sets are in
`svmfixture.feature_set`. Hashing, base58 and file handling are in
`svmfixture.fs`. A small protobuf wire reader and writer is in
`svmfixture.protowire`.

## Install

```
pip install svmfixture
```

## Usage

### Build a fixture and dump it

```python
from svmfixture.account import Account, AccountMeta, Pubkey
from svmfixture.feature_set import FeatureSet
from svmfixture.fs import FsHandler
from svmfixture.mollusk.compute_budget import ComputeBudget
from svmfixture.mollusk.context import Context
from svmfixture.mollusk.effects import Effects
from svmfixture.mollusk.fixture import Fixture
from svmfixture.mollusk.sysvars import Sysvars

key = Pubkey.new_unique()
context = Context(
    compute_budget=ComputeBudget.new_with_defaults(True),
    feature_set=FeatureSet(),
    sysvars=Sysvars(),
    program_id=Pubkey.from_bytes(bytes(32)),
    instruction_accounts=[AccountMeta(key, is_signer=False, is_writable=True)],
    instruction_data=bytes([4] * 24),
    accounts=[(key, Account.new(42, 42, Pubkey.from_bytes(bytes(32))))],
)
fixture = Fixture(input=context, output=Effects())

handler = FsHandler(fixture)
blob_path = handler.dump_to_blob_file("fixtures")  # fixtures/instr-<base58 hash>.fix
json_path = handler.dump_to_json_file("fixtures")  # fixtures/instr-<base58 hash>.json
```

Both dump methods create the directory if it is missing, and each returns
the path it wrote. In a mollusk `Context`, every `AccountMeta` must refer to
a key that is in `accounts`, because the account is stored by its index
there. If the key is not found, encoding, `to_dict` and hashing all raise
`ValueError`.

### Load a fixture

```python
from svmfixture.mollusk.fixture import Fixture

fixture = Fixture.load_from_blob_file("fixtures/instr-<hash>.fix")
same = Fixture.load_from_json_file("fixtures/instr-<hash>.json")
```

The functions `load_from_blob_file(fixture_type, path)` and
`load_from_json_file(fixture_type, path)` in `svmfixture.fs` do the same
for any `SerializableFixture` subclass. A blob file must end in `.fix` and
a JSON file in `.json`. If it does not, `svmfixture.fs.FixtureError` is
raised. The same error is raised when a file cannot be read or decoded.

You can also work in memory: `Fixture.encode()`, `Fixture.decode(blob)`,
`Fixture.to_dict()`, `Fixture.from_dict(data)` and `Fixture.hash()`. A
blob must contain both an input and an output. If either is missing,
decoding raises `svmfixture.protowire.DecodeError`.

In the JSON form, addresses and hashes are hex strings, and instruction
data, account data and return data are base64.

### Defaults

- If a mollusk context has no compute budget, it gets
  `ComputeBudget.new_with_defaults(...)`. That default budget has a deeper
  instruction stack when the SIMD-0268 feature
  (`svmfixture.mollusk.context.RAISE_CPI_NESTING_LIMIT_TO_8`) is active.
- Missing sysvars take the defaults in `svmfixture.mollusk.sysvars`.
- In the mollusk layout, return data is stored but is not part of the
  hash. In the firedancer layout, it is part of the hash.

### Feature sets

On the wire, a feature is identified by the first eight bytes of its
public key, read as a little-endian `u64` (see `discriminator`). To turn
these integers back into features, `FeatureSet.from_ids` needs a list of
known feature keys. It skips any keys passed in `omitted`.

Both `Fixture` classes decode with the keys in their `known_features`
class attribute, which is empty by default. With no known keys, a decoded
feature set has no active features. To make them recognised, subclass and
set the attribute:

```python
class MyFixture(Fixture):
    known_features = (feature_a, feature_b)
```

### Errors

`svmfixture.errors` defines `MolluskError` and its subclasses
(`FileOpenError`, `FileReadError`, `FileNotFound`, `AccountMissing`,
`ProgramNotCached`). These report a misconfigured test input or test
environment. `or_raise(value, error)` behaves as follows:

- It returns `value` unchanged.
- If `value` is `None`, it raises `error`.
- If `value` is an exception, it raises an error of the same class as
  `error`, with that exception as its cause.

## What this package does not do

This package describes fixtures: it builds, stores, loads and hashes them.
It does not execute instructions, does not load programs, and has no
runtime to check a fixture's expected effects against. It does not have a
command-line tool.