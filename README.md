# wasmpkg

A client library for finding, fetching and publishing WebAssembly component
packages. A `Client` works out which registry serves a package and hands the
request to a backend for that registry. A filesystem backend is built in, and
other backends can be plugged in.

## Installation

```
pip install wasmpkg
```

To run the test suite, install the test extra:

```
pip install "wasmpkg[test]"
pytest
```

## Concepts

- `wasmpkg.label.Label`: a kebab-case Component Model label such as `wasi`
  or `my-pkg`. An invalid label raises `InvalidLabelError`, and its detail is
  a `LabelProblem`.
- `wasmpkg.package.PackageRef`: a `namespace:name` reference such as
  `wasi:http`. `PackageSpec.parse("wasi:http@1.0.0")` adds an optional
  version. `parse_version` parses a strict semantic version into a
  `semver.Version`.
- `wasmpkg.registry.Registry`: a registry authority with an optional port,
  such as `localhost:5001`. It provides `host()` and `port()`, and registries
  compare case-insensitively.
- `wasmpkg.digest.ContentDigest`: a `sha256:<hex>` digest. It can be built
  with `parse`, `sha256_of` or `sha256_from_file`. `validating_stream(chunks)`
  yields the chunks unchanged and raises `InvalidContent` at the end if they
  do not match the digest.
- `wasmpkg.metadata.RegistryMetadata`: which protocol a registry prefers and
  how each protocol is set up. `from_dict` and `to_dict` convert it to and
  from its JSON form. `fetch` and `fetch_or_default` download it from
  `/.well-known/wasm-pkg/registry.json`, over `http` for `localhost` and
  `https` for any other host.
- `wasmpkg.release.Release` and `VersionInfo`: a release's version and
  content digest, and a listed version with its `yanked` flag. `VersionInfo`
  values compare and sort by version only.
- `wasmpkg.config.Config`: says which registry serves each namespace or
  package. It also holds a `RegistryConfig` for each registry, made up of a
  default backend type and one table per backend type.

## Resolving a registry

`Config.resolve_registry` returns the first of these that applies:

1. a registry override for that exact package,
2. a registry mapped to the package's namespace,
3. the default registry,
4. the fallbacks (`wasi` → `wasi.dev`, `ba` → `bytecodealliance.org`).
   These are present only in `Config.default()`, not in `Config.empty()`.

A mapping is either a `Registry` or a `CustomConfig`. A `CustomConfig` is a
registry together with the `RegistryMetadata` to use for it.

```python
from wasmpkg.config import Config
from wasmpkg.package import PackageRef

config = Config.default()
print(config.resolve_registry(PackageRef.parse("wasi:http")))  # wasi.dev
```

## Choosing a backend

To pick a backend for a registry, the client does the following:

- It uses the registry's configured default backend. If no default is set
  and exactly one backend table is configured, that table's type is used.
- Otherwise it uses the metadata's preferred protocol. The metadata comes
  from a `CustomConfig` if one applies. If none applies, it is fetched from
  the registry, except when the backend is `local`. Metadata cannot select
  `local`; trying to raises `InvalidRegistryMetadata`.
- Otherwise it uses `"oci"`.

Each backend is made once per registry and reused. A backend type with no
factory raises `InvalidConfig`.

## Using a local directory

The `local` backend (`wasmpkg.local.LocalBackend`) keeps each release at
`<root>/<namespace>/<name>/<version>.wasm`.

```python
from wasmpkg.client import Client, PublishOpts
from wasmpkg.config import Config
from wasmpkg.package import PackageRef, parse_version
from wasmpkg.registry import Registry

config = Config.empty()
registry = Registry.parse("local.test")
config.default_registry = registry
config.get_or_insert_registry_config(registry).set_backend_config(
    "local", {"root": "/srv/wasm-packages"}
)

client = Client(config)
package = PackageRef.parse("example:pkg")
client.publish_release_file(
    "pkg.wasm",
    PublishOpts(package=(package, parse_version("1.0.0"))),
)

for info in client.list_all_versions(package):
    print(info)

release = client.get_release(package, parse_version("1.0.0"))
with open("output.wasm", "wb") as out:
    for chunk in client.stream_content(package, release):
        out.write(chunk)
```

If `PublishOpts.package` is not given, the package name and version are read
from the component. The client takes the component's first export, which must
be named like `namespace:name/item@version`. `PublishOpts.registry` publishes
to a chosen registry rather than the resolved one.

## Plugging in backends

A backend subclasses `wasmpkg.backend.PackageBackend` and implements these
methods:

- `list_all_versions`
- `get_release`
- `stream_content_unvalidated`
- `publish`

`stream_content` is provided by the base class and checks the content digest.
Pass factories to the client by backend type. Each factory receives the
registry, its `RegistryConfig` and its `RegistryMetadata`:

```python
client = Client(config, backends={"local": make_local, "oci": make_oci})
```

Passing `backends` replaces the built-in table, so include `"local"` in it if
you still need that backend.

## Caching

`wasmpkg.caching.CachingClient` puts a `Cache` in front of a `Client`.

`FileCache` keeps release details as `<package>-<version>.json` and content
under its digest, all in one directory. `FileCache.global_cache()` uses the
`wasm-pkg` folder in the user cache directory.

A `CachingClient` made without a client is read-only. It serves only what is
already cached, and anything else raises `CacheError`.

```python
from wasmpkg.caching import CachingClient, FileCache

caching = CachingClient(client, FileCache.global_cache())
release = caching.get_release(package, parse_version("1.0.0"))
data = b"".join(caching.get_content(package, release))
```

## What is not included

- Only the `local` backend is built in. Registries that resolve to `oci`
  (the default) or `warg` need a backend factory supplied by you. Without
  one, the client raises `InvalidConfig`.
- Configuration is built in code. The package does not read or write
  configuration files.
- There is no command-line program.

## Errors

Every error the library raises derives from `wasmpkg.errors.WasmPkgError`.
Examples include:

- `PackageNotFound`
- `VersionNotFound`
- `NoRegistryForNamespace`
- `InvalidConfig`
- `InvalidContent`
- `InvalidComponent`
- `CacheError`
- `PkgIoError`