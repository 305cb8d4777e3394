# geoblock

WSGI middleware that decides, for every request, whether the client is
allowed in. Decisions are based on CIDR ranges and on the client's country,
as reported by one or more country lookups you supply.

The client addresses are taken from the `X-Forwarded-For` and `X-Real-IP`
headers (comma-separated lists are split, blanks dropped, duplicates removed).
Every address found must be allowed; the first one that is not causes the
request to be answered with the configured status code, a
`Content-Length: 0` header and an empty body. A request carrying neither
header is passed on.

## Installation

```
pip install .
```

## Modules

- `geoblock.config`: `RuleType` (`country`, `cidr`), `DefaultAction`
  (`allow`, `block`), `Rule`, `Config` and `create_config()`.
- `geoblock.evaluator`: `Evaluator`, the `Lookup` protocol, `GeoblockError`
  and `PRIVATE_ADDRESS` (`"-"`, the country value for private networks).
- `geoblock.plugin`: `Plugin`, the WSGI middleware.

## Rules

For each address the evaluator checks, in order:

1. Blocklist CIDR ranges: a match blocks the address (country reported as `""`).
2. Country lookups: each lookup is asked for the country of the address; when
   several are added, the answer of the last one is used.
3. Blocklist countries: a match blocks the address.
4. Allowlist CIDR ranges: a match allows the address.
5. Allowlist countries: a match allows the address.
6. Otherwise the configured default action (`allow` or `block`) applies.

Country rule values are lower-cased; lookups are expected to return lower-case
codes. IPv4 ranges also match IPv4-mapped IPv6 addresses (`::ffff:a.b.c.d`),
and IPv6 ranges written in mapped form match plain IPv4 addresses.

## Usage

```python
from geoblock.config import Rule, RuleType, create_config
from geoblock.plugin import Plugin


class StaticLookup:
    """Country lookup backed by a fixed table."""

    def __init__(self, table):
        self.table = table

    def country(self, ip):
        return self.table.get(str(ip), "us")


def app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"hello\n"]


config = create_config()          # blocks loopback and private ranges, default action "block"
config.enabled = True
config.allowlist.append(Rule(RuleType.COUNTRY, "fr"))

application = Plugin(app, config, "geoblock", [StaticLookup({"80.67.169.12": "fr"})])
```

`create_config()` returns the defaults: `enabled` is false, Let's Encrypt
HTTP challenge paths (`/.well-known/acme-challenge/`) are let through,
blocked requests get `403 Forbidden`, the default action is `block`, the
allowlist is empty and the blocklist holds the IPv4 and IPv6 loopback,
private and link-local ranges.

When `enabled` is false the middleware passes every request straight to the
wrapped application and needs no lookups. When it is enabled, `Plugin`
raises `GeoblockError` if no lookup is given, if `disallowed_status_code` is
not a known HTTP status, or if a rule is invalid. A missing application or
config, or a default action other than `allow` or `block`, is rejected in
either case.

Blocked requests and evaluation errors are logged through the standard
`logging` module, under the logger `geoblock.plugin`.

The evaluator can also be used on its own:

```python
from geoblock.evaluator import Evaluator

evaluator = Evaluator("geoblock", config)
evaluator.add_lookup(StaticLookup({}))
allowed, country = evaluator.evaluate("1.1.1.1")
```

Invalid addresses, invalid rules and lookups that raise all surface as
`geoblock.evaluator.GeoblockError`.

## What this package does not do

It has no reader for IP geolocation database files: country information
comes only from the `Lookup` objects you pass in, each an object with a
`country(ip)` method. It also has no command-line program and no server of
its own; it is a WSGI middleware to wrap around your application.