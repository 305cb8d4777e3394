from wsgiref.util import setup_testing_defaults

import pytest

from geoblock.config import Config, Rule, RuleType, create_config
from geoblock.evaluator import PRIVATE_ADDRESS, GeoblockError
from geoblock.plugin import Plugin

COUNTRIES = {
    "1.1.1.1": "us",
    "2606:4700:4700::1111": "us",
    "80.67.169.12": "fr",
    "2001:910:800::12": "fr",
}


class DictLookup:
    def country(self, ip):
        return COUNTRIES.get(str(ip), PRIVATE_ADDRESS)


class FailingLookup:
    def country(self, ip):
        raise OSError("broken database")


def teapot(environ, start_response):
    start_response("418 I'm a Teapot", [("Content-Type", "text/plain")])
    return [b"tea"]


def call(app, **extra):
    environ = {}
    setup_testing_defaults(environ)
    environ.update(extra)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status

    b"".join(app(environ, start_response))
    return int(captured["status"].split()[0])


@pytest.fixture
def plugin():
    config = create_config()
    config.enabled = True
    config.allowlist.append(Rule(RuleType.COUNTRY, "fr"))
    return Plugin(teapot, config, "geoblock", [DictLookup()])


@pytest.mark.parametrize(
    "header, ip, status",
    [
        ("HTTP_X_FORWARDED_FOR", "127.0.0.1", 403),
        ("HTTP_X_REAL_IP", "127.0.0.1", 403),
        ("HTTP_X_FORWARDED_FOR", "1.1.1.1", 403),
        ("HTTP_X_FORWARDED_FOR", "2606:4700:4700::1111", 403),
        ("HTTP_X_FORWARDED_FOR", "80.67.169.12", 418),
        ("HTTP_X_FORWARDED_FOR", "2001:910:800::12", 418),
    ],
)
def test_serve(plugin, header, ip, status):
    assert call(plugin, PATH_INFO="/" + header, **{header: ip}) == status


def test_any_blocked_address_rejects(plugin):
    assert call(plugin, HTTP_X_FORWARDED_FOR="80.67.169.12, 1.1.1.1") == 403
    assert call(plugin, HTTP_X_FORWARDED_FOR="80.67.169.12", HTTP_X_REAL_IP="1.1.1.1") == 403


def test_no_addresses_pass_through(plugin):
    assert call(plugin) == 418


def test_invalid_address_rejected(plugin):
    assert call(plugin, HTTP_X_FORWARDED_FOR="bogus") == 403


def test_lets_encrypt_challenge_allowed(plugin):
    assert call(
        plugin,
        PATH_INFO="/.well-known/acme-challenge/abc",
        HTTP_X_FORWARDED_FOR="1.1.1.1",
    ) == 418


def test_lets_encrypt_challenge_blocked_when_disabled():
    config = create_config()
    config.enabled = True
    config.allow_lets_encrypt = False
    app = Plugin(teapot, config, "geoblock", [DictLookup()])
    assert call(
        app,
        PATH_INFO="/.well-known/acme-challenge/abc",
        HTTP_X_FORWARDED_FOR="1.1.1.1",
    ) == 403


def test_custom_status_code():
    config = create_config()
    config.enabled = True
    config.disallowed_status_code = 404
    app = Plugin(teapot, config, "geoblock", [DictLookup()])
    assert call(app, HTTP_X_FORWARDED_FOR="1.1.1.1") == 404


def test_lookup_failure_rejects():
    config = Config(enabled=True, default_action="allow")
    app = Plugin(teapot, config, "geoblock", [FailingLookup()])
    assert call(app, HTTP_X_FORWARDED_FOR="1.1.1.1") == 403


def test_disabled_passes_everything():
    app = Plugin(teapot, create_config(), "geoblock")
    assert call(app, HTTP_X_FORWARDED_FOR="127.0.0.1") == 418


def test_collect_ips_dedups_and_trims(plugin):
    environ = {
        "HTTP_X_FORWARDED_FOR": " 1.1.1.1 , ,80.67.169.12",
        "HTTP_X_REAL_IP": "1.1.1.1,2001:910:800::12",
    }
    assert plugin.collect_ips(environ) == ["1.1.1.1", "80.67.169.12", "2001:910:800::12"]
    assert plugin.collect_ips({}) == []


def test_config_is_copied():
    config = create_config()
    app = Plugin(teapot, config, "geoblock")
    config.enabled = True
    assert app.config.enabled is False
    assert call(app, HTTP_X_FORWARDED_FOR="127.0.0.1") == 418


def test_missing_next_app():
    with pytest.raises(GeoblockError, match="geoblock: no next handler provided"):
        Plugin(None, create_config(), "geoblock")


def test_missing_config():
    with pytest.raises(GeoblockError, match="geoblock: no config provided"):
        Plugin(teapot, None, "geoblock")


def test_invalid_default_action():
    config = create_config()
    config.default_action = "maybe"
    with pytest.raises(GeoblockError, match="invalid default action: maybe"):
        Plugin(teapot, config, "geoblock")


def test_invalid_status_code():
    config = create_config()
    config.enabled = True
    config.disallowed_status_code = 999
    with pytest.raises(GeoblockError, match="999 is not a valid http status code"):
        Plugin(teapot, config, "geoblock", [DictLookup()])


def test_no_lookup():
    config = create_config()
    config.enabled = True
    with pytest.raises(GeoblockError, match="no lookup configured"):
        Plugin(teapot, config, "geoblock", [])


def test_invalid_rule_reported_by_evaluator():
    config = create_config()
    config.enabled = True
    config.blocklist.append(Rule("asn", "13335"))
    with pytest.raises(GeoblockError, match="geoblock: evaluator: .*invalid rule type: asn"):
        Plugin(teapot, config, "geoblock", [DictLookup()])