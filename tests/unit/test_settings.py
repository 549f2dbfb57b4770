import pytest

from suiflow import settings as settings_module
from suiflow.settings import WorkflowSettings, get_settings, parse_network

ENV_KEYS = (
    "SUI_NETWORK",
    "SUI_RPC_URL",
    "SUI_RPC_TIMEOUT",
    "SUI_PRIVATE_KEY",
    "SUI_WALLET_ADDRESS",
    "SUI_WORKFLOW_SESSION_TTL",
    "SUI_WORKFLOW_SESSION_MAX",
    "SUI_MAINNET_RPC_URL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the assertions
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("mainnet", "mainnet"),
        (" Testnet ", "testnet"),
        ("mainnet-beta", "mainnet"),
        ("dev", "devnet"),
        ("local", "localnet"),
        ("solana", "mainnet"),
        (None, "mainnet"),
    ],
)
def test_parse_network(value, expected):
    assert parse_network(value) == expected


def test_parse_network_custom_default():
    assert parse_network("", "testnet") == "testnet"


def test_load_defaults(clean_env):
    loaded = WorkflowSettings.load()
    assert loaded.default_network == "mainnet"
    assert loaded.rpc_url is None
    assert loaded.private_key is None
    assert loaded.session_max_entries == 1024


def test_load_from_env(clean_env):
    clean_env.setenv("SUI_NETWORK", "test")
    clean_env.setenv("SUI_RPC_URL", "https://rpc.example")
    clean_env.setenv("SUI_RPC_TIMEOUT", "5")
    clean_env.setenv("SUI_PRIVATE_KEY", "  ")
    clean_env.setenv("SUI_WALLET_ADDRESS", "0xabc")
    clean_env.setenv("SUI_WORKFLOW_SESSION_TTL", "60")
    clean_env.setenv("SUI_WORKFLOW_SESSION_MAX", "8")

    loaded = WorkflowSettings.load()
    assert loaded.default_network == "testnet"
    assert loaded.rpc_url == "https://rpc.example"
    assert loaded.rpc_timeout == 5.0
    assert loaded.private_key is None
    assert loaded.wallet_address == "0xabc"
    assert loaded.session_ttl_seconds == 60.0
    assert loaded.session_max_entries == 8


def test_rpc_url_for_prefers_network_override(clean_env):
    configured = WorkflowSettings(rpc_url="https://shared")
    assert configured.rpc_url_for("mainnet") == "https://shared"
    clean_env.setenv("SUI_MAINNET_RPC_URL", "https://mainnet.example")
    assert configured.rpc_url_for("mainnet") == "https://mainnet.example"
    assert configured.rpc_url_for("testnet") == "https://shared"


def test_get_settings_is_memoized(clean_env):
    assert get_settings() is get_settings()
