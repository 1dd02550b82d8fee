import pytest

from gallery.core.config import AuthMode, Settings, convert_app_name
from gallery.core.constants import OperationClass, RateLimitPolicy, RateLimitPrefix


def make_settings(**overrides) -> Settings:
    values = {"gallery_username": "owner", "gallery_password": "pw", "secret_key": "k"}
    values.update(overrides)
    return Settings(**values)


def test_convert_app_name():
    assert convert_app_name("media-gallery") == "Media Gallery"


class TestRedisUrl:
    @pytest.mark.parametrize("host", [None, ""])
    def test_no_host_means_no_shared_store(self, host):
        assert make_settings(redis_host=host).redis_url is None

    def test_full_url(self):
        config = make_settings(
            redis_host="cache.internal", redis_port=6380, redis_pass="secret", redis_base=2
        )

        url = config.redis_url

        assert url.scheme == "redis"
        assert url.host == "cache.internal"
        assert url.port == 6380
        assert url.password == "secret"
        assert url.path == "/2"


def test_rate_limit_policies():
    config = make_settings(rate_limit_login_requests=3, rate_limit_login_window_ms=1_000)

    policies = config.rate_limit_policies

    assert set(policies) == set(OperationClass)
    assert policies[OperationClass.LOGIN] == RateLimitPolicy(3, 1_000)
    assert policies[OperationClass.LIST] == RateLimitPolicy(20, 60_000)
    assert policies[OperationClass.OBJECT].max_requests == 300


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("*", ["*"]),
        ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
        ("https://a.example,,", ["https://a.example"]),
    ],
)
def test_cors_origins_list(raw, expected):
    assert make_settings(cors_origins=raw).cors_origins_list == expected


def test_auth_mode_from_string():
    assert make_settings(auth_mode="legacy").auth_mode is AuthMode.LEGACY


def test_token_algorithm_is_not_configurable():
    config = make_settings(jwt_algorithm="none")

    assert "jwt_algorithm" not in Settings.model_fields
    assert not hasattr(config, "jwt_algorithm")


def test_every_operation_has_a_rate_limit_prefix():
    prefixes = {RateLimitPrefix.for_operation(operation) for operation in OperationClass}

    assert len(prefixes) == len(OperationClass)
    assert all(prefix.startswith("ratelimit:") for prefix in prefixes)
