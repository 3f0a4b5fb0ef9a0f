from cricket_pipeline.common.identity import (
    ACCEPT_LANGUAGES,
    DEFAULT_UAS,
    DEFAULT_VIEWPORTS,
    FixedIdentityProvider,
    RandomIdentityProvider,
)


def test_random_identity_uses_pools():
    provider = RandomIdentityProvider(seed=7)
    for _ in range(20):
        identity = provider.next_identity()
        assert identity.user_agent in DEFAULT_UAS
        assert identity.viewport in DEFAULT_VIEWPORTS
        assert identity.accept_language in ACCEPT_LANGUAGES
        assert identity.headers["Accept-Language"] == identity.accept_language


def test_seeded_providers_agree():
    a = RandomIdentityProvider(seed=42)
    b = RandomIdentityProvider(seed=42)
    assert [a.next_identity() for _ in range(5)] == [b.next_identity() for _ in range(5)]


def test_viewport_is_a_copy():
    identity = RandomIdentityProvider(seed=1).next_identity()
    identity.viewport["width"] = 1
    assert all(v["width"] != 1 for v in DEFAULT_VIEWPORTS)


def test_fixed_identity():
    provider = FixedIdentityProvider()
    assert provider.next_identity() is provider.next_identity()
    assert provider.next_identity().locale == "en-US"
