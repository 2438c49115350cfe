"""Tests for the client-side registry cache.

Most tests drive a real app through TestClient (an httpx.Client), so the
registry talks to the same handler the browser would.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from customer_sites.api.app import create_app
from customer_sites.client import DEFAULT_SITES, SiteDirectory, SiteRegistry
from customer_sites.core.auth import compute_auth_hash
from customer_sites.models.domain import SiteEntity, SiteEntry

from conftest import TEST_PASSWORD

BASE_URL = "http://testserver"
BUILTIN = {"heimuer": SiteEntry(api="https://json.heimuer.xyz/api.php/provide/vod", name="黑木耳")}


@pytest.fixture
def http_client(settings, storage):
    return TestClient(create_app(settings=settings, storage=storage))


@pytest.fixture
def directory():
    return SiteDirectory(BUILTIN)


@pytest.fixture
def refreshes():
    return []


@pytest.fixture
def registry(http_client, directory, refreshes):
    return SiteRegistry(
        BASE_URL,
        directory,
        credential=compute_auth_hash(TEST_PASSWORD),
        http_client=http_client,
        on_refresh=lambda: refreshes.append(True),
    )


def seed(storage, *site_ids):
    for site_id in site_ids:
        storage.insert(
            SiteEntity(
                id=site_id,
                api=f"https://{site_id}.test/api",
                name=site_id.title(),
                adult=site_id.startswith("x"),
                created_at="2024-01-01T00:00:00.000Z",
                updated_at="2024-01-01T00:00:00.000Z",
            )
        )


class TestSiteDirectory:
    """Test the site directory merge semantics."""

    def test_extend_merges_and_overwrites(self):
        directory = SiteDirectory(BUILTIN)
        entry = SiteEntry(api="https://new.test", name="New")
        directory.extend({"heimuer": entry, "other": entry})
        assert directory.get("heimuer") == entry
        assert len(directory) == 2

    def test_replace_resets(self):
        directory = SiteDirectory(BUILTIN)
        directory.replace({})
        assert len(directory) == 0
        assert "heimuer" not in directory


class TestInit:
    """Test init/reset lifecycle."""

    def test_init_without_credential_uses_defaults(self, http_client, directory):
        """No credential: default record, no network access needed."""
        registry = SiteRegistry(BASE_URL, directory, http_client=http_client)
        assert registry.init() is False
        assert registry.sites == DEFAULT_SITES
        assert "qiqi" in directory
        assert "heimuer" in directory

    def test_init_with_credential_loads(self, registry, storage):
        seed(storage, "alpha")
        assert registry.init() is True
        assert set(registry.sites) == {"alpha"}

    def test_reset_clears_credential_and_sites(self, registry, storage):
        seed(storage, "alpha")
        registry.load()
        registry.reset()
        assert registry.credential is None
        assert registry.sites == {}

    def test_set_password_derives_credential(self, http_client, directory, storage):
        seed(storage, "alpha")
        registry = SiteRegistry(BASE_URL, directory, http_client=http_client)
        registry.set_password(TEST_PASSWORD)
        assert registry.credential == compute_auth_hash(TEST_PASSWORD)
        assert registry.init() is True


class TestLoad:
    """Test load()."""

    def test_mapping_mirrors_server_records(self, registry, storage, directory, refreshes):
        """One entry per record, keyed by id, without timestamps."""
        seed(storage, "alpha", "xbeta")
        assert registry.load() is True

        sites = registry.sites
        assert set(sites) == {"alpha", "xbeta"}
        assert sites["alpha"] == SiteEntry(api="https://alpha.test/api", name="Alpha", adult=False)
        assert sites["xbeta"].adult is True
        assert not hasattr(sites["alpha"], "created_at")

        assert directory.get("alpha") == sites["alpha"]
        assert "heimuer" in directory
        assert refreshes

    def test_load_replaces_previous_mapping(self, registry, storage):
        seed(storage, "alpha")
        registry.load()
        storage.delete("alpha")
        seed(storage, "gamma")
        registry.load()
        assert set(registry.sites) == {"gamma"}

    def test_empty_server_gives_empty_mapping(self, registry):
        assert registry.load() is True
        assert registry.sites == {}

    def test_bad_credential_falls_back_to_defaults(self, http_client, directory):
        """401 from the server degrades to the default record."""
        registry = SiteRegistry(
            BASE_URL, directory, credential=compute_auth_hash("wrong"), http_client=http_client
        )
        assert registry.load() is False
        assert registry.sites == DEFAULT_SITES
        assert "qiqi" in directory

    def test_network_failure_falls_back_to_defaults(self, directory):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        registry = SiteRegistry(BASE_URL, directory, credential="abc", http_client=client)
        assert registry.load() is False
        assert registry.sites == DEFAULT_SITES

    def test_sends_auth_and_timestamp(self, directory):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": []})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        registry = SiteRegistry(BASE_URL, directory, credential="abc", http_client=client)
        registry.load()
        params = seen[0].url.params
        assert params["auth"] == "abc"
        assert params["t"].isdigit()


class TestAdd:
    """Test add()."""

    def test_add_creates_and_merges(self, registry, storage, directory, refreshes):
        assert registry.add("new", "https://new.test/api", "New", adult=True) is True
        assert storage.find_one("new").adult is True
        assert registry.sites["new"] == SiteEntry(api="https://new.test/api", name="New", adult=True)
        assert directory.get("new") == registry.sites["new"]
        assert refreshes

    def test_add_is_incremental(self, registry, storage):
        """Add merges only the new entry; it does not reload."""
        seed(storage, "alpha")
        registry.add("new", "https://new.test/api", "New")
        assert set(registry.sites) == {"new"}

    def test_add_duplicate_returns_false(self, registry, storage):
        seed(storage, "alpha")
        assert registry.add("alpha", "https://a.test/api", "A") is False

    def test_add_without_credential_makes_no_request(self, directory):
        calls = []
        client = httpx.Client(transport=httpx.MockTransport(lambda r: calls.append(r)))
        registry = SiteRegistry(BASE_URL, directory, http_client=client)
        assert registry.add("new", "https://new.test/api", "New") is False
        assert calls == []

    def test_add_rejects_non_http_api(self, registry, storage):
        assert registry.add("new", "ftp://new.test", "New") is False
        assert storage.find_one("new") is None


class TestUpdate:
    """Test update()."""

    def test_update_changes_server_and_cache(self, registry, storage, directory):
        seed(storage, "alpha")
        registry.load()
        assert registry.update("alpha", "https://alpha2.test/api", "Alpha 2") is True
        assert storage.find_one("alpha").name == "Alpha 2"
        assert registry.sites["alpha"].api == "https://alpha2.test/api"
        assert directory.get("alpha").name == "Alpha 2"

    def test_update_missing_returns_false(self, registry):
        assert registry.update("ghost", "https://g.test/api", "G") is False
        assert "ghost" not in registry.sites

    def test_update_without_credential_returns_false(self, http_client, directory):
        registry = SiteRegistry(BASE_URL, directory, http_client=http_client)
        assert registry.update("alpha", "https://a.test/api", "A") is False


class TestRemove:
    """Test remove()."""

    def test_remove_rebuilds_directory(self, registry, storage, directory, refreshes):
        seed(storage, "alpha", "gamma")
        registry.load()
        refreshes.clear()

        assert registry.remove("alpha") is True
        assert storage.find_one("alpha") is None
        assert set(registry.sites) == {"gamma"}
        assert "alpha" not in directory
        assert "gamma" in directory
        assert "heimuer" in directory
        assert refreshes

    def test_remove_id_with_slash(self, registry, storage, directory):
        assert registry.add("a/b", "https://ab.test/api", "AB") is True
        assert registry.update("a/b", "https://ab2.test/api", "AB2") is True
        assert storage.find_one("a/b").name == "AB2"

        assert registry.remove("a/b") is True
        assert storage.find_one("a/b") is None
        assert "a/b" not in directory

    def test_remove_missing_returns_false(self, registry, directory):
        assert registry.remove("ghost") is False

    def test_remove_without_credential_returns_false(self, http_client, directory, storage):
        seed(storage, "alpha")
        registry = SiteRegistry(BASE_URL, directory, http_client=http_client)
        assert registry.remove("alpha") is False
        assert storage.find_one("alpha") is not None

    def test_refresh_hook_errors_do_not_propagate(self, http_client, directory, storage):
        def broken():
            raise RuntimeError("ui gone")

        seed(storage, "alpha")
        registry = SiteRegistry(
            BASE_URL,
            directory,
            credential=compute_auth_hash(TEST_PASSWORD),
            http_client=http_client,
            on_refresh=broken,
        )
        assert registry.remove("alpha") is True
