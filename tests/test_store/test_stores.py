"""Tests for broker stores."""

import json
from unittest.mock import Mock

import pytest

from broker_import.config.settings import Settings
from broker_import.models.broker import BrokerInfo, Feature, NormalizedBrokerRecord, Regulation
from broker_import.store import (
    BrokerNotFoundError,
    InMemoryBrokerStore,
    JsonFileBrokerStore,
    StoreError,
    get_broker_store,
)


def _record(name="IC Markets", slug=None, regulations=("ASIC",), features=()):
    return NormalizedBrokerRecord(
        broker=BrokerInfo(name=name, slug=slug, rating=4.0),
        regulations=[Regulation(regulatory_body=body) for body in regulations],
        features=[Feature(feature_name=f) for f in features],
    )


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    """Run the shared contract against every backend."""
    if request.param == "memory":
        return InMemoryBrokerStore()
    return JsonFileBrokerStore(tmp_path / "brokers.json")


class TestStoreContract:
    """Behaviour shared by all backends."""

    def test_empty_store(self, store):
        assert store.list_slugs() == []
        assert not store.exists("IC Markets")

    def test_import_and_exists(self, store):
        result = store.import_record(_record(features=("Scalping", "Hedging")))

        assert result.success
        assert result.broker_id == "ic-markets"
        assert result.stats.regulations == 1
        assert result.stats.features == 2
        assert store.exists("IC Markets")
        assert store.exists("ic markets")
        assert not store.exists("Pepperstone")

    def test_existing_slug_is_used(self, store):
        store.import_record(_record(slug="icm"))

        assert store.list_slugs() == ["icm"]

    def test_exists_by_name_with_own_slug(self, store):
        store.import_record(_record(name="XM", slug="xm-global"))

        assert store.exists("XM")
        assert store.exists("xm-global")
        assert not store.exists("XM Trading")

    def test_import_replaces_existing(self, store):
        store.import_record(_record(regulations=("ASIC",)))
        store.import_record(_record(regulations=("ASIC", "CySEC")))

        assert store.list_slugs() == ["ic-markets"]
        assert [r.regulatory_body for r in store.get("ic-markets").regulations] == ["ASIC", "CySEC"]

    def test_nameless_record_rejected(self, store):
        result = store.import_record(NormalizedBrokerRecord())

        assert not result.success
        assert result.errors == ["Broker name is required"]
        assert store.list_slugs() == []

    def test_get_missing(self, store):
        with pytest.raises(BrokerNotFoundError, match="nope"):
            store.get("nope")

    def test_stats(self, store):
        store.import_record(_record(features=("Scalping",)))
        store.import_record(_record(name="Pepperstone", regulations=("FCA", "ASIC")))

        stats = store.stats()

        assert stats["brokers"] == 2
        assert stats["regulations"] == 3
        assert stats["features"] == 1
        assert stats["promotions"] == 0


class TestJsonFileBrokerStore:
    """JSON file persistence."""

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "brokers.json"
        JsonFileBrokerStore(path).import_record(_record())

        reopened = JsonFileBrokerStore(path)

        assert reopened.exists("IC Markets")
        assert reopened.get("ic-markets").broker.rating == 4.0
        assert not (tmp_path / "nested" / "brokers.json.tmp").exists()

    def test_file_layout(self, tmp_path):
        path = tmp_path / "brokers.json"
        JsonFileBrokerStore(path).import_record(_record())

        data = json.loads(path.read_text())

        assert list(data["brokers"]) == ["ic-markets"]
        assert data["brokers"]["ic-markets"]["broker"]["slug"] == "ic-markets"

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "brokers.json"
        path.write_text("{not json")

        with pytest.raises(StoreError, match="Failed to read"):
            JsonFileBrokerStore(path).exists("XM")

    def test_wrong_layout(self, tmp_path):
        path = tmp_path / "brokers.json"
        path.write_text(json.dumps([1, 2, 3]))

        with pytest.raises(StoreError, match="Invalid broker store format"):
            JsonFileBrokerStore(path).list_slugs()


class TestStoreFactory:
    """get_broker_store backend selection."""

    def test_json_backend(self, tmp_path):
        settings = Settings()
        settings.store.path = str(tmp_path / "brokers.json")

        store = get_broker_store(settings)

        assert isinstance(store, JsonFileBrokerStore)
        assert store.path == tmp_path / "brokers.json"

    def test_memory_backend(self):
        settings = Settings()
        settings.store.backend = "memory"

        assert isinstance(get_broker_store(settings), InMemoryBrokerStore)

    def test_unsupported_backend(self):
        config = Mock()
        config.store.backend = "postgres"

        with pytest.raises(StoreError, match="Unsupported store backend: postgres"):
            get_broker_store(config)
