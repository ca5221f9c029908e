"""Unit tests for board SKU classification."""

import pytest

from rack_firmware.models.catalog import DEFAULT_CATALOG, DeviceType
from rack_firmware.services.classifier import classify_sku


@pytest.mark.unit
class TestClassifySku:
    """Test classify_sku against the catalog allow-lists."""

    def test_compute_tray_sku(self):
        assert classify_sku("699-24764-0001-TS1") == DeviceType.COMPUTE_TRAY

    def test_switch_tray_sku(self):
        assert classify_sku("692-9K36N-09MV-JSO") == DeviceType.SWITCH_TRAY

    def test_first_matching_token_wins(self):
        assert classify_sku("699-24764-0001-TS3,999-FOO") == DeviceType.COMPUTE_TRAY

    def test_unknown_sku(self):
        assert classify_sku("999-FOO") == DeviceType.UNKNOWN

    def test_empty_sku(self):
        assert classify_sku("") == DeviceType.UNKNOWN

    def test_tokens_are_trimmed(self):
        assert classify_sku("  999-FOO ,   920-9K36F-00MV-QS1  ") == DeviceType.SWITCH_TRAY

    def test_token_order_decides_between_types(self):
        assert classify_sku("920-9K36F-00MV-QS1,699-24764-0001-TS3") == DeviceType.SWITCH_TRAY
        assert classify_sku("699-24764-0001-TS3,920-9K36F-00MV-QS1") == DeviceType.COMPUTE_TRAY

    def test_partial_match_is_not_a_match(self):
        assert classify_sku("699-24764-0001") == DeviceType.UNKNOWN

    def test_custom_catalog(self):
        catalog = DEFAULT_CATALOG.model_copy(update={"compute_tray_skus": ["NEW-SKU-1"]})

        assert classify_sku("NEW-SKU-1", catalog) == DeviceType.COMPUTE_TRAY
        assert classify_sku("699-24764-0001-TS3", catalog) == DeviceType.UNKNOWN
