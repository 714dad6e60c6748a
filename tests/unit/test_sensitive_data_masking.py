import pytest

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_phone_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "phone": "TEL 084-962-0525"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "084-962-0525" not in result["phone"]
        assert "***MASKED***" in result["phone"]

    def test_mobile_without_hyphens_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "phone": "09012345678"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["phone"] == "***MASKED***"

    def test_postal_code_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "address": "〒100-0001 東京都千代田区"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "100-0001" not in result["address"]
        assert "***MASKED***" in result["address"]

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    @pytest.mark.parametrize(
        "value",
        ["20261018-3-123456789", "RC20261018-0001", "DN20261018-0012", "2026-10-18"],
    )
    def test_order_and_document_numbers_unchanged(self, value):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.created", "number": value}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["number"] == value
        assert result["event"] == "order.created"
