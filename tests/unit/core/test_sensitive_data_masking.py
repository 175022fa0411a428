import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    @pytest.mark.parametrize("phone", ["0912-345-678", "0912345678", "+886 912 345 678"])
    def test_phone_masked_in_free_text(self, phone):
        event_dict = {"event": "test", "data": f"call {phone} on arrival"}
        result = mask_sensitive_data(None, None, event_dict)
        assert phone not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_phone_key_masked(self):
        event_dict = {"event": "test", "phone": "anything"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["phone"] == "***MASKED***"

    def test_nested_customer_info_masked(self):
        event_dict = {
            "event": "test",
            "customer_info": {"name": "Amy Lin", "phone": "0912-345-678"},
        }
        result = mask_sensitive_data(None, None, event_dict)
        assert result["customer_info"]["phone"] == "***MASKED***"
        assert result["customer_info"]["name"] == "Amy Lin"

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {"event": "order.created", "order_id": "order-001-20250101-001"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_id"] == "order-001-20250101-001"
        assert result["event"] == "order.created"

    def test_non_string_values_untouched(self):
        event_dict = {"event": "test", "quantity": 3}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["quantity"] == 3
