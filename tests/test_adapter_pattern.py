import unittest
from typing import Protocol
from unittest.mock import MagicMock

from slotbind import Context


class Contains:  # noqa: PLW1641
    def __init__(self, substring):
        self.substring = substring

    def __repr__(self):
        return f"Contains({self.substring!r})"

    def __eq__(self, other):
        return isinstance(other, str) and self.substring in other


class PaymentClient(Protocol):
    def charge(self, order_id: str, amount_cents: int) -> None: ...


class InfoLogger(Protocol):
    def info(self, msg: object, *args: object) -> None: ...


class NullLogger:
    def info(self, msg: object, *args: object) -> None:
        pass


class StripeSdk:
    def pay(self, amount_usd: float, reference: str) -> bool:
        print(f"Stripe charged ${amount_usd} for {reference}")  # noqa: T201
        return True


class StripeAdapter:
    def __init__(
        self, sdk: StripeSdk, logger: InfoLogger, usd_per_cent: float = 0.01
    ) -> None:
        self._logger = logger
        self._sdk = sdk
        self._usd_per_cent = usd_per_cent

    def charge(self, order_id: str, amount_cents: int) -> None:
        self._logger.info("adapting to stripe sdk api")
        amount_usd = amount_cents * self._usd_per_cent
        ok = self._sdk.pay(amount_usd, reference=order_id)
        if not ok:
            msg = "Stripe payment failed"
            raise RuntimeError(msg)


class TestWiringAdapterThirdPartySDK(unittest.TestCase):
    ctx: Context

    def setUp(self):
        self.ctx = Context()
        self.ctx.register_factory(StripeAdapter, provides=PaymentClient)
        self.stripe_sdk = StripeSdk()
        self.stripe_sdk.pay = MagicMock(wraps=self.stripe_sdk.pay)
        self.ctx.register_instance(StripeSdk, self.stripe_sdk)
        self.logger = NullLogger()
        self.logger.info = MagicMock(wraps=self.logger.info)
        self.ctx.register_instance(InfoLogger, self.logger)

    def test_adapter_calls_adaptee(self):
        self.ctx.register(0.0125)

        def checkout(client: PaymentClient):
            client.charge("order-123", 5000)

        self.ctx.inject(checkout)

        assert self.stripe_sdk.pay.call_count == 1
        assert self.stripe_sdk.pay.call_args[0][0] == 0.0125 * 5000
        assert self.stripe_sdk.pay.call_args[1]["reference"] == "order-123"

        assert self.logger.info.call_args[0][0] == Contains("stripe sdk")

    def test_adapter_uses_default_rate_when_none_registered(self):
        client = self.ctx.resolve(PaymentClient)
        client.charge("order-9", 100)

        assert self.stripe_sdk.pay.call_args[0][0] == 0.01 * 100

    def test_child_context_swaps_in_mock_sdk(self):
        mock_sdk = MagicMock(spec=StripeSdk)
        mock_sdk.pay.return_value = True

        test_ctx = self.ctx.child()
        test_ctx.register_instance(StripeSdk, mock_sdk)
        test_ctx.register_factory(StripeAdapter, provides=PaymentClient)

        test_ctx.resolve(PaymentClient).charge("order-1", 1)

        assert mock_sdk.pay.call_count == 1
        assert self.stripe_sdk.pay.call_count == 0
